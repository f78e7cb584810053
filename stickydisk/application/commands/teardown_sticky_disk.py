"""
Teardown Sticky Disk Command

Teardown phase use case: unmount the sticky disk and commit or discard it.
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from stickydisk.application.services.outcome_reconciler import OutcomeReconciler
from stickydisk.application.services.unmount_manager import UnmountManager
from stickydisk.domain.errors import StickyDiskError
from stickydisk.domain.ports import IJobStatePort, IProvisioningPort
from stickydisk.domain.value_objects import ReconcileAction, TeardownReport


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class TeardownResult:
    """What the teardown phase did."""

    action: Optional[ReconcileAction]
    report: Optional[TeardownReport] = None
    unmount_error: Optional[str] = None


class TeardownStickyDiskCommand:
    """
    Command handler for the teardown phase.

    Orchestrates:
    1. Read the job state written by setup
    2. Quiesce and unmount the disk
    3. Commit or discard through the control plane

    Never raises: teardown must not fail the job.
    """

    def __init__(
        self,
        job_state: IJobStatePort,
        unmount_manager: UnmountManager,
        reconciler: OutcomeReconciler,
        provisioning: IProvisioningPort,
    ):
        self._job_state = job_state
        self._unmount_manager = unmount_manager
        self._reconciler = reconciler
        self._provisioning = provisioning

    async def execute(self) -> TeardownResult:
        try:
            return await self._execute()
        except Exception as e:
            logger.warning("Failed to cleanup and commit sticky disk", error=str(e), exc_info=True)
            return TeardownResult(action=None)
        finally:
            await self._provisioning.close()

    async def _execute(self) -> TeardownResult:
        state = self._job_state.read()

        if not state.has_mount_attempt:
            logger.debug("No STICKYDISK_PATH in state, skipping unmount")
            return TeardownResult(action=None)

        report: Optional[TeardownReport] = None
        unmount_error: Optional[str] = None
        try:
            report = await self._unmount_manager.release(state.sticky_disk_path, state.internal_mount)
        except StickyDiskError as e:
            # A disk that could not be cleanly unmounted is never committed
            logger.warning("Failed to unmount sticky disk", path=state.sticky_disk_path, error=e.message)
            unmount_error = e.message

        not_mounted = report is not None and not report.was_mounted
        if not_mounted:
            # Nothing was flushed or unmounted, so the disk contents are unknown
            logger.warning("Sticky disk was not mounted at teardown, not committing", path=state.sticky_disk_path)

        action = await self._reconciler.reconcile(
            expose_id=state.expose_id,
            sticky_disk_key=state.sticky_disk_key,
            error_flag=state.error or unmount_error is not None or not_mounted,
            fs_usage_bytes=report.fs_usage_bytes if report else None,
        )
        return TeardownResult(action=action, report=report, unmount_error=unmount_error)
