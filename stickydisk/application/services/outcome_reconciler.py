"""
Outcome Reconciler

Commits or discards a sticky disk at teardown depending on how the job
went.
"""

from typing import Optional

import structlog

from stickydisk.domain.ports import IProvisioningPort, IStepOutcomePort
from stickydisk.domain.services import decide_reconcile_action
from stickydisk.domain.value_objects import ReconcileAction, StepFailureReport


logger = structlog.get_logger(__name__)


class OutcomeReconciler:
    """
    Applies the commit/discard decision table.

    Committing makes the disk state visible to future jobs, so any doubt
    about job health results in a discard.
    """

    def __init__(self, provisioning: IProvisioningPort, step_outcome: IStepOutcomePort):
        self._provisioning = provisioning
        self._step_outcome = step_outcome

    async def reconcile(
        self,
        expose_id: Optional[str],
        sticky_disk_key: Optional[str],
        error_flag: bool,
        fs_usage_bytes: Optional[int] = None,
    ) -> ReconcileAction:
        """
        Decide and report the fate of a sticky disk.

        Args:
            expose_id: Session handle recorded by setup
            sticky_disk_key: Cache key recorded by setup
            error_flag: Setup or unmount recorded an error
            fs_usage_bytes: Usage measured before unmount, if known

        Returns:
            The action taken; SKIP when there is nothing to report
        """
        if not expose_id or not sticky_disk_key:
            logger.warning("No expose ID or sticky disk key found, cannot report sticky disk")
            return ReconcileAction.SKIP

        report: Optional[StepFailureReport] = None
        if not error_flag:
            report = await self._step_outcome.check_failures()
            self._log_report(report)

        action = decide_reconcile_action(error_flag, report)

        if action == ReconcileAction.COMMIT:
            logger.info("Committing sticky disk", sticky_disk_key=sticky_disk_key, expose_id=expose_id)
            ok = await self._provisioning.commit(
                expose_id, sticky_disk_key, should_commit=True, fs_usage_bytes=fs_usage_bytes
            )
            if ok:
                logger.info("Successfully committed sticky disk", sticky_disk_key=sticky_disk_key, expose_id=expose_id)
            else:
                logger.warning("Error committing sticky disk", sticky_disk_key=sticky_disk_key, expose_id=expose_id)
        else:
            logger.info("Cleaning up sticky disk without commit", sticky_disk_key=sticky_disk_key, expose_id=expose_id)
            ok = await self._provisioning.commit(expose_id, sticky_disk_key, should_commit=False)
            if not ok:
                logger.warning("Error releasing sticky disk", sticky_disk_key=sticky_disk_key, expose_id=expose_id)

        return action

    def _log_report(self, report: StepFailureReport) -> None:
        if report.is_ambiguous:
            logger.warning("Could not check previous step outcomes, not committing", error=report.error)
            return
        if not report.has_failures:
            logger.debug("No failed steps found")
            return
        logger.warning("Previous steps failed, not committing", failed_count=report.failed_count)
        for step in report.failed_steps:
            logger.warning(
                "Failed step",
                step=step.name or step.action or "unknown",
                result=step.result,
            )
