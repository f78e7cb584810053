"""
Mount Orchestrator

Drives the acquire -> format -> mount -> migration check -> bind expose
sequence for a sticky disk and records the result in the job state.
"""

from typing import Awaitable, Optional

import structlog

from stickydisk.application.services.filesystem_preparer import FilesystemPreparer
from stickydisk.application.services.migration_detector import FormatMigrationDetector
from stickydisk.domain.entities import MountAttempt
from stickydisk.domain.errors import MountError, StickyDiskError
from stickydisk.domain.ports import IBlockDevicePort, IJobStatePort, IProvisioningPort
from stickydisk.domain.value_objects import JobStateField, MountState, StickyDiskSession


logger = structlog.get_logger(__name__)

WORK_DIR_MODE = 0o755


class MountOrchestrator:
    """
    Central state machine of the setup phase.

    The raw filesystem is mounted at a hidden internal path and only its
    ``work/`` subdirectory is bind-mounted where the job expects it, so
    the job never sees ``lost+found``.
    """

    def __init__(
        self,
        provisioning: IProvisioningPort,
        block_device: IBlockDevicePort,
        job_state: IJobStatePort,
        preparer: Optional[FilesystemPreparer] = None,
        detector: Optional[FormatMigrationDetector] = None,
        internal_mount_base: str = "/mnt/stickydisk",
    ):
        """
        Initialize the orchestrator.

        Args:
            provisioning: Control plane port
            block_device: Block device operations port
            job_state: Job state record shared with teardown
            preparer: Filesystem preparer (default: built on block_device)
            detector: Migration detector (default: built on block_device)
            internal_mount_base: Parent directory of hidden mount roots
        """
        self._provisioning = provisioning
        self._block_device = block_device
        self._job_state = job_state
        self._preparer = preparer or FilesystemPreparer(block_device)
        self._detector = detector or FormatMigrationDetector(block_device)
        self._internal_mount_base = internal_mount_base.rstrip("/")
        self.last_attempt: Optional[MountAttempt] = None

    async def run(self, sticky_disk_key: str, sticky_disk_path: str) -> Optional[StickyDiskSession]:
        """
        Mount a sticky disk without ever failing the job.

        Any failure is logged as a warning and recorded as the job state
        error flag so teardown does not commit.

        Returns:
            The mounted session, or None if the job continues without cache
        """
        self._job_state.reset()
        self._job_state.write(JobStateField.PATH, sticky_disk_path)
        self._job_state.write(JobStateField.KEY, sticky_disk_key)

        logger.info("Mounting sticky disk", path=sticky_disk_path, sticky_disk_key=sticky_disk_key)

        try:
            session = await self.mount(sticky_disk_key, sticky_disk_path)
        except Exception as e:
            logger.warning("Error getting sticky disk", sticky_disk_key=sticky_disk_key, error=str(e))
            try:
                self._job_state.write(JobStateField.ERROR, "true")
            except StickyDiskError as state_error:
                logger.warning("Failed to record sticky disk error", error=state_error.message)
            return None

        return session

    async def mount(self, sticky_disk_key: str, sticky_disk_path: str) -> StickyDiskSession:
        """
        Run the mount state machine.

        Returns:
            StickyDiskSession once the work area is exposed

        Raises:
            TransportError: Control plane failure
            AcquisitionTimeout: Control plane did not answer in time
            FormatError: Device could not be formatted
            MountError: Mount or bind mount failed
            IncompatibleFormatError: Legacy disk layout
        """
        attempt = MountAttempt(sticky_disk_key=sticky_disk_key, exposed_path=sticky_disk_path)
        self.last_attempt = attempt

        try:
            attempt.advance(MountState.ACQUIRING)
            acquired = await self._provisioning.acquire(sticky_disk_key)
            attempt.mark_as_acquired(acquired.expose_id, acquired.device)
            # Recorded right away so a later failure can still release the disk
            self._job_state.write(JobStateField.EXPOSE_ID, acquired.expose_id)
            self._job_state.write(JobStateField.DEVICE, acquired.device)

            attempt.advance(MountState.FORMATTING)
            await self._preparer.prepare(acquired.device)

            attempt.advance(MountState.MOUNTING)
            internal_mount = f"{self._internal_mount_base}/{acquired.expose_id}"
            await self._os_step("create internal mount point", self._block_device.make_directory(internal_mount))
            await self._os_step(
                f"mount {acquired.device} at {internal_mount}",
                self._block_device.mount(acquired.device, internal_mount),
            )
            attempt.mark_as_mounted(internal_mount)
            self._job_state.write(JobStateField.INTERNAL_MOUNT, internal_mount)
            logger.debug("Mounted device to internal location", device=acquired.device, internal_mount=internal_mount)

            attempt.advance(MountState.MIGRATION_CHECK)
            work_dir = await self._detector.ensure_work_area(internal_mount)

            attempt.advance(MountState.BIND_EXPOSING)
            await self._os_step(
                "prepare work directory",
                self._block_device.make_directory(work_dir, mode=WORK_DIR_MODE, owned=True),
            )
            await self._os_step(
                f"create {sticky_disk_path}",
                self._block_device.make_directory(sticky_disk_path, owned=True),
            )
            await self._os_step(
                f"bind mount {work_dir} at {sticky_disk_path}",
                self._block_device.bind_mount(work_dir, sticky_disk_path),
            )

            attempt.advance(MountState.READY)
        except Exception as e:
            attempt.mark_as_failed(str(e))
            logger.debug(
                "Sticky disk mount failed",
                failed_in=attempt.failed_in.value,
                sticky_disk_key=sticky_disk_key,
                error=str(e),
            )
            raise

        session = attempt.to_session()
        logger.info(
            "Sticky disk mounted",
            device=session.device,
            path=session.exposed_path,
            internal_mount=session.internal_mount_path,
            expose_id=session.expose_id,
        )
        return session

    async def _os_step(self, description: str, operation: Awaitable[None]) -> None:
        try:
            await operation
        except StickyDiskError:
            raise
        except Exception as e:
            raise MountError(f"Failed to {description}: {e}") from e
