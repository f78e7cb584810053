"""
Format Migration Detector

Tells current sticky disks (data under ``work/``) from legacy ones (data
at the filesystem root) and prepares the work area on empty disks.
"""

import structlog

from stickydisk.domain.errors import IncompatibleFormatError
from stickydisk.domain.ports import IBlockDevicePort
from stickydisk.domain.value_objects import DiskLayout


logger = structlog.get_logger(__name__)

WORK_DIR_NAME = "work"
RECOVERY_DIR_NAME = "lost+found"


class FormatMigrationDetector:
    """
    Inspects the root of a freshly mounted sticky disk.

    Legacy disks are rejected, never migrated: automatic invalidation is
    not offered until the control plane exposes an API for it.
    """

    def __init__(self, block_device: IBlockDevicePort):
        self._block_device = block_device

    async def detect(self, mount_root: str) -> DiskLayout:
        """
        Classify the disk layout without modifying it.

        Args:
            mount_root: Internal mount path of the raw filesystem

        Returns:
            DiskLayout.CURRENT, DiskLayout.LEGACY or DiskLayout.EMPTY

        Raises:
            CommandError: If the root cannot be listed
        """
        if await self._block_device.is_directory(f"{mount_root}/{WORK_DIR_NAME}"):
            logger.debug("work/ directory already exists, disk is in current format", mount_root=mount_root)
            return DiskLayout.CURRENT

        entries = await self._block_device.list_entries(mount_root)
        if any(entry != RECOVERY_DIR_NAME for entry in entries):
            return DiskLayout.LEGACY
        return DiskLayout.EMPTY

    async def ensure_work_area(self, mount_root: str) -> str:
        """
        Verify the layout and create the work area when the disk is empty.

        Args:
            mount_root: Internal mount path of the raw filesystem

        Returns:
            Path of the work area

        Raises:
            IncompatibleFormatError: If the disk holds legacy root-level data
        """
        work_dir = f"{mount_root}/{WORK_DIR_NAME}"

        try:
            layout = await self.detect(mount_root)
        except Exception as e:
            logger.warning("Error checking disk format", mount_root=mount_root, error=str(e))
            logger.debug("Creating fresh work/ directory despite errors", work_dir=work_dir)
            await self._block_device.make_directory(work_dir)
            return work_dir

        if layout == DiskLayout.LEGACY:
            logger.warning(
                "Detected old sticky disk format (data at filesystem root). "
                "This disk is incompatible with the bind-mount layout.",
                mount_root=mount_root,
            )
            raise IncompatibleFormatError(mount_root)

        if layout == DiskLayout.EMPTY:
            logger.debug("No existing data found, creating fresh work/ directory", work_dir=work_dir)
            await self._block_device.make_directory(work_dir)

        return work_dir
