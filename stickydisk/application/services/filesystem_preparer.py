"""
Filesystem Preparer

Makes a freshly acquired block device usable: formats it when it has no
filesystem, grows the filesystem when the device got bigger.
"""

import structlog

from stickydisk.domain.errors import FormatError
from stickydisk.domain.ports import IBlockDevicePort
from stickydisk.domain.value_objects import PrepareOutcome


logger = structlog.get_logger(__name__)


class FilesystemPreparer:
    """
    Runs once per acquisition.

    Sticky disks are reused across many jobs and the backing volume may
    grow between runs, so an existing filesystem is resized in place
    instead of being reformatted.
    """

    def __init__(self, block_device: IBlockDevicePort, filesystem_type: str = "ext4"):
        self._block_device = block_device
        self._filesystem_type = filesystem_type

    async def prepare(self, device: str) -> PrepareOutcome:
        """
        Format or resize a device.

        Args:
            device: Block device path

        Returns:
            PrepareOutcome describing what was done

        Raises:
            FormatError: If the device had to be formatted and formatting failed
        """
        fs_type = await self._block_device.probe_filesystem(device)

        if fs_type == self._filesystem_type:
            logger.debug("Device already formatted", device=device, filesystem=fs_type)
            try:
                await self._block_device.resize_filesystem(device)
            except Exception as e:
                # Stale capacity is acceptable
                logger.warning("Error resizing filesystem", device=device, error=str(e))
                return PrepareOutcome.RESIZE_FAILED
            logger.debug("Resized filesystem", device=device, filesystem=fs_type)
            return PrepareOutcome.RESIZED

        if fs_type:
            logger.warning(
                "Unexpected filesystem on device, reformatting",
                device=device,
                found=fs_type,
                expected=self._filesystem_type,
            )
        else:
            logger.debug("No filesystem found, formatting", device=device)

        try:
            await self._block_device.format_filesystem(device)
        except Exception as e:
            logger.warning("Failed to format device", device=device, error=str(e))
            raise FormatError(f"Failed to format device {device}: {e}", {"device": device}) from e

        logger.debug("Formatted device", device=device, filesystem=self._filesystem_type)
        return PrepareOutcome.FORMATTED
