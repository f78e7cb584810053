"""
Durability & Unmount Manager

Quiesces a sticky disk at job teardown: flushes dirty pages, measures
usage, drops caches, unmounts with retries and flushes the block device
buffers.
"""

import asyncio
from typing import List, Optional

import structlog

from stickydisk.domain.errors import MeasurementUnavailable, MountError
from stickydisk.domain.ports import IBlockDevicePort
from stickydisk.domain.services import parse_usage_bytes
from stickydisk.domain.value_objects import TeardownReport


logger = structlog.get_logger(__name__)


class UnmountManager:
    """
    Teardown sequence for one sticky disk.

    Ordering constraints:
    - usage is measured while the filesystem is still mounted
    - caches are dropped before unmount to reduce EBUSY races
    - block buffers are flushed after unmount, before any snapshot
    """

    def __init__(
        self,
        block_device: IBlockDevicePort,
        max_attempts: int = 10,
        retry_delay: float = 0.3,
        durability_flush: bool = True,
    ):
        """
        Initialize the manager.

        Args:
            block_device: Block device operations port
            max_attempts: Unmount attempts before giving up
            retry_delay: Fixed delay between unmount attempts (seconds)
            durability_flush: Flush block device buffers after unmount
        """
        self._block_device = block_device
        self._max_attempts = max_attempts
        self._retry_delay = retry_delay
        self._durability_flush = durability_flush

    async def release(self, exposed_path: str, internal_mount: Optional[str] = None) -> TeardownReport:
        """
        Quiesce and unmount a sticky disk.

        The exposed bind mount is released before the internal mount it
        points into.

        Args:
            exposed_path: Job-visible path
            internal_mount: Hidden mount root, if setup got that far

        Returns:
            TeardownReport

        Raises:
            MountError: If a mount point could not be unmounted after all retries
        """
        candidates = [exposed_path] + ([internal_mount] if internal_mount else [])
        mounted: List[str] = []
        for path in candidates:
            if await self._block_device.is_mounted(path):
                mounted.append(path)
            else:
                logger.debug("Path is not mounted, skipping unmount", path=path)

        if not mounted:
            return TeardownReport(was_mounted=False, unmounted=True)

        # The internal mount resolves to the raw device; the bind mount may not
        device = await self._resolve_device(list(reversed(mounted)))

        try:
            await self._block_device.sync()
        except Exception as e:
            logger.warning("Failed to sync filesystems", error=str(e))

        fs_usage_bytes = await self.measure_usage(mounted[0])

        try:
            await self._block_device.drop_caches()
        except Exception as e:
            logger.warning("Failed to drop caches", error=str(e))

        for path in mounted:
            await self.unmount_with_retry(path)

        flushed = False
        if device and self._durability_flush:
            flushed = await self.flush_buffers(device)

        return TeardownReport(
            was_mounted=True,
            device=device,
            fs_usage_bytes=fs_usage_bytes,
            unmounted=True,
            flushed=flushed,
        )

    async def _resolve_device(self, paths: List[str]) -> Optional[str]:
        for path in paths:
            try:
                device = await self._block_device.resolve_device(path)
            except Exception as e:
                logger.debug("Device lookup failed", path=path, error=str(e))
                continue
            if device:
                logger.debug("Resolved mount to device", path=path, device=device)
                return device
        logger.warning("Could not resolve sticky disk device", paths=paths)
        return None

    async def measure_usage(self, path: str) -> Optional[int]:
        """
        Used bytes of the filesystem at path.

        Returns:
            Positive byte count, or None when the reading is unavailable
        """
        try:
            usage = await self._read_usage(path)
        except MeasurementUnavailable as e:
            logger.warning("Filesystem usage unavailable, omitting it from commit", path=path, error=e.message)
            return None

        logger.info("Measured filesystem usage", path=path, fs_usage_bytes=usage)
        return usage

    async def _read_usage(self, path: str) -> int:
        try:
            raw = await self._block_device.measure_usage(path)
        except Exception as e:
            raise MeasurementUnavailable(f"Failed to measure filesystem usage: {e}", {"path": path}) from e

        usage = parse_usage_bytes(raw)
        if usage is None:
            raise MeasurementUnavailable(
                f"Unusable usage reading: {(raw or '').strip()!r}", {"path": path}
            )
        return usage

    async def unmount_with_retry(self, path: str) -> None:
        """
        Unmount with a bounded number of attempts and a fixed delay.

        Raises:
            MountError: If every attempt failed
        """
        for attempt in range(1, self._max_attempts + 1):
            try:
                await self._block_device.unmount(path)
                logger.info("Successfully unmounted", path=path, attempt=attempt)
                return
            except Exception as e:
                if attempt == self._max_attempts:
                    raise MountError(
                        f"Failed to unmount {path} after {self._max_attempts} attempts: {e}",
                        {"path": path, "attempts": self._max_attempts},
                    ) from e
                logger.warning(
                    f"Unmount failed, retrying ({attempt}/{self._max_attempts})...",
                    path=path,
                    error=str(e),
                )
                await asyncio.sleep(self._retry_delay)

    async def flush_buffers(self, device: str) -> bool:
        """
        Flush block device buffers after unmount.

        Returns:
            True if the flush succeeded, False otherwise (logged only)
        """
        try:
            await self._block_device.flush_buffers(device)
        except Exception as e:
            logger.warning("Failed to flush block device buffers", device=device, error=str(e))
            return False
        logger.debug("Flushed block device buffers", device=device)
        return True
