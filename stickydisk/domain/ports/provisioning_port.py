"""
Provisioning Port Interface

Defines the contract for the sticky disk control plane.
This is an output port - implemented by infrastructure layer.
"""

from abc import ABC, abstractmethod
from typing import Optional

from stickydisk.domain.value_objects import AcquiredDisk


class IProvisioningPort(ABC):
    """
    Port interface for acquiring and committing sticky disks.
    """

    @abstractmethod
    async def acquire(self, sticky_disk_key: str) -> AcquiredDisk:
        """
        Request a block device for a cache key.

        The overall acquisition deadline is enforced by the implementation;
        on expiry the in-flight request is cancelled.

        Args:
            sticky_disk_key: User-chosen cache identity

        Returns:
            AcquiredDisk with expose id and device path

        Raises:
            TransportError: Network or RPC failure
            AcquisitionTimeout: Deadline exceeded
        """
        pass

    @abstractmethod
    async def commit(
        self,
        expose_id: str,
        sticky_disk_key: str,
        should_commit: bool,
        fs_usage_bytes: Optional[int] = None,
    ) -> bool:
        """
        Commit or release a sticky disk.

        ``should_commit=False`` releases the disk without persisting it.
        ``fs_usage_bytes`` is only sent when it is a positive value.
        Failures are logged and reported through the return value, never
        raised.

        Returns:
            True if the control plane acknowledged, False otherwise
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release transport resources."""
        pass
