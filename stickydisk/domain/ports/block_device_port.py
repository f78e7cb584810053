"""
Block Device Port Interface

Defines the narrow set of operating system operations the sticky disk
state machine needs. This is an output port - implemented by the Linux
adapter in the infrastructure layer.
"""

from abc import ABC, abstractmethod
from typing import List, Optional


class IBlockDevicePort(ABC):
    """
    Port interface for block device and mount operations.

    Every mutating operation raises ``CommandError`` on failure unless
    stated otherwise.
    """

    @abstractmethod
    async def probe_filesystem(self, device: str) -> Optional[str]:
        """
        Return the filesystem type on a device.

        Returns:
            Filesystem type (e.g., "ext4") or None if the device is unformatted
        """
        pass

    @abstractmethod
    async def format_filesystem(self, device: str) -> None:
        """Create a fresh filesystem owned by the invoking user."""
        pass

    @abstractmethod
    async def resize_filesystem(self, device: str) -> None:
        """Grow the filesystem to the full device capacity."""
        pass

    @abstractmethod
    async def make_directory(self, path: str, mode: Optional[int] = None, owned: bool = False) -> None:
        """
        Create a directory (and parents).

        Args:
            path: Directory to create
            mode: Optional permission bits to apply
            owned: Assign the directory to the invoking user
        """
        pass

    @abstractmethod
    async def is_directory(self, path: str) -> bool:
        """Whether a directory exists at path."""
        pass

    @abstractmethod
    async def list_entries(self, path: str) -> List[str]:
        """Names of the direct children of a directory."""
        pass

    @abstractmethod
    async def mount(self, device: str, target: str) -> None:
        """Mount a device at target."""
        pass

    @abstractmethod
    async def bind_mount(self, source: str, target: str) -> None:
        """Bind-mount a directory at target."""
        pass

    @abstractmethod
    async def is_mounted(self, path: str) -> bool:
        """Whether path is currently a mount point."""
        pass

    @abstractmethod
    async def resolve_device(self, path: str) -> Optional[str]:
        """
        Resolve a mount point back to its block device.

        Returns:
            Device path or None when no lookup strategy succeeds
        """
        pass

    @abstractmethod
    async def sync(self) -> None:
        """Flush dirty pages to their devices."""
        pass

    @abstractmethod
    async def measure_usage(self, path: str) -> Optional[str]:
        """
        Raw ``df``-style used-bytes reading for the filesystem at path.

        Returns:
            Raw command output, parsed by the caller
        """
        pass

    @abstractmethod
    async def drop_caches(self) -> None:
        """Drop the page, dentry and inode caches system-wide."""
        pass

    @abstractmethod
    async def unmount(self, path: str) -> None:
        """Unmount path once; raises on EBUSY or any other failure."""
        pass

    @abstractmethod
    async def flush_buffers(self, device: str) -> None:
        """Flush the block device buffers."""
        pass
