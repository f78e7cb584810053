"""
Linux block device adapter.

Implements IBlockDevicePort with util-linux and e2fsprogs commands.
"""

import os
import re
from pathlib import Path
from typing import List, Optional, Tuple

import structlog

from stickydisk.domain.ports import IBlockDevicePort
from stickydisk.infrastructure.block_device.command_runner import CommandError, CommandRunner


logger = structlog.get_logger(__name__)

# findmnt reports bind mounts as "/dev/vdb[/work]"
_BIND_SUFFIX = re.compile(r"\[.*\]$")
_OCTAL_ESCAPE = re.compile(r"\\([0-7]{3})")


def _unescape_mount_field(value: str) -> str:
    """Decode the octal escapes used by /proc/mounts (e.g. \\040 for space)."""
    return _OCTAL_ESCAPE.sub(lambda m: chr(int(m.group(1), 8)), value)


class LinuxBlockDevice(IBlockDevicePort):
    """
    Block device operations backed by host utilities.

    Implements IBlockDevicePort interface.
    """

    FILESYSTEM_TYPE = "ext4"

    def __init__(
        self,
        runner: CommandRunner,
        mounts_file: str = "/proc/mounts",
        uid: Optional[int] = None,
        gid: Optional[int] = None,
    ):
        """
        Initialize the adapter.

        Args:
            runner: Command runner used for every host call
            mounts_file: Mount table used as the lookup fallback
            uid: Owner uid for new filesystems and directories (default: current user)
            gid: Owner gid for new filesystems and directories (default: current group)
        """
        self._runner = runner
        self._mounts_file = Path(mounts_file)
        self._uid = os.getuid() if uid is None else uid
        self._gid = os.getgid() if gid is None else gid

    @property
    def owner(self) -> str:
        return f"{self._uid}:{self._gid}"

    async def probe_filesystem(self, device: str) -> Optional[str]:
        # blkid exits non-zero when no filesystem signature is found
        result = await self._runner.run(
            "blkid", "-o", "value", "-s", "TYPE", device, privileged=True, check=False
        )
        if not result.ok:
            return None
        fs_type = result.stdout.strip()
        return fs_type or None

    async def format_filesystem(self, device: str) -> None:
        # -m0: no reserved blocks; root_owner: filesystem root owned by the CI user
        await self._runner.run(
            "mkfs.ext4",
            "-m0",
            "-E", f"root_owner={self.owner}",
            "-Enodiscard,lazy_itable_init=1,lazy_journal_init=1",
            "-F",
            device,
            privileged=True,
        )

    async def resize_filesystem(self, device: str) -> None:
        await self._runner.run("resize2fs", "-f", device, privileged=True)

    async def make_directory(self, path: str, mode: Optional[int] = None, owned: bool = False) -> None:
        await self._runner.run("mkdir", "-p", path, privileged=True)
        if mode is not None:
            await self._runner.run("chmod", format(mode, "04o"), path, privileged=True)
        if owned:
            await self._runner.run("chown", self.owner, path, privileged=True)

    async def is_directory(self, path: str) -> bool:
        result = await self._runner.run("test", "-d", path, privileged=True, check=False)
        return result.ok

    async def list_entries(self, path: str) -> List[str]:
        result = await self._runner.run(
            "find", path, "-maxdepth", "1", "-mindepth", "1", "-printf", "%f\\n",
            privileged=True,
        )
        return [line for line in result.stdout.splitlines() if line]

    async def mount(self, device: str, target: str) -> None:
        await self._runner.run("mount", device, target, privileged=True)

    async def bind_mount(self, source: str, target: str) -> None:
        await self._runner.run("mount", "--bind", source, target, privileged=True)

    async def is_mounted(self, path: str) -> bool:
        try:
            result = await self._runner.run("findmnt", "--mountpoint", path, check=False)
            if result.ok:
                return True
        except CommandError as e:
            logger.debug("findmnt unavailable, falling back to mount table", error=str(e))
        return self._find_mount_entry(path) is not None

    async def resolve_device(self, path: str) -> Optional[str]:
        # First strategy: findmnt
        try:
            result = await self._runner.run(
                "findmnt", "-n", "-o", "SOURCE", "--target", path, check=False
            )
            source = _BIND_SUFFIX.sub("", result.stdout.strip())
            if result.ok and source.startswith("/dev/"):
                return source
        except CommandError as e:
            logger.debug("findmnt lookup failed", path=path, error=str(e))

        # Second strategy: mount table
        entry = self._find_mount_entry(path)
        if entry and entry[0].startswith("/dev/"):
            return entry[0]
        return None

    async def sync(self) -> None:
        await self._runner.run("sync")

    async def measure_usage(self, path: str) -> Optional[str]:
        result = await self._runner.run(
            "df", "--block-size=1", "--output=used", path, check=False
        )
        if not result.ok:
            return None
        return result.stdout

    async def drop_caches(self) -> None:
        await self._runner.run("sh", "-c", "echo 3 > /proc/sys/vm/drop_caches", privileged=True)

    async def unmount(self, path: str) -> None:
        await self._runner.run("umount", path, privileged=True)

    async def flush_buffers(self, device: str) -> None:
        await self._runner.run("blockdev", "--flushbufs", device, privileged=True)

    def _find_mount_entry(self, path: str) -> Optional[Tuple[str, str]]:
        """Return (source, mountpoint) of the last mount table entry for path."""
        target = os.path.normpath(path)
        try:
            lines = self._mounts_file.read_text().splitlines()
        except OSError as e:
            logger.debug("Mount table unreadable", mounts_file=str(self._mounts_file), error=str(e))
            return None

        found = None
        for line in lines:
            fields = line.split()
            if len(fields) < 2:
                continue
            source = _unescape_mount_field(fields[0])
            mountpoint = _unescape_mount_field(fields[1])
            if os.path.normpath(mountpoint) == target:
                # Later entries shadow earlier ones
                found = (source, mountpoint)
        return found
