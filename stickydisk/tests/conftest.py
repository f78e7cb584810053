"""
Shared test fixtures for stickydisk tests.

Provides an in-memory block device and job state store so the state
machines can be exercised without root privileges.
"""

from typing import Dict, List, Optional, Set, Tuple

import pytest
from unittest.mock import AsyncMock

from stickydisk.domain.errors import JobStateError
from stickydisk.domain.ports import IBlockDevicePort, IJobStatePort
from stickydisk.domain.value_objects import AcquiredDisk, JobState, JobStateField


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "contract: wire-level tests for the HTTP clients")


class FakeCommandFailure(Exception):
    """Stands in for a failed host command."""
    pass


class FakeBlockDevice(IBlockDevicePort):
    """
    In-memory block device and mount table.

    Directory contents are tracked per path so tests can assert that a
    legacy disk is left untouched.
    """

    def __init__(self):
        self.filesystems: Dict[str, Optional[str]] = {}
        self.directories: Set[str] = set()
        self.entries: Dict[str, List[str]] = {}
        self.mounts: Dict[str, str] = {}
        self.calls: List[Tuple[str, tuple]] = []
        self.usage_output: Optional[str] = "     Used\n1073741824\n"
        self.format_error: Optional[Exception] = None
        self.resize_error: Optional[Exception] = None
        self.mount_error: Optional[Exception] = None
        self.list_error: Optional[Exception] = None
        self.unmount_failures = 0
        self.flush_error: Optional[Exception] = None
        self.resolvable = True

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, args))

    def called(self, name: str) -> List[tuple]:
        return [args for op, args in self.calls if op == name]

    @property
    def mutations(self) -> List[str]:
        return [op for op, _ in self.calls if op in {"make_directory", "format_filesystem", "bind_mount"}]

    async def probe_filesystem(self, device: str) -> Optional[str]:
        self._record("probe_filesystem", device)
        return self.filesystems.get(device)

    async def format_filesystem(self, device: str) -> None:
        self._record("format_filesystem", device)
        if self.format_error:
            raise self.format_error
        self.filesystems[device] = "ext4"

    async def resize_filesystem(self, device: str) -> None:
        self._record("resize_filesystem", device)
        if self.resize_error:
            raise self.resize_error

    async def make_directory(self, path: str, mode: Optional[int] = None, owned: bool = False) -> None:
        self._record("make_directory", path, mode, owned)
        self.directories.add(path)
        parent, _, name = path.rpartition("/")
        if parent in self.entries and name not in self.entries[parent]:
            self.entries[parent].append(name)

    async def is_directory(self, path: str) -> bool:
        self._record("is_directory", path)
        return path in self.directories

    async def list_entries(self, path: str) -> List[str]:
        self._record("list_entries", path)
        if self.list_error:
            raise self.list_error
        return list(self.entries.get(path, []))

    async def mount(self, device: str, target: str) -> None:
        self._record("mount", device, target)
        if self.mount_error:
            raise self.mount_error
        self.mounts[target] = device
        self.entries.setdefault(target, ["lost+found"])

    async def bind_mount(self, source: str, target: str) -> None:
        self._record("bind_mount", source, target)
        self.mounts[target] = self.mounts.get(source.rsplit("/", 1)[0], source)

    async def is_mounted(self, path: str) -> bool:
        self._record("is_mounted", path)
        return path in self.mounts

    async def resolve_device(self, path: str) -> Optional[str]:
        self._record("resolve_device", path)
        if not self.resolvable:
            return None
        return self.mounts.get(path)

    async def sync(self) -> None:
        self._record("sync")

    async def measure_usage(self, path: str) -> Optional[str]:
        self._record("measure_usage", path)
        return self.usage_output

    async def drop_caches(self) -> None:
        self._record("drop_caches")

    async def unmount(self, path: str) -> None:
        self._record("unmount", path)
        if self.unmount_failures > 0:
            self.unmount_failures -= 1
            raise FakeCommandFailure(f"umount: {path}: target is busy.")
        self.mounts.pop(path, None)

    async def flush_buffers(self, device: str) -> None:
        self._record("flush_buffers", device)
        if self.flush_error:
            raise self.flush_error


class InMemoryJobState(IJobStatePort):
    """Write-once job state kept in a dict."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})
        self._written: Set[JobStateField] = set()

    def write(self, name: JobStateField, value: str) -> None:
        if name in self._written:
            raise JobStateError(f"Job state field {name.value} was already written")
        self._written.add(name)
        self.data[name.value] = value

    def reset(self) -> None:
        self.data.clear()

    def read(self) -> JobState:
        return JobState.from_dict(self.data)


@pytest.fixture
def block_device() -> FakeBlockDevice:
    """In-memory block device."""
    return FakeBlockDevice()


@pytest.fixture
def job_state() -> InMemoryJobState:
    """Empty in-memory job state."""
    return InMemoryJobState()


@pytest.fixture
def provisioning():
    """Mock control plane port."""
    mock = AsyncMock()
    mock.acquire.return_value = AcquiredDisk(expose_id="expose-123", device="/dev/vdb")
    mock.commit.return_value = True
    return mock


@pytest.fixture
def step_outcome():
    """Mock step outcome port reporting a clean job."""
    from stickydisk.domain.value_objects import StepFailureReport

    mock = AsyncMock()
    mock.check_failures.return_value = StepFailureReport(has_failures=False, failed_count=0)
    return mock
