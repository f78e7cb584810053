"""
Unit tests for UnmountManager.
"""

import pytest

from stickydisk.application.services.unmount_manager import UnmountManager
from stickydisk.domain.errors import MountError


PATH = "/home/runner/.npm"
INTERNAL = "/mnt/stickydisk/expose-123"


@pytest.fixture
def mounted_disk(block_device):
    block_device.mounts[INTERNAL] = "/dev/vdb"
    block_device.mounts[PATH] = "/dev/vdb"
    return block_device


class TestUnmountManager:
    """Tests for the quiesce -> measure -> unmount -> flush sequence."""

    @pytest.fixture
    def manager(self, block_device):
        return UnmountManager(block_device, max_attempts=10, retry_delay=0)

    @pytest.mark.asyncio
    async def test_release_runs_teardown_in_order(self, manager, mounted_disk):
        report = await manager.release(PATH, INTERNAL)

        assert report.was_mounted
        assert report.unmounted
        assert report.device == "/dev/vdb"
        assert report.fs_usage_bytes == 1073741824
        assert report.flushed

        ops = [op for op, _ in mounted_disk.calls if op not in {"is_mounted", "resolve_device"}]
        assert ops == ["sync", "measure_usage", "drop_caches", "unmount", "unmount", "flush_buffers"]
        # Bind mount goes first, then the internal mount it points into
        assert mounted_disk.called("unmount") == [(PATH,), (INTERNAL,)]
        assert mounted_disk.called("measure_usage") == [(PATH,)]
        assert mounted_disk.mounts == {}

    @pytest.mark.asyncio
    async def test_nothing_mounted(self, manager, block_device):
        report = await manager.release(PATH, INTERNAL)

        assert not report.was_mounted
        assert report.fs_usage_bytes is None
        assert block_device.called("unmount") == []
        assert block_device.called("flush_buffers") == []

    @pytest.mark.asyncio
    async def test_busy_mount_is_retried(self, manager, mounted_disk):
        mounted_disk.unmount_failures = 9

        report = await manager.release(PATH, INTERNAL)

        assert report.unmounted
        # Nine failures and a success on the exposed path, then the internal mount
        assert len(mounted_disk.called("unmount")) == 11

    @pytest.mark.asyncio
    async def test_unmount_gives_up_after_max_attempts(self, manager, mounted_disk):
        mounted_disk.unmount_failures = 10

        with pytest.raises(MountError) as exc_info:
            await manager.release(PATH, INTERNAL)

        assert exc_info.value.details["attempts"] == 10
        assert mounted_disk.called("unmount") == [(PATH,)] * 10
        assert mounted_disk.called("flush_buffers") == []

    @pytest.mark.asyncio
    async def test_unusable_usage_reading_is_omitted(self, manager, mounted_disk):
        mounted_disk.usage_output = "     Used\n0\n"

        report = await manager.release(PATH, INTERNAL)

        assert report.fs_usage_bytes is None
        assert report.unmounted

    @pytest.mark.asyncio
    async def test_flush_can_be_disabled(self, mounted_disk):
        manager = UnmountManager(mounted_disk, retry_delay=0, durability_flush=False)

        report = await manager.release(PATH, INTERNAL)

        assert not report.flushed
        assert mounted_disk.called("flush_buffers") == []

    @pytest.mark.asyncio
    async def test_flush_failure_is_not_fatal(self, manager, mounted_disk):
        mounted_disk.flush_error = RuntimeError("blockdev: cannot open /dev/vdb")

        report = await manager.release(PATH, INTERNAL)

        assert report.unmounted
        assert not report.flushed

    @pytest.mark.asyncio
    async def test_unresolved_device_skips_flush(self, manager, mounted_disk):
        mounted_disk.resolvable = False

        report = await manager.release(PATH, INTERNAL)

        assert report.device is None
        assert mounted_disk.called("flush_buffers") == []

    @pytest.mark.asyncio
    async def test_release_without_internal_mount(self, manager, block_device):
        block_device.mounts[PATH] = "/dev/vdb"

        report = await manager.release(PATH)

        assert report.was_mounted
        assert block_device.called("unmount") == [(PATH,)]
