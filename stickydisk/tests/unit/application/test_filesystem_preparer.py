"""
Unit tests for FilesystemPreparer.
"""

import pytest

from stickydisk.application.services.filesystem_preparer import FilesystemPreparer
from stickydisk.domain.errors import FormatError
from stickydisk.domain.value_objects import PrepareOutcome


class TestFilesystemPreparer:
    """Tests for format / resize decisions."""

    @pytest.fixture
    def preparer(self, block_device):
        return FilesystemPreparer(block_device)

    @pytest.mark.asyncio
    async def test_existing_ext4_is_resized_not_formatted(self, preparer, block_device):
        block_device.filesystems["/dev/vdb"] = "ext4"

        outcome = await preparer.prepare("/dev/vdb")

        assert outcome == PrepareOutcome.RESIZED
        assert block_device.called("resize_filesystem") == [("/dev/vdb",)]
        assert block_device.called("format_filesystem") == []

    @pytest.mark.asyncio
    async def test_resize_failure_is_not_fatal(self, preparer, block_device):
        block_device.filesystems["/dev/vdb"] = "ext4"
        block_device.resize_error = RuntimeError("resize2fs: Device or resource busy")

        outcome = await preparer.prepare("/dev/vdb")

        assert outcome == PrepareOutcome.RESIZE_FAILED
        assert block_device.called("format_filesystem") == []

    @pytest.mark.asyncio
    async def test_unformatted_device_is_formatted(self, preparer, block_device):
        outcome = await preparer.prepare("/dev/vdb")

        assert outcome == PrepareOutcome.FORMATTED
        assert block_device.called("format_filesystem") == [("/dev/vdb",)]
        assert block_device.called("resize_filesystem") == []

    @pytest.mark.asyncio
    async def test_foreign_filesystem_is_reformatted(self, preparer, block_device):
        block_device.filesystems["/dev/vdb"] = "xfs"

        outcome = await preparer.prepare("/dev/vdb")

        assert outcome == PrepareOutcome.FORMATTED

    @pytest.mark.asyncio
    async def test_format_failure_is_fatal(self, preparer, block_device):
        block_device.format_error = RuntimeError("mkfs.ext4: Device size reported to be zero")

        with pytest.raises(FormatError) as exc_info:
            await preparer.prepare("/dev/vdb")

        assert exc_info.value.details["device"] == "/dev/vdb"
