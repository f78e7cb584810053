"""
Unit tests for FormatMigrationDetector.
"""

import pytest

from stickydisk.application.services.migration_detector import FormatMigrationDetector
from stickydisk.domain.errors import IncompatibleFormatError
from stickydisk.domain.value_objects import DiskLayout


ROOT = "/mnt/stickydisk/expose-1"


class TestFormatMigrationDetector:
    """Tests for legacy / current / empty layout detection."""

    @pytest.fixture
    def detector(self, block_device):
        return FormatMigrationDetector(block_device)

    @pytest.mark.asyncio
    async def test_work_dir_means_current_layout(self, detector, block_device):
        block_device.directories.add(f"{ROOT}/work")
        block_device.entries[ROOT] = ["lost+found", "work"]

        assert await detector.detect(ROOT) == DiskLayout.CURRENT
        assert await detector.ensure_work_area(ROOT) == f"{ROOT}/work"
        assert block_device.called("make_directory") == []

    @pytest.mark.asyncio
    async def test_only_recovery_dir_means_empty(self, detector, block_device):
        block_device.entries[ROOT] = ["lost+found"]

        assert await detector.detect(ROOT) == DiskLayout.EMPTY

    @pytest.mark.asyncio
    async def test_root_level_data_means_legacy(self, detector, block_device):
        block_device.entries[ROOT] = ["lost+found", "node_modules"]

        assert await detector.detect(ROOT) == DiskLayout.LEGACY

    @pytest.mark.asyncio
    async def test_empty_disk_gets_work_area(self, detector, block_device):
        block_device.entries[ROOT] = []

        work_dir = await detector.ensure_work_area(ROOT)

        assert work_dir == f"{ROOT}/work"
        assert f"{ROOT}/work" in block_device.directories

    @pytest.mark.asyncio
    async def test_legacy_disk_is_rejected_without_mutation(self, detector, block_device):
        block_device.entries[ROOT] = ["lost+found", ".cache", "store"]

        with pytest.raises(IncompatibleFormatError) as exc_info:
            await detector.ensure_work_area(ROOT)

        assert "clear the sticky disk cache" in exc_info.value.message
        assert block_device.mutations == []
        assert block_device.entries[ROOT] == ["lost+found", ".cache", "store"]

    @pytest.mark.asyncio
    async def test_listing_error_still_creates_work_area(self, detector, block_device):
        block_device.list_error = RuntimeError("find: permission denied")

        work_dir = await detector.ensure_work_area(ROOT)

        assert work_dir == f"{ROOT}/work"
        assert block_device.called("make_directory") == [(f"{ROOT}/work", None, False)]
