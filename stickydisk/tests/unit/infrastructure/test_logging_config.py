"""
Unit tests for the log renderers.
"""

from stickydisk.infrastructure.logging.logging_config import (
    github_actions_renderer,
    human_readable_renderer,
)


class TestGithubActionsRenderer:
    """Tests for workflow command output."""

    def test_warning_becomes_annotation(self):
        line = github_actions_renderer(
            None,
            "warning",
            {"event": "Error getting sticky disk", "level": "warning", "sticky_disk_key": "npm-cache"},
        )

        assert line == "::warning::Error getting sticky disk sticky_disk_key=npm-cache"

    def test_multiline_annotation_is_escaped(self):
        line = github_actions_renderer(None, "error", {"event": "boom\n100%"})

        assert line == "::error::boom%0A100%25"

    def test_info_is_plain(self):
        line = github_actions_renderer(None, "info", {"event": "Sticky disk mounted", "path": "/nix"})

        assert line == "Sticky disk mounted path=/nix"


class TestHumanReadableRenderer:
    """Tests for the default text format."""

    def test_line_layout(self):
        line = human_readable_renderer(
            None,
            "info",
            {
                "timestamp": "2025-01-14 10:30:45",
                "level": "info",
                "logger": "stickydisk.mount",
                "event": "Sticky disk mounted",
                "expose_id": "abc123",
            },
        )

        assert line == "[2025-01-14 10:30:45] [INFO] [stickydisk.mount] Sticky disk mounted expose_id=abc123"
