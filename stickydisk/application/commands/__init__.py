"""
Application Commands

Use cases run by the command line.
"""

from .setup_sticky_disk import SetupStickyDiskCommand
from .teardown_sticky_disk import TeardownResult, TeardownStickyDiskCommand

__all__ = ["SetupStickyDiskCommand", "TeardownResult", "TeardownStickyDiskCommand"]
