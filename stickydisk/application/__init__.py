"""
Application Layer

Orchestrates domain objects to run the sticky disk setup and teardown
use cases.
"""

from .commands import SetupStickyDiskCommand, TeardownStickyDiskCommand
from .services import (
    FilesystemPreparer,
    FormatMigrationDetector,
    MountOrchestrator,
    OutcomeReconciler,
    UnmountManager,
)

__all__ = [
    # Commands
    "SetupStickyDiskCommand",
    "TeardownStickyDiskCommand",
    # Services
    "FilesystemPreparer",
    "FormatMigrationDetector",
    "MountOrchestrator",
    "OutcomeReconciler",
    "UnmountManager",
]
