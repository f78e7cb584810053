"""
Application Services

Service classes for each stage of the sticky disk lifecycle.
"""

from .filesystem_preparer import FilesystemPreparer
from .migration_detector import FormatMigrationDetector
from .mount_orchestrator import MountOrchestrator
from .unmount_manager import UnmountManager
from .outcome_reconciler import OutcomeReconciler

__all__ = [
    "FilesystemPreparer",
    "FormatMigrationDetector",
    "MountOrchestrator",
    "UnmountManager",
    "OutcomeReconciler",
]
