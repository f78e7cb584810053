"""
stickydisk

Lifecycle management of network-attached sticky disks in CI jobs:
acquire, format, mount and expose a persistent cache volume during
setup, then unmount and commit or discard it at teardown.
"""

__version__ = "1.0.0"

from .domain.entities import MountAttempt
from .domain.value_objects import (
    JobState,
    MountState,
    ReconcileAction,
    StepFailure,
    StepFailureReport,
    StickyDiskSession,
    TeardownReport,
)

__all__ = [
    "MountAttempt",
    "JobState",
    "MountState",
    "ReconcileAction",
    "StepFailure",
    "StepFailureReport",
    "StickyDiskSession",
    "TeardownReport",
]
