"""
Sticky Disk Domain Layer

Value objects, the mount attempt entity, error taxonomy and the
decision logic for committing or discarding sticky disks.
"""

from .entities import MountAttempt
from .value_objects import JobState, MountState, StepFailureReport, StickyDiskSession

__all__ = [
    "MountAttempt",
    "JobState",
    "MountState",
    "StepFailureReport",
    "StickyDiskSession",
]
