"""
Sticky Disk Value Objects

Immutable value objects describing sticky disk sessions, job state and
teardown results.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class MountState(str, Enum):
    """State of a sticky disk mount attempt."""

    IDLE = "idle"
    ACQUIRING = "acquiring"
    FORMATTING = "formatting"
    MOUNTING = "mounting"
    MIGRATION_CHECK = "migration_check"
    BIND_EXPOSING = "bind_exposing"
    READY = "ready"
    FAILED = "failed"


class DiskLayout(str, Enum):
    """On-disk layout found at the root of a freshly mounted filesystem."""

    CURRENT = "current"
    LEGACY = "legacy"
    EMPTY = "empty"


class PrepareOutcome(str, Enum):
    """What the filesystem preparer did to the device."""

    RESIZED = "resized"
    RESIZE_FAILED = "resize_failed"
    FORMATTED = "formatted"


class ReconcileAction(str, Enum):
    """Teardown decision for a sticky disk session."""

    COMMIT = "commit"
    DISCARD = "discard"
    SKIP = "skip"


class JobStateField(str, Enum):
    """Keys of the job state record shared between setup and teardown."""

    PATH = "STICKYDISK_PATH"
    KEY = "STICKYDISK_KEY"
    EXPOSE_ID = "STICKYDISK_EXPOSE_ID"
    INTERNAL_MOUNT = "STICKYDISK_INTERNAL_MOUNT"
    DEVICE = "STICKYDISK_DEVICE"
    ERROR = "STICKYDISK_ERROR"


@dataclass(frozen=True)
class AcquiredDisk:
    """Control plane answer to an acquisition request."""

    expose_id: str
    device: str


@dataclass(frozen=True)
class StickyDiskSession:
    """
    One acquisition of a sticky disk, mounted and exposed to the job.

    Attributes:
        sticky_disk_key: User-chosen cache identity
        expose_id: Opaque session handle from the control plane
        device: Block device path
        internal_mount_path: Hidden mount root of the raw filesystem
        exposed_path: Path visible to the job (bind mount of the work area)
    """

    sticky_disk_key: str
    expose_id: str
    device: str
    internal_mount_path: str
    exposed_path: str

    @property
    def work_dir(self) -> str:
        return f"{self.internal_mount_path}/work"


@dataclass(frozen=True)
class JobState:
    """
    Record bridging the setup and teardown phases of one job.

    Invariant: a session is eligible for commit only when ``error`` is
    unset and ``expose_id`` is present.
    """

    sticky_disk_path: Optional[str] = None
    sticky_disk_key: Optional[str] = None
    expose_id: Optional[str] = None
    internal_mount: Optional[str] = None
    device: Optional[str] = None
    error: bool = False

    @property
    def has_mount_attempt(self) -> bool:
        return bool(self.sticky_disk_path)

    @property
    def eligible_for_commit(self) -> bool:
        return not self.error and bool(self.expose_id)

    def to_dict(self) -> Dict[str, str]:
        """Convert to the flat string mapping used by job state stores."""
        values = {
            JobStateField.PATH.value: self.sticky_disk_path,
            JobStateField.KEY.value: self.sticky_disk_key,
            JobStateField.EXPOSE_ID.value: self.expose_id,
            JobStateField.INTERNAL_MOUNT.value: self.internal_mount,
            JobStateField.DEVICE.value: self.device,
            JobStateField.ERROR.value: "true" if self.error else None,
        }
        return {key: value for key, value in values.items() if value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JobState":
        """Build a record from a flat string mapping; missing keys stay unset."""

        def _get(name: JobStateField) -> Optional[str]:
            value = data.get(name.value)
            return str(value) if value else None

        return cls(
            sticky_disk_path=_get(JobStateField.PATH),
            sticky_disk_key=_get(JobStateField.KEY),
            expose_id=_get(JobStateField.EXPOSE_ID),
            internal_mount=_get(JobStateField.INTERNAL_MOUNT),
            device=_get(JobStateField.DEVICE),
            error=str(data.get(JobStateField.ERROR.value, "")).lower() == "true",
        )


@dataclass(frozen=True)
class StepFailure:
    """A failed or cancelled step found in the runner log."""

    result: str
    name: Optional[str] = None
    action: Optional[str] = None
    error_messages: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class StepFailureReport:
    """
    Outcome of scanning the runner log for failed upstream steps.

    ``error`` is set when the scan itself failed, in which case the
    report is ambiguous and cannot be trusted as a success signal.
    """

    has_failures: bool
    failed_count: int
    failed_steps: List[StepFailure] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def is_ambiguous(self) -> bool:
        return self.error is not None

    @classmethod
    def unavailable(cls, error: str) -> "StepFailureReport":
        return cls(has_failures=False, failed_count=0, error=error)


@dataclass(frozen=True)
class TeardownReport:
    """
    Result of quiescing and unmounting a sticky disk.

    Attributes:
        was_mounted: Whether any sticky disk mount was found
        device: Block device resolved from the mount, if any
        fs_usage_bytes: Used bytes measured before unmount, None if unknown
        unmounted: Whether every mount point was released
        flushed: Whether the post-unmount buffer flush succeeded
    """

    was_mounted: bool
    device: Optional[str] = None
    fs_usage_bytes: Optional[int] = None
    unmounted: bool = True
    flushed: bool = False


class CacheDeletionOutcome(str, Enum):
    """Result category of a cache deletion request."""

    DELETED = "deleted"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class CacheDeletionResult:
    """Result of a cache deletion request."""

    outcome: CacheDeletionOutcome
    message: str
    deleted_count: Optional[int] = None

    @property
    def found(self) -> bool:
        return self.outcome == CacheDeletionOutcome.DELETED
