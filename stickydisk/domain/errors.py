"""
Domain Errors

Error taxonomy for sticky disk lifecycle operations.
"""

from typing import Any, Optional


class StickyDiskError(Exception):
    """Base class for sticky disk errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class TransportError(StickyDiskError):
    """The control plane could not be reached or rejected the request."""

    def __init__(self, message: str, code: Optional[str] = None, status_code: Optional[int] = None):
        self.code = code
        self.status_code = status_code
        super().__init__(message, {"code": code, "status_code": status_code})


class AcquisitionTimeout(StickyDiskError):
    """The acquisition deadline expired before the control plane answered."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Request to get sticky disk timed out after {timeout}s", {"timeout": timeout})


class FormatError(StickyDiskError):
    """The block device could not be formatted and is unusable."""
    pass


class IncompatibleFormatError(StickyDiskError):
    """The sticky disk holds data in the legacy flat-root layout."""

    def __init__(self, mount_path: str):
        self.mount_path = mount_path
        super().__init__(
            "Incompatible sticky disk format detected (data at filesystem root, not in work/). "
            "Please clear the sticky disk cache and try again.",
            {"mount_path": mount_path},
        )


class MountError(StickyDiskError):
    """An OS-level mount or unmount operation failed."""
    pass


class MeasurementUnavailable(StickyDiskError):
    """Filesystem usage could not be measured. Never fatal."""
    pass


class AmbiguousOutcome(StickyDiskError):
    """The upstream step failure check could not decide."""
    pass


class JobStateError(StickyDiskError):
    """Job state could not be written, or a field was written twice."""
    pass
