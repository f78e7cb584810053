"""
Sticky Disk Entities

Core domain entity tracking one sticky disk mount attempt through its
state machine.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from stickydisk.domain.value_objects import MountState, StickyDiskSession


# Allowed forward transitions; FAILED is reachable from any non-terminal state.
_TRANSITIONS = {
    MountState.IDLE: MountState.ACQUIRING,
    MountState.ACQUIRING: MountState.FORMATTING,
    MountState.FORMATTING: MountState.MOUNTING,
    MountState.MOUNTING: MountState.MIGRATION_CHECK,
    MountState.MIGRATION_CHECK: MountState.BIND_EXPOSING,
    MountState.BIND_EXPOSING: MountState.READY,
}

_TERMINAL_STATES = {MountState.READY, MountState.FAILED}


@dataclass
class MountAttempt:
    """
    Tracks the lifecycle of a single sticky disk acquisition.

    Idle -> Acquiring -> Formatting -> Mounting -> MigrationCheck
    -> BindExposing -> Ready, with Failed reachable from every
    non-terminal state.
    """

    sticky_disk_key: str
    exposed_path: str
    state: MountState = MountState.IDLE
    history: List[MountState] = field(default_factory=lambda: [MountState.IDLE])
    expose_id: Optional[str] = None
    device: Optional[str] = None
    internal_mount_path: Optional[str] = None
    error_message: Optional[str] = None
    failed_in: Optional[MountState] = None
    started_at: datetime = field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None

    def advance(self, target: MountState) -> None:
        """Move to the next state of the chain."""
        if target == MountState.FAILED:
            raise ValueError("Use mark_as_failed() to enter the failed state")
        expected = _TRANSITIONS.get(self.state)
        if expected != target:
            raise ValueError(f"Cannot transition from {self.state.value} to {target.value}")
        self.state = target
        self.history.append(target)
        if target == MountState.READY:
            self.completed_at = datetime.utcnow()

    def mark_as_acquired(self, expose_id: str, device: str) -> None:
        """Record the control plane answer."""
        if self.state != MountState.ACQUIRING:
            raise ValueError(f"Cannot record acquisition in state: {self.state.value}")
        self.expose_id = expose_id
        self.device = device

    def mark_as_mounted(self, internal_mount_path: str) -> None:
        """Record the hidden mount root."""
        if self.state != MountState.MOUNTING:
            raise ValueError(f"Cannot record mount in state: {self.state.value}")
        self.internal_mount_path = internal_mount_path

    def mark_as_failed(self, error: str) -> None:
        """Enter the failed state from any non-terminal state."""
        if self.state in _TERMINAL_STATES:
            raise ValueError(f"Cannot fail from terminal state: {self.state.value}")
        self.failed_in = self.state
        self.state = MountState.FAILED
        self.history.append(MountState.FAILED)
        self.error_message = error
        self.completed_at = datetime.utcnow()

    @property
    def is_ready(self) -> bool:
        return self.state == MountState.READY

    @property
    def is_failed(self) -> bool:
        return self.state == MountState.FAILED

    def to_session(self) -> StickyDiskSession:
        """Build the immutable session once the attempt is ready."""
        if not self.is_ready:
            raise ValueError(f"Session is not ready: {self.state.value}")
        return StickyDiskSession(
            sticky_disk_key=self.sticky_disk_key,
            expose_id=self.expose_id,
            device=self.device,
            internal_mount_path=self.internal_mount_path,
            exposed_path=self.exposed_path,
        )
