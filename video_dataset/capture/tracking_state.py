"""
Tracking state for a single-object tracking run.

Uninitialized -> Tracking(observation) -> Lost. Lost is absorbing: once a
run loses the object it never reports Tracking again.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .coordinate import Rect


class TrackStatus(Enum):
    """Status of a tracking run."""

    UNINITIALIZED = "uninitialized"
    TRACKING = "tracking"
    LOST = "lost"


@dataclass
class TrackState:
    """
    Mutable state of one tracking run.

    Tracks the current observation, the frames that produced an
    observation, and where the object was lost.
    """

    status: TrackStatus = TrackStatus.UNINITIALIZED
    observation: Optional[Rect] = None
    tracked_frames: List[int] = field(default_factory=list)
    lost_at: Optional[int] = None
    lost_reason: Optional[str] = None

    @property
    def is_tracking(self) -> bool:
        return self.status is TrackStatus.TRACKING

    @property
    def is_lost(self) -> bool:
        return self.status is TrackStatus.LOST

    def seed(self, observation: Rect) -> None:
        """Enter Tracking with the externally supplied observation."""
        if self.status is not TrackStatus.UNINITIALIZED:
            raise RuntimeError(f"Cannot seed a run in state '{self.status.value}'")
        self.status = TrackStatus.TRACKING
        self.observation = observation

    def advance(self, frame_index: int, observation: Rect) -> None:
        """Record a successful step."""
        if self.status is not TrackStatus.TRACKING:
            raise RuntimeError(f"Cannot advance a run in state '{self.status.value}'")
        self.observation = observation
        self.tracked_frames.append(frame_index)

    def mark_lost(self, frame_index: int, reason: str) -> None:
        """Move to Lost. Has no effect if the run is already lost."""
        if self.status is TrackStatus.LOST:
            return
        self.status = TrackStatus.LOST
        self.observation = None
        self.lost_at = frame_index
        self.lost_reason = reason
