"""
Object Tracker

Drives a TrackingBackend frame by frame over one capture run and converts
its observations into pixel-space Coordinates for storage.

Only one object is tracked per run. Losing the object ends tracking for
the rest of the run; _on_lost_frame() is the hook for subclasses that
want to attempt re-detection.
"""

from typing import List, Optional

import numpy as np

from ..annotation.models import Coordinates
from ..common.exceptions import TrackingFailure
from ..common.image_utils import image_size
from ..common.logger import get_logger
from .coordinate import (
    Rect,
    clamp_to_frame,
    from_normalized_tracker_space,
    to_normalized_tracker_space,
)
from .tracking_backend import TrackingBackend
from .tracking_state import TrackState, TrackStatus

logger = get_logger(__name__)


class ObjectTracker:
    """
    Sequential single-object tracker.

    Usage:
        tracker = ObjectTracker(backend)
        coords = tracker.start(first_frame, template)   # frame 0
        for index, frame in frames:
            coords = tracker.step(index, frame)         # None once lost
    """

    def __init__(
        self,
        backend: TrackingBackend,
        flip_output: bool = True,
        clamp: bool = True,
    ):
        """
        Args:
            backend: Tracking capability to drive
            flip_output: Convert observations back to top-left origin. False
                keeps the legacy unflipped placement.
            clamp: Clamp emitted Coordinates to the frame bounds
        """
        self.backend = backend
        self.flip_output = flip_output
        self.clamp = clamp
        self.state = TrackState()
        self.failures: List[TrackingFailure] = []

    @property
    def status(self) -> TrackStatus:
        return self.state.status

    @property
    def is_lost(self) -> bool:
        return self.state.is_lost

    def _to_pixels(self, observation: Rect, image: np.ndarray) -> Coordinates:
        size = image_size(image)
        coords = from_normalized_tracker_space(observation, size, flip=self.flip_output)
        if self.clamp:
            coords = clamp_to_frame(coords, size)
        return coords

    def _lose(self, frame_index: int, error: TrackingFailure) -> None:
        logger.warning(f"Tracking lost at frame {frame_index}: {error.message}")
        self.failures.append(error)
        self.state.mark_lost(frame_index, error.message)

    def start(self, image: np.ndarray, pixel_rect: Coordinates, frame_index: int = 0) -> Optional[Coordinates]:
        """
        Seed the run with the template rectangle on the first frame.

        The template itself is the annotation for the seeding frame.

        Args:
            image: First frame
            pixel_rect: Template rectangle in pixel space
            frame_index: Index of the seeding frame

        Returns:
            Coordinates for the seeding frame, or None if the backend rejected
            the template (the run is then Lost)
        """
        if self.state.status is not TrackStatus.UNINITIALIZED:
            raise RuntimeError("Tracker already started")

        observation = to_normalized_tracker_space(pixel_rect, image_size(image))
        try:
            self.backend.initialize(image, observation)
        except Exception as e:
            self._lose(
                frame_index,
                TrackingFailure(f"Tracker initialization failed: {e}", frame_index=frame_index),
            )
            return None

        self.state.seed(observation)
        self.state.tracked_frames.append(frame_index)
        return self._to_pixels(observation, image)

    def step(self, frame_index: int, image: np.ndarray) -> Optional[Coordinates]:
        """
        Advance the run by one frame.

        Returns:
            Coordinates for this frame, or None if the object is (or was
            previously) lost. No frame record should be written for None.

        Raises:
            RuntimeError: If start() was not called
        """
        if self.state.is_lost:
            return self._on_lost_frame(frame_index, image)
        if self.state.status is TrackStatus.UNINITIALIZED:
            raise RuntimeError("Tracker not started. Call start() first.")

        try:
            observation = self.backend.track(image, self.state.observation)
        except Exception as e:
            self._lose(frame_index, TrackingFailure(f"Tracker error: {e}", frame_index=frame_index))
            return None

        if observation is None or observation.is_empty:
            self._lose(frame_index, TrackingFailure("No observation returned", frame_index=frame_index))
            return None

        self.state.advance(frame_index, observation)
        return self._to_pixels(observation, image)

    def mark_lost(self, frame_index: int, reason: str) -> None:
        """End tracking for reasons outside the backend (e.g. missing seed frame)."""
        self._lose(frame_index, TrackingFailure(reason, frame_index=frame_index))

    def _on_lost_frame(self, frame_index: int, image: np.ndarray) -> Optional[Coordinates]:
        """
        Called for every frame after the object was lost.

        Returns None, so the remainder of the run is skipped. Subclasses may
        override this to re-detect the object.
        """
        return None
