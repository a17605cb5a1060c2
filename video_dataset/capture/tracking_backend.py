"""
Single-object tracking backends.

A backend is the visual tracking capability driven frame by frame by
ObjectTracker. Observations cross this boundary in tracker space
(normalized, bottom-left origin); backends convert to whatever their
underlying library expects.
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional

import cv2
import numpy as np

from ..annotation.models import Coordinates
from ..common.constants import DEFAULT_TRACKER_TYPE, TRACKER_FACTORIES
from ..common.exceptions import ValidationError
from ..common.image_utils import image_size
from .coordinate import Rect, from_normalized_tracker_space, to_normalized_tracker_space


def _resolve_factory(class_name: str) -> Optional[Callable[[], object]]:
    """Find a tracker constructor across OpenCV builds (main module, then cv2.legacy)."""
    for module in (cv2, getattr(cv2, "legacy", None)):
        if module is None:
            continue
        factory = getattr(module, f"{class_name}_create", None)
        if factory is None:
            factory = getattr(getattr(module, class_name, None), "create", None)
        if factory is not None:
            return factory
    return None


class TrackingBackend(ABC):
    """
    Abstract base class for single-object trackers.

    Subclasses must implement:
    - initialize(): bind the tracker to the object on the seeding frame
    - track(): estimate the object in the next frame
    """

    @abstractmethod
    def initialize(self, image: np.ndarray, observation: Rect) -> None:
        """
        Start tracking the object described by `observation` in `image`.

        Raises:
            Exception: Any backend error; the caller treats it as a failed seed
        """

    @abstractmethod
    def track(self, image: np.ndarray, prior: Rect) -> Optional[Rect]:
        """
        Estimate the object's box in `image`.

        Args:
            image: Next frame (BGR)
            prior: Observation from the previous step

        Returns:
            New observation in tracker space, or None if the object was not found
        """


class OpenCVTrackingBackend(TrackingBackend):
    """
    Tracking backend built on OpenCV's single-object trackers.

    OpenCV trackers keep their own model of the object between updates, so
    the prior passed to track() is not re-applied; it is the observation the
    tracker itself produced on the previous step.
    """

    def __init__(self, tracker_type: str = DEFAULT_TRACKER_TYPE):
        if tracker_type not in TRACKER_FACTORIES:
            raise ValidationError(
                f"Unknown tracker type, expected one of {sorted(TRACKER_FACTORIES)}",
                field_name="tracker_type",
                invalid_value=tracker_type,
            )

        factory = _resolve_factory(TRACKER_FACTORIES[tracker_type])
        if factory is None:
            raise ValidationError(
                f"Tracker '{tracker_type}' is not available in this OpenCV build "
                f"(opencv-contrib-python provides it)",
                field_name="tracker_type",
                invalid_value=tracker_type,
            )

        self.tracker_type = tracker_type
        self._factory = factory
        self._tracker = None

    def initialize(self, image: np.ndarray, observation: Rect) -> None:
        size = image_size(image)
        box = from_normalized_tracker_space(observation, size, flip=True)
        if box.is_empty:
            raise ValueError("Cannot track an empty rectangle")

        self._tracker = self._factory()
        # OpenCV >= 4.5 returns None; older builds return a success flag
        ok = self._tracker.init(image, (box.x, box.y, box.width, box.height))
        if ok is False:
            self._tracker = None
            raise RuntimeError(f"OpenCV {self.tracker_type} tracker failed to initialize")

    def track(self, image: np.ndarray, prior: Rect) -> Optional[Rect]:
        if self._tracker is None:
            raise RuntimeError("Tracker not initialized. Call initialize() first.")

        ok, bbox = self._tracker.update(image)
        if not ok:
            return None

        x, y, w, h = (int(round(v)) for v in bbox)
        if w <= 0 or h <= 0:
            return None

        return to_normalized_tracker_space(
            Coordinates(x=max(0, x), y=max(0, y), width=w, height=h),
            image_size(image),
        )
