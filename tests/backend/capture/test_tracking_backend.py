"""
Tests for the OpenCV tracking backend.

The OpenCV tracker itself is replaced with a MagicMock; only the
conversion between tracker space and OpenCV pixel boxes is tested.
"""

from unittest.mock import MagicMock

import numpy as np
import pytest

from video_dataset.capture import tracking_backend
from video_dataset.capture.coordinate import Rect
from video_dataset.capture.tracking_backend import OpenCVTrackingBackend
from video_dataset.common.exceptions import ValidationError


@pytest.fixture
def cv_tracker(monkeypatch):
    """Mock OpenCV tracker returned by the factory."""
    tracker = MagicMock()
    tracker.init.return_value = None
    tracker.update.return_value = (True, (8.0, 6.0, 16.0, 12.0))
    monkeypatch.setattr(tracking_backend, "_resolve_factory", lambda name: lambda: tracker)
    return tracker


@pytest.fixture
def frame():
    return np.zeros((48, 64, 3), dtype=np.uint8)


class TestOpenCVTrackingBackend:
    """Test OpenCVTrackingBackend."""

    def test_unknown_tracker_type(self):
        """Test that an unknown tracker type is rejected."""
        with pytest.raises(ValidationError):
            OpenCVTrackingBackend("does-not-exist")

    def test_unavailable_tracker(self, monkeypatch):
        """Test that a tracker missing from the OpenCV build is reported."""
        monkeypatch.setattr(tracking_backend, "_resolve_factory", lambda name: None)

        with pytest.raises(ValidationError) as exc_info:
            OpenCVTrackingBackend("csrt")
        assert exc_info.value.field_name == "tracker_type"

    def test_initialize_converts_to_pixel_box(self, cv_tracker, frame):
        """Test that the normalized observation is passed as a top-left pixel box."""
        backend = OpenCVTrackingBackend("mil")
        backend.initialize(frame, Rect(0.125, 0.625, 0.25, 0.25))

        args = cv_tracker.init.call_args[0]
        assert args[0] is frame
        assert args[1] == (8, 6, 16, 12)

    def test_initialize_failure_flag(self, cv_tracker, frame):
        """Test that a False init result raises."""
        cv_tracker.init.return_value = False
        backend = OpenCVTrackingBackend("mil")

        with pytest.raises(RuntimeError):
            backend.initialize(frame, Rect(0.125, 0.625, 0.25, 0.25))

    def test_initialize_empty_rect(self, cv_tracker, frame):
        """Test that an empty observation is rejected."""
        backend = OpenCVTrackingBackend("mil")

        with pytest.raises(ValueError):
            backend.initialize(frame, Rect(0.1, 0.1, 0.0, 0.0))

    def test_track_returns_normalized_observation(self, cv_tracker, frame):
        """Test that the OpenCV box is converted back to tracker space."""
        backend = OpenCVTrackingBackend("mil")
        backend.initialize(frame, Rect(0.125, 0.625, 0.25, 0.25))

        assert backend.track(frame, Rect(0.125, 0.625, 0.25, 0.25)) == Rect(
            0.125, 0.625, 0.25, 0.25
        )

    def test_track_failure_returns_none(self, cv_tracker, frame):
        """Test that an unsuccessful update yields no observation."""
        cv_tracker.update.return_value = (False, (0, 0, 0, 0))
        backend = OpenCVTrackingBackend("mil")
        backend.initialize(frame, Rect(0.125, 0.625, 0.25, 0.25))

        assert backend.track(frame, Rect(0.125, 0.625, 0.25, 0.25)) is None

    def test_track_before_initialize(self, cv_tracker, frame):
        """Test that tracking without initialization fails."""
        with pytest.raises(RuntimeError):
            OpenCVTrackingBackend("mil").track(frame, Rect(0, 0, 1, 1))
