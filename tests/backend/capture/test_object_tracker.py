"""
Tests for ObjectTracker.

Uses FakeTrackingBackend (stationary object, scripted failures).
"""

import numpy as np
import pytest

from video_dataset.annotation.models import Coordinates
from video_dataset.capture.object_tracker import ObjectTracker
from video_dataset.capture.tracking_state import TrackStatus
from video_dataset.common.exceptions import TrackingFailure

TEMPLATE = Coordinates(8, 6, 16, 12)


def run_tracker(tracker, frame, num_frames):
    """Seed on frame 0 and step through the rest; return written indices."""
    written = []
    if tracker.start(frame, TEMPLATE) is not None:
        written.append(0)
    for i in range(1, num_frames):
        if tracker.step(i, frame) is not None:
            written.append(i)
    return written


class TestObjectTrackerStart:
    """Test seeding the tracker."""

    def test_start_returns_template(self, fake_backend_cls, blank_frame):
        """Test that the seeding frame is annotated with the template."""
        tracker = ObjectTracker(fake_backend_cls())

        assert tracker.start(blank_frame, TEMPLATE) == TEMPLATE
        assert tracker.status is TrackStatus.TRACKING

    def test_start_passes_normalized_observation(self, fake_backend_cls, blank_frame):
        """Test that the backend receives the flipped normalized rectangle."""
        backend = fake_backend_cls()
        ObjectTracker(backend).start(blank_frame, TEMPLATE)

        obs = backend.initialized_with
        assert (obs.x, obs.y, obs.width, obs.height) == (0.125, 0.625, 0.25, 0.25)

    def test_start_failure_marks_lost(self, fake_backend_cls, blank_frame):
        """Test that a rejected seed loses the run immediately."""
        tracker = ObjectTracker(fake_backend_cls(fail_init=True))

        assert tracker.start(blank_frame, TEMPLATE) is None
        assert tracker.is_lost
        assert isinstance(tracker.failures[0], TrackingFailure)
        assert tracker.failures[0].frame_index == 0

    def test_start_twice_rejected(self, fake_backend_cls, blank_frame):
        """Test that a tracker cannot be started twice."""
        tracker = ObjectTracker(fake_backend_cls())
        tracker.start(blank_frame, TEMPLATE)

        with pytest.raises(RuntimeError):
            tracker.start(blank_frame, TEMPLATE)

    def test_step_before_start_rejected(self, fake_backend_cls, blank_frame):
        """Test that stepping an unstarted tracker fails."""
        with pytest.raises(RuntimeError):
            ObjectTracker(fake_backend_cls()).step(1, blank_frame)


class TestObjectTrackerLoss:
    """Test tracking loss behaviour."""

    @pytest.mark.parametrize("k", [0, 1, 2, 3])
    def test_records_up_to_failure(self, fake_backend_cls, blank_frame, k):
        """Test that success on frames 0..k and failure at k+1 yields k+1 frames."""
        tracker = ObjectTracker(fake_backend_cls(fail_at_step=k + 1))

        written = run_tracker(tracker, blank_frame, num_frames=6)

        assert written == list(range(k + 1))
        assert tracker.is_lost
        assert tracker.state.lost_at == k + 1

    def test_lost_never_recovers(self, fake_backend_cls, blank_frame):
        """Test that later frames are skipped even if the backend would succeed."""
        backend = fake_backend_cls(fail_at_step=2)
        tracker = ObjectTracker(backend)

        run_tracker(tracker, blank_frame, num_frames=6)

        assert backend.steps == 2
        assert tracker.status is TrackStatus.LOST

    def test_backend_exception_marks_lost(self, fake_backend_cls, blank_frame):
        """Test that a backend error is treated like a missing observation."""
        tracker = ObjectTracker(fake_backend_cls(fail_at_step=1, raise_on_fail=True))
        tracker.start(blank_frame, TEMPLATE)

        assert tracker.step(1, blank_frame) is None
        assert tracker.is_lost
        assert "Synthetic tracker error" in tracker.failures[0].message

    def test_manual_mark_lost(self, fake_backend_cls, blank_frame):
        """Test ending a run from outside the backend."""
        tracker = ObjectTracker(fake_backend_cls())
        tracker.mark_lost(0, "Seed frame missing")

        assert tracker.is_lost
        assert tracker.step(1, blank_frame) is None

    def test_lost_frame_hook(self, fake_backend_cls, blank_frame):
        """Test that subclasses can override the lost-frame hook."""

        class RecoveringTracker(ObjectTracker):
            def _on_lost_frame(self, frame_index, image):
                return Coordinates(0, 0, 1, 1)

        tracker = RecoveringTracker(fake_backend_cls(fail_at_step=1))
        tracker.start(blank_frame, TEMPLATE)
        tracker.step(1, blank_frame)

        assert tracker.step(2, blank_frame) == Coordinates(0, 0, 1, 1)


class TestObjectTrackerOutput:
    """Test output coordinates."""

    def test_flipped_output_matches_template(self, fake_backend_cls, blank_frame):
        """Test that a stationary object keeps the template box."""
        tracker = ObjectTracker(fake_backend_cls())
        tracker.start(blank_frame, TEMPLATE)

        assert tracker.step(1, blank_frame) == TEMPLATE

    def test_legacy_unflipped_output(self, fake_backend_cls, blank_frame):
        """Test the legacy placement: y is mirrored about the frame center."""
        tracker = ObjectTracker(fake_backend_cls(), flip_output=False)
        tracker.start(blank_frame, TEMPLATE)

        assert tracker.step(1, blank_frame) == Coordinates(8, 30, 16, 12)

    def test_output_is_clamped(self, fake_backend_cls):
        """Test that boxes are clamped to the frame."""
        frame = np.zeros((48, 64, 3), dtype=np.uint8)
        tracker = ObjectTracker(fake_backend_cls())

        coords = tracker.start(frame, Coordinates(56, 40, 16, 16))

        assert coords == Coordinates(56, 40, 8, 8)
