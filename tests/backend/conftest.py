"""
Backend test fixtures.

Fake video sources and tracking backends so sampling and tracking
scenarios (extraction failures, tracking loss) are deterministic and need
no real video decoding or OpenCV trackers.
"""

from typing import Iterable, List, Optional, Tuple

import numpy as np
import pytest

from video_dataset.capture.coordinate import Rect
from video_dataset.capture.frame_sampler import VideoSource
from video_dataset.capture.tracking_backend import TrackingBackend
from video_dataset.common.exceptions import FrameExtractionError


class FakeVideoSource(VideoSource):
    """In-memory video: frame at second i is filled with gray level 10 * i."""

    def __init__(
        self,
        duration: float = 5.4,
        size: Tuple[int, int] = (64, 48),
        fail_indices: Iterable[int] = (),
    ):
        self._duration = duration
        self.size = size
        self.fail_indices = set(fail_indices)
        self.reads: List[float] = []
        self.closed = False

    @property
    def duration(self) -> float:
        return self._duration

    def read_at(self, seconds: float) -> np.ndarray:
        self.reads.append(seconds)
        index = int(seconds)
        if index in self.fail_indices:
            raise FrameExtractionError("Synthetic decode failure", frame_index=index)
        width, height = self.size
        return np.full((height, width, 3), (10 * index) % 256, dtype=np.uint8)

    def close(self) -> None:
        self.closed = True


class FakeTrackingBackend(TrackingBackend):
    """
    Stationary-object tracker.

    Every track() call returns the prior unchanged, except:
    - fail_at_step: that call (1-based) fails; later calls would succeed again
    - fail_after: every call after this many successful calls fails
    """

    def __init__(
        self,
        fail_at_step: Optional[int] = None,
        fail_after: Optional[int] = None,
        raise_on_fail: bool = False,
        fail_init: bool = False,
    ):
        self.fail_at_step = fail_at_step
        self.fail_after = fail_after
        self.raise_on_fail = raise_on_fail
        self.fail_init = fail_init
        self.initialized_with: Optional[Rect] = None
        self.steps = 0

    def initialize(self, image: np.ndarray, observation: Rect) -> None:
        if self.fail_init:
            raise RuntimeError("Synthetic init failure")
        self.initialized_with = observation

    def track(self, image: np.ndarray, prior: Rect) -> Optional[Rect]:
        self.steps += 1
        failed = self.steps == self.fail_at_step or (
            self.fail_after is not None and self.steps > self.fail_after
        )
        if failed:
            if self.raise_on_fail:
                raise RuntimeError("Synthetic tracker error")
            return None
        return prior


@pytest.fixture
def make_source_factory():
    """
    Build a source factory for FrameSampler / FrameCapturePipeline.

    The returned factory records every source it opened in `.opened`.
    """

    def _make(
        duration: float = 5.4,
        size: Tuple[int, int] = (64, 48),
        fail_indices: Iterable[int] = (),
        open_error: bool = False,
    ):
        opened: List[FakeVideoSource] = []

        def factory(video_path):
            if open_error:
                raise FrameExtractionError("Failed to open video", video_path=str(video_path))
            source = FakeVideoSource(duration, size, fail_indices)
            opened.append(source)
            return source

        factory.opened = opened
        return factory

    return _make


@pytest.fixture
def fake_backend_cls():
    """The FakeTrackingBackend class."""
    return FakeTrackingBackend


@pytest.fixture
def blank_frame() -> np.ndarray:
    """64x48 black frame."""
    return np.zeros((48, 64, 3), dtype=np.uint8)
