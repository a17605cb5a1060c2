"""
Frame Sampler

Extracts one frame per whole second of a video: indices 0, 1, ...,
floor(duration) - 1, each read with an exact seek.

Two delivery modes:
- iter_sequential(): frames in increasing index order from a single
  source, for tracking runs where each step depends on the previous one
- iter_unordered(): frames extracted concurrently and yielded in
  completion order, for untracked capture

A frame that cannot be decoded is yielded with image=None and recorded in
`skipped`; the sequence always continues.
"""

import math
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Iterator, List, NamedTuple, Optional, Union

import cv2
import numpy as np

from ..common.constants import DEFAULT_SAMPLER_WORKERS, SAMPLING_INTERVAL_SEC
from ..common.exceptions import FrameExtractionError
from ..common.logger import get_logger
from ..common.validation import PipelineError

logger = get_logger(__name__)

SOURCE = "FrameSampler"


class SampledFrame(NamedTuple):
    """One sampled second. image is None when extraction failed."""

    frame_index: int
    image: Optional[np.ndarray]


# =============================================================================
# Video Sources
# =============================================================================


class VideoSource(ABC):
    """
    Random-access reader over one video.

    Instances are not shared between threads.
    """

    @property
    @abstractmethod
    def duration(self) -> float:
        """Duration in seconds (0.0 when unknown)."""

    @abstractmethod
    def read_at(self, seconds: float) -> np.ndarray:
        """
        Decode the frame at an exact timestamp.

        Raises:
            FrameExtractionError: If the frame cannot be decoded
        """

    def close(self) -> None:
        pass

    def __enter__(self) -> "VideoSource":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class OpenCVVideoSource(VideoSource):
    """VideoSource backed by cv2.VideoCapture."""

    def __init__(self, video_path: Union[str, Path]):
        self.video_path = str(video_path)
        self._cap = cv2.VideoCapture(self.video_path)
        if not self._cap.isOpened():
            self._cap.release()
            raise FrameExtractionError("Failed to open video", video_path=self.video_path)

        self.fps = float(self._cap.get(cv2.CAP_PROP_FPS) or 0.0)
        self.frame_count = int(self._cap.get(cv2.CAP_PROP_FRAME_COUNT) or 0)

    @property
    def duration(self) -> float:
        if self.fps <= 0 or self.frame_count <= 0:
            return 0.0
        return self.frame_count / self.fps

    def read_at(self, seconds: float) -> np.ndarray:
        # Seek by frame number: no tolerance around the requested time
        frame_number = int(round(seconds * self.fps))
        if not self._cap.set(cv2.CAP_PROP_POS_FRAMES, frame_number):
            raise FrameExtractionError(
                f"Seek to frame {frame_number} failed",
                frame_index=int(seconds),
                video_path=self.video_path,
            )

        ret, frame = self._cap.read()
        if not ret or frame is None:
            raise FrameExtractionError(
                f"Failed to decode frame {frame_number}",
                frame_index=int(seconds),
                video_path=self.video_path,
            )
        return frame

    def close(self) -> None:
        self._cap.release()


SourceFactory = Callable[[Union[str, Path]], VideoSource]


# =============================================================================
# Sampler
# =============================================================================


def sample_count(duration: float) -> int:
    """Number of whole-second samples in a video of the given duration."""
    if duration <= 0 or math.isnan(duration):
        return 0
    return int(math.floor(duration / SAMPLING_INTERVAL_SEC))


class FrameSampler:
    """
    One-shot frame sampler over a single video.

    Each iter_* call opens its own source(s); the skipped list accumulates
    across calls.
    """

    def __init__(
        self,
        video_path: Union[str, Path],
        source_factory: SourceFactory = OpenCVVideoSource,
        max_workers: int = DEFAULT_SAMPLER_WORKERS,
    ):
        self.video_path = Path(video_path)
        self.source_factory = source_factory
        self.max_workers = max(1, max_workers)
        self.skipped: List[PipelineError] = []
        # Number of samples, known once a source has been opened
        self.total: Optional[int] = None

    def _skip(self, error: FrameExtractionError, frame_index: Optional[int]) -> None:
        logger.warning(f"{self.video_path.name}: {error}")
        self.skipped.append(PipelineError.from_exception(error, source=SOURCE, item=frame_index))

    def _open(self) -> Optional[VideoSource]:
        try:
            return self.source_factory(self.video_path)
        except FrameExtractionError as e:
            self._skip(e, None)
            return None

    def frame_indices(self) -> List[int]:
        """Indices that will be sampled. Empty if the video cannot be opened."""
        source = self._open()
        if source is None:
            return []
        with source:
            self.total = sample_count(source.duration)
            return list(range(self.total))

    def _read(self, source: VideoSource, frame_index: int) -> np.ndarray:
        return source.read_at(frame_index * SAMPLING_INTERVAL_SEC)

    def iter_sequential(self) -> Iterator[SampledFrame]:
        """Yield every sample in increasing index order from one source."""
        source = self._open()
        if source is None:
            return

        with source:
            self.total = sample_count(source.duration)
            logger.debug(f"{self.video_path.name}: sampling {self.total} frame(s) sequentially")
            for frame_index in range(self.total):
                try:
                    image = self._read(source, frame_index)
                except FrameExtractionError as e:
                    self._skip(e, frame_index)
                    image = None
                yield SampledFrame(frame_index, image)

    def _extract_one(self, frame_index: int) -> np.ndarray:
        with self.source_factory(self.video_path) as source:
            return self._read(source, frame_index)

    def iter_unordered(self) -> Iterator[SampledFrame]:
        """
        Yield every sample in completion order.

        Each worker task opens its own source. Results are consumed in the
        calling thread, so callers may write each frame as it arrives.
        """
        indices = self.frame_indices()
        if not indices:
            return

        logger.debug(
            f"{self.video_path.name}: sampling {len(indices)} frame(s) "
            f"with {self.max_workers} worker(s)"
        )
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_to_index = {
                executor.submit(self._extract_one, frame_index): frame_index
                for frame_index in indices
            }

            for future in as_completed(future_to_index):
                frame_index = future_to_index[future]
                try:
                    image = future.result()
                except FrameExtractionError as e:
                    self._skip(e, frame_index)
                    image = None
                yield SampledFrame(frame_index, image)
