"""
Frame Capture Pipeline

Turns a video into a dataset directory of frame images and sidecars.

Tracked capture (a template rectangle was drawn):
    frames are read sequentially, the tracker is seeded on frame 0 and every
    frame it follows the object through is written with the tracked box.
    Once the object is lost the rest of the video is skipped.

Untracked capture (no selection):
    frames are extracted concurrently and each is written as it arrives
    with one unlabeled, centred default box.

Usage:
    pipeline = FrameCapturePipeline(CaptureConfig(output_dir="captures"))
    report = pipeline.capture_videos(["a.mp4", "b.mp4"], registry=registry)
    print(report.summary())
"""

import uuid
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple, Union

import numpy as np
from colorama import Fore, Style
from tabulate import tabulate
from tqdm import tqdm

from ..annotation.annotation_store import AnnotationStore
from ..annotation.models import Annotation, Coordinates, FrameRecord
from ..common.config_utils import CaptureConfig
from ..common.exceptions import DirectoryCreationError, FrameWriteError, VideoDatasetError
from ..common.image_utils import image_size
from ..common.logger import get_logger
from ..common.validation import ErrorSeverity, PipelineError
from ..services.dataset_registry import DatasetRegistry
from .coordinate import Rect, centered_box, to_pixel_space
from .frame_sampler import FrameSampler, OpenCVVideoSource, SourceFactory
from .object_tracker import ObjectTracker
from .tracking_backend import OpenCVTrackingBackend, TrackingBackend
from .tracking_state import TrackStatus

logger = get_logger(__name__)

SOURCE = "FrameCapturePipeline"


@dataclass
class TemplateSelection:
    """
    Rectangle drawn over a preview, with the preview's size.

    Without a display_size the rectangle is taken to be in native pixels.
    """

    display_rect: Optional[Rect]
    display_size: Optional[Tuple[float, float]] = None

    @property
    def is_empty(self) -> bool:
        return self.display_rect is None or self.display_rect.is_empty

    def to_pixels(self, frame_size: Tuple[int, int]) -> Coordinates:
        return to_pixel_space(self.display_rect, self.display_size or frame_size, frame_size)


@dataclass
class CaptureResult:
    """Outcome of capturing one video."""

    video_path: Path
    dataset_name: str
    directory: Optional[Path] = None
    frames_written: List[int] = field(default_factory=list)
    skipped: List[PipelineError] = field(default_factory=list)
    tracked: bool = False
    track_status: Optional[TrackStatus] = None
    error: Optional[str] = None
    replaced: Optional[Path] = None

    @property
    def success(self) -> bool:
        """A partial dataset is a success; zero frames is not."""
        return self.directory is not None and len(self.frames_written) > 0

    @property
    def mode(self) -> str:
        return "tracked" if self.tracked else "untracked"


@dataclass
class BatchCaptureReport:
    """Report for a multi-video capture."""

    timestamp: str
    results: List[CaptureResult] = field(default_factory=list)

    @property
    def succeeded(self) -> List[CaptureResult]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> List[CaptureResult]:
        return [r for r in self.results if not r.success]

    @property
    def total_frames(self) -> int:
        return sum(len(r.frames_written) for r in self.results)

    def summary(self) -> str:
        """Generate formatted summary report."""
        lines = [
            f"\n{'='*60}",
            "  Capture Report",
            f"{'='*60}",
            f"  Timestamp: {self.timestamp}",
            f"  Videos: {len(self.results)}",
            f"  Succeeded: {Fore.GREEN}{len(self.succeeded)}{Style.RESET_ALL}",
            f"  Failed: {Fore.RED}{len(self.failed)}{Style.RESET_ALL}",
            f"  Frames written: {self.total_frames}",
            "",
        ]

        replaced = [r for r in self.results if r.replaced is not None]
        for result in replaced:
            lines.append(
                f"  {Fore.YELLOW}{result.dataset_name} replaced {result.replaced} "
                f"in the registry{Style.RESET_ALL}"
            )
        if replaced:
            lines.append("")

        table_data = []
        for result in self.results:
            if result.success:
                status = (
                    f"{Fore.YELLOW}PARTIAL{Style.RESET_ALL}"
                    if result.skipped
                    else f"{Fore.GREEN}OK{Style.RESET_ALL}"
                )
            else:
                status = f"{Fore.RED}FAIL{Style.RESET_ALL}"
            table_data.append(
                [
                    result.dataset_name,
                    result.mode,
                    len(result.frames_written),
                    len(result.skipped),
                    status,
                    str(result.directory) if result.directory else (result.error or "-"),
                ]
            )

        if table_data:
            lines.append(
                tabulate(
                    table_data,
                    headers=["Video", "Mode", "Frames", "Skipped", "Status", "Directory"],
                    tablefmt="simple",
                )
            )

        lines.append(f"\n{'='*60}\n")
        return "\n".join(lines)


class FrameCapturePipeline:
    """
    Captures videos into dataset directories.

    Collaborators can be replaced for testing: `source_factory` opens videos,
    `backend_factory` creates one tracking backend per tracked video.
    """

    def __init__(
        self,
        config: Optional[CaptureConfig] = None,
        store: Optional[AnnotationStore] = None,
        backend_factory: Optional[Callable[[], TrackingBackend]] = None,
        source_factory: SourceFactory = OpenCVVideoSource,
    ):
        self.config = config or CaptureConfig()
        self.store = store or AnnotationStore(
            image_extension=self.config.image_extension,
            jpeg_quality=self.config.jpeg_quality,
        )
        self.backend_factory = backend_factory or self._default_backend
        self.source_factory = source_factory

    def _default_backend(self) -> TrackingBackend:
        return OpenCVTrackingBackend(self.config.tracker_type)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def create_dataset_directory(self) -> Path:
        """
        Create a fresh, uniquely named dataset directory.

        Raises:
            DirectoryCreationError: If the directory cannot be created
        """
        directory = self.config.output_dir / uuid.uuid4().hex
        try:
            directory.mkdir(parents=True, exist_ok=False)
        except OSError as e:
            raise DirectoryCreationError(
                f"Failed to create dataset directory: {e}", path=str(directory)
            ) from e
        return directory

    def _annotation(self, coordinates: Coordinates) -> Annotation:
        return Annotation(label=self.config.default_label, coordinates=coordinates)

    def _default_box(self, image: np.ndarray) -> Coordinates:
        return centered_box(image_size(image), self.config.default_box_ratio)

    def _write_frame(
        self,
        result: CaptureResult,
        frame_index: int,
        image: np.ndarray,
        coordinates: Coordinates,
    ) -> None:
        record = FrameRecord.for_frame(
            frame_index,
            image,
            [self._annotation(coordinates)],
            self.config.image_extension,
        )
        try:
            self.store.write(record, result.directory)
        except FrameWriteError as e:
            logger.warning(f"{result.dataset_name}: frame {frame_index} dropped: {e}")
            result.skipped.append(PipelineError.from_exception(e, source=SOURCE, item=frame_index))
            return
        result.frames_written.append(frame_index)

    def _progress(self, video_path: Path, total: Optional[int] = None) -> tqdm:
        return tqdm(
            total=total,
            desc=video_path.name,
            unit="frame",
            disable=not self.config.show_progress,
        )

    # -------------------------------------------------------------------------
    # Capture modes
    # -------------------------------------------------------------------------

    def _capture_tracked(
        self,
        sampler: FrameSampler,
        selection: TemplateSelection,
        backend: TrackingBackend,
        result: CaptureResult,
    ) -> None:
        tracker = ObjectTracker(
            backend,
            flip_output=not self.config.legacy_unflipped_output,
            clamp=self.config.clamp_to_frame,
        )
        untracked_fallback = False

        frames = sampler.iter_sequential()
        progress = self._progress(sampler.video_path)
        try:
            for frame_index, image in frames:
                progress.update(1)

                if image is None:
                    if tracker.status is TrackStatus.UNINITIALIZED and not untracked_fallback:
                        tracker.mark_lost(frame_index, "Seed frame could not be extracted")
                        break
                    continue

                if untracked_fallback:
                    self._write_frame(result, frame_index, image, self._default_box(image))
                    continue

                if tracker.status is TrackStatus.UNINITIALIZED:
                    template = selection.to_pixels(image_size(image))
                    if template.is_empty:
                        logger.info(
                            f"{result.dataset_name}: selection is empty at native "
                            f"resolution, capturing without tracking"
                        )
                        untracked_fallback = True
                        result.tracked = False
                        self._write_frame(result, frame_index, image, self._default_box(image))
                        continue
                    coordinates = tracker.start(image, template, frame_index)
                else:
                    coordinates = tracker.step(frame_index, image)

                if coordinates is None:
                    break
                self._write_frame(result, frame_index, image, coordinates)
        finally:
            frames.close()
            progress.close()

        if not untracked_fallback:
            result.track_status = tracker.status

        if tracker.is_lost:
            for failure in tracker.failures:
                result.skipped.append(
                    PipelineError.from_exception(failure, source=SOURCE, item=failure.frame_index)
                )
            lost_at = tracker.state.lost_at
            total = sampler.total or 0
            for frame_index in range(lost_at + 1, total):
                result.skipped.append(
                    PipelineError(
                        "Skipped after tracking loss",
                        severity=ErrorSeverity.WARNING,
                        source=SOURCE,
                        details="TrackingFailure",
                        item=str(frame_index),
                    )
                )

    def _capture_untracked(self, sampler: FrameSampler, result: CaptureResult) -> None:
        frames = sampler.iter_unordered()
        progress = self._progress(sampler.video_path)
        try:
            for frame_index, image in frames:
                progress.update(1)
                if image is None:
                    continue
                self._write_frame(result, frame_index, image, self._default_box(image))
        finally:
            frames.close()
            progress.close()

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def capture_video(
        self,
        video_path: Union[str, Path],
        selection: Optional[TemplateSelection] = None,
    ) -> CaptureResult:
        """
        Capture one video into a new dataset directory.

        Per-frame failures are collected in the result's skipped list.

        Args:
            video_path: Video to sample
            selection: Template rectangle; None or empty captures untracked

        Returns:
            CaptureResult (success means at least one frame was written)

        Raises:
            DirectoryCreationError: If the dataset directory cannot be created
            ValidationError: If the configured tracker is not available
        """
        video_path = Path(video_path)
        tracked = selection is not None and not selection.is_empty

        # Resolved before the directory is created
        backend = self.backend_factory() if tracked else None
        directory = self.create_dataset_directory()

        result = CaptureResult(
            video_path=video_path,
            dataset_name=video_path.name,
            directory=directory,
            tracked=tracked,
        )
        logger.info(f"Capturing {video_path.name} ({result.mode}) into {directory}")

        sampler = FrameSampler(
            video_path,
            source_factory=self.source_factory,
            max_workers=self.config.sampler_workers,
        )
        if tracked:
            self._capture_tracked(sampler, selection, backend, result)
        else:
            self._capture_untracked(sampler, result)

        result.frames_written.sort()
        result.skipped = sampler.skipped + result.skipped

        if result.success:
            logger.info(
                f"{video_path.name}: {len(result.frames_written)} frame(s) written, "
                f"{len(result.skipped)} skipped"
            )
        else:
            result.error = "No frames captured"
            logger.warning(f"{video_path.name}: no frames captured")
        return result

    def _capture_isolated(
        self,
        video_path: Union[str, Path],
        selection: Optional[TemplateSelection],
    ) -> CaptureResult:
        """capture_video() with a per-video failure turned into a failed result."""
        try:
            return self.capture_video(video_path, selection)
        except VideoDatasetError as e:
            logger.error(f"{Path(video_path).name}: {e}")
            return CaptureResult(
                video_path=Path(video_path),
                dataset_name=Path(video_path).name,
                tracked=selection is not None and not selection.is_empty,
                error=e.message,
                skipped=[
                    PipelineError.from_exception(
                        e, source=SOURCE, item=Path(video_path).name, severity=ErrorSeverity.ERROR
                    )
                ],
            )

    def capture_videos(
        self,
        video_paths: List[Union[str, Path]],
        selection: Optional[TemplateSelection] = None,
        registry: Optional[DatasetRegistry] = None,
    ) -> BatchCaptureReport:
        """
        Capture several videos with the same template selection.

        A failure for one video never stops the others. Each successful
        dataset is registered under its video file name once its capture
        has finished; failed captures are not registered.

        Args:
            video_paths: Videos to capture
            selection: Template rectangle applied to every video
            registry: Registry to update (optional)

        Returns:
            BatchCaptureReport with one result per video, in input order
        """
        report = BatchCaptureReport(timestamp=datetime.now().isoformat())
        workers = min(self.config.max_parallel_videos, len(video_paths))

        names = Counter(Path(p).name for p in video_paths)
        for name, count in names.items():
            if count > 1:
                logger.warning(
                    f"{count} videos share the name '{name}'; the last one captured "
                    f"is the one registered under it"
                )

        def record(result: CaptureResult) -> None:
            if registry is not None and result.success:
                result.replaced = registry.register(result.dataset_name, result.directory)

        if workers <= 1:
            for video_path in video_paths:
                result = self._capture_isolated(video_path, selection)
                record(result)
                report.results.append(result)
            return report

        by_index: Dict[int, CaptureResult] = {}
        with ThreadPoolExecutor(max_workers=workers) as executor:
            future_to_index = {
                executor.submit(self._capture_isolated, video_path, selection): i
                for i, video_path in enumerate(video_paths)
            }
            # Registry updates stay on this thread
            for future in as_completed(future_to_index):
                result = future.result()
                record(result)
                by_index[future_to_index[future]] = result

        report.results = [by_index[i] for i in range(len(video_paths))]
        return report
