"""
Video Dataset Capture - Capture Module

Frame sampling, single-object tracking and the per-video capture pipeline.
"""

from .coordinate import (
    Rect,
    to_pixel_space,
    to_normalized_tracker_space,
    from_normalized_tracker_space,
    clamp_to_frame,
    centered_box,
)
from .frame_sampler import (
    SampledFrame,
    VideoSource,
    OpenCVVideoSource,
    FrameSampler,
    sample_count,
)
from .tracking_state import TrackStatus, TrackState
from .tracking_backend import TrackingBackend, OpenCVTrackingBackend
from .object_tracker import ObjectTracker
from .capture_service import (
    TemplateSelection,
    CaptureResult,
    BatchCaptureReport,
    FrameCapturePipeline,
)

__all__ = [
    # Coordinates
    "Rect",
    "to_pixel_space",
    "to_normalized_tracker_space",
    "from_normalized_tracker_space",
    "clamp_to_frame",
    "centered_box",
    # Sampling
    "SampledFrame",
    "VideoSource",
    "OpenCVVideoSource",
    "FrameSampler",
    "sample_count",
    # Tracking
    "TrackStatus",
    "TrackState",
    "TrackingBackend",
    "OpenCVTrackingBackend",
    "ObjectTracker",
    # Pipeline
    "TemplateSelection",
    "CaptureResult",
    "BatchCaptureReport",
    "FrameCapturePipeline",
]
