"""
Custom Exception Classes for Video Dataset Capture

Provides a hierarchy of exceptions for the capture, annotation and export
pipeline. Per-frame and per-file errors are absorbed by the pipeline and
reported as skipped items; directory, archive and destination errors are
raised to the caller.

Usage:
    from video_dataset.common.exceptions import DirectoryCreationError

    try:
        result = pipeline.capture_video(path)
    except DirectoryCreationError as e:
        logger.error(f"Capture failed: {e}")
"""

from typing import Any, Optional


class VideoDatasetError(Exception):
    """
    Base exception class for the video dataset pipeline.

    All custom exceptions inherit from this class, allowing
    broad exception catching when needed.
    """

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class PathError(VideoDatasetError):
    """Base class for errors tied to a filesystem path."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        details = details or {}
        if path:
            details["path"] = str(path)
        super().__init__(message, details)
        self.path = str(path) if path else None


class FrameExtractionError(VideoDatasetError):
    """
    Exception for a single frame that could not be decoded.

    Non-fatal: the frame is skipped and the sampling sequence continues.
    """

    def __init__(
        self,
        message: str,
        frame_index: Optional[int] = None,
        video_path: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        details = details or {}
        if frame_index is not None:
            details["frame_index"] = frame_index
        if video_path:
            details["video_path"] = str(video_path)
        super().__init__(message, details)
        self.frame_index = frame_index
        self.video_path = str(video_path) if video_path else None


class TrackingFailure(VideoDatasetError):
    """
    Exception for a tracking step that produced no observation.

    Absorbing for the run: the tracker moves to the Lost state and every
    later frame of the same run is skipped.
    """

    def __init__(
        self,
        message: str,
        frame_index: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        details = details or {}
        if frame_index is not None:
            details["frame_index"] = frame_index
        super().__init__(message, details)
        self.frame_index = frame_index


class DirectoryCreationError(PathError):
    """
    Exception for a dataset directory that could not be created.

    Fatal for the capture of one video; other videos are unaffected.
    """


class SidecarDecodeError(PathError):
    """
    Exception for a missing, unreadable or malformed sidecar file.

    Non-fatal: the frame is excluded from reads.
    """


class FrameWriteError(PathError):
    """
    Exception for a frame whose image or sidecar could not be written.

    Non-fatal: the frame is dropped and no half-written record remains.
    """


class ArchiveWriteError(PathError):
    """Exception for a failure while building the export archive."""


class DestinationWriteError(PathError):
    """Exception for a failure while moving the archive to its destination."""


class ValidationError(VideoDatasetError):
    """
    Exception for validation errors.

    Raised when input validation fails, such as invalid
    configuration, unknown options, or constraint violations.
    """

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        invalid_value: Optional[Any] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        details = details or {}
        if field_name:
            details["field_name"] = field_name
        if invalid_value is not None:
            details["invalid_value"] = str(invalid_value)
        super().__init__(message, details)
        self.field_name = field_name
        self.invalid_value = invalid_value
