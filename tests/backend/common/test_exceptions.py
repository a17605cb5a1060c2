"""
Tests for the exception hierarchy.
"""

import pytest

from video_dataset.common.exceptions import (
    ArchiveWriteError,
    DestinationWriteError,
    DirectoryCreationError,
    FrameExtractionError,
    FrameWriteError,
    PathError,
    SidecarDecodeError,
    TrackingFailure,
    ValidationError,
    VideoDatasetError,
)


class TestVideoDatasetError:
    """Test the base exception."""

    def test_message_only(self):
        """Test str() without details."""
        assert str(VideoDatasetError("boom")) == "boom"

    def test_with_details(self):
        """Test that details are appended."""
        error = VideoDatasetError("boom", {"a": 1})
        assert str(error) == "boom | Details: {'a': 1}"


class TestContextFields:
    """Test context captured by subclasses."""

    def test_frame_extraction_error(self):
        """Test frame index and video path."""
        error = FrameExtractionError("bad frame", frame_index=3, video_path="/v.mp4")

        assert error.frame_index == 3
        assert error.details == {"frame_index": 3, "video_path": "/v.mp4"}

    def test_tracking_failure(self):
        """Test frame index."""
        assert TrackingFailure("lost", frame_index=7).details == {"frame_index": 7}

    def test_validation_error(self):
        """Test field name and value."""
        error = ValidationError("bad", field_name="jpeg_quality", invalid_value=200)

        assert error.field_name == "jpeg_quality"
        assert error.details["invalid_value"] == "200"

    @pytest.mark.parametrize(
        "cls",
        [
            DirectoryCreationError,
            SidecarDecodeError,
            FrameWriteError,
            ArchiveWriteError,
            DestinationWriteError,
        ],
    )
    def test_path_errors(self, cls):
        """Test that path errors record the path and share a base."""
        error = cls("failed", path="/data/x")

        assert isinstance(error, PathError)
        assert isinstance(error, VideoDatasetError)
        assert error.path == "/data/x"
        assert "/data/x" in str(error)
