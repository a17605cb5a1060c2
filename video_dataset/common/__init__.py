"""
Video Dataset Capture - Common Utilities Module

Shared constants, configuration, logging, exceptions and validation helpers.
"""

from .config_utils import (
    CaptureConfig,
    ExportConfig,
    PipelineConfig,
    load_pipeline_config,
)

from .exceptions import (
    VideoDatasetError,
    PathError,
    FrameExtractionError,
    TrackingFailure,
    DirectoryCreationError,
    SidecarDecodeError,
    FrameWriteError,
    ArchiveWriteError,
    DestinationWriteError,
    ValidationError,
)

from .image_utils import (
    natural_sort_key,
    image_size,
    encode_image,
    list_asset_files,
)

from .logger import get_logger, set_log_level, add_file_handler, remove_handler

from .validation import (
    ErrorSeverity,
    PipelineError,
    ValidationResult,
)

__all__ = [
    # Config
    "CaptureConfig",
    "ExportConfig",
    "PipelineConfig",
    "load_pipeline_config",
    # Exceptions
    "VideoDatasetError",
    "PathError",
    "FrameExtractionError",
    "TrackingFailure",
    "DirectoryCreationError",
    "SidecarDecodeError",
    "FrameWriteError",
    "ArchiveWriteError",
    "DestinationWriteError",
    "ValidationError",
    # Image utilities
    "natural_sort_key",
    "image_size",
    "encode_image",
    "list_asset_files",
    # Logging
    "get_logger",
    "set_log_level",
    "add_file_handler",
    "remove_handler",
    # Validation
    "ErrorSeverity",
    "PipelineError",
    "ValidationResult",
]
