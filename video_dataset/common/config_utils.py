"""
Video Dataset Capture - Configuration Utilities

Configuration dataclasses for capture and export, with YAML loading.
"""

import os
import tempfile
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .constants import (
    COLLISION_POLICIES,
    COMPRESSION_METHODS,
    DEFAULT_ARCHIVE_NAME,
    DEFAULT_BOX_RATIO,
    DEFAULT_CAPTURE_DIRNAME,
    DEFAULT_COLLISION_POLICY,
    DEFAULT_COMPRESSION,
    DEFAULT_IMAGE_EXTENSION,
    DEFAULT_JPEG_QUALITY,
    DEFAULT_LABEL,
    DEFAULT_MANIFEST_NAME,
    DEFAULT_MAX_PARALLEL_VIDEOS,
    DEFAULT_REGISTRY_FILENAME,
    DEFAULT_SAMPLER_WORKERS,
    DEFAULT_TRACKER_TYPE,
    IMAGE_EXTENSIONS,
    OUTPUT_DIR_ENV,
    REGISTRY_FILE_ENV,
    SIDECAR_EXTENSION,
    TRACKER_FACTORIES,
)
from .exceptions import ValidationError


def _default_output_dir() -> Path:
    env_dir = os.getenv(OUTPUT_DIR_ENV)
    if env_dir:
        return Path(env_dir)
    return Path(tempfile.gettempdir()) / DEFAULT_CAPTURE_DIRNAME


# =============================================================================
# Capture Configuration
# =============================================================================


@dataclass
class CaptureConfig:
    """
    Configuration for frame capture.

    Attributes:
        output_dir: Parent directory for per-video dataset directories
        image_extension: Extension (and encoding) of saved frames
        jpeg_quality: JPEG quality for saved frames
        tracker_type: Single-object tracker ("mil", "csrt", "kcf")
        legacy_unflipped_output: Store tracker output without flipping the
            vertical axis back to top-left origin
        clamp_to_frame: Clamp tracked boxes to the frame bounds
        default_label: Label written into new annotations
        default_box_ratio: Size of the centred box for untracked frames
        sampler_workers: Threads used for unordered frame extraction
        max_parallel_videos: Videos captured concurrently
        show_progress: Show tqdm progress bars
    """

    output_dir: Path = field(default_factory=_default_output_dir)
    image_extension: str = DEFAULT_IMAGE_EXTENSION
    jpeg_quality: int = DEFAULT_JPEG_QUALITY
    tracker_type: str = DEFAULT_TRACKER_TYPE
    legacy_unflipped_output: bool = False
    clamp_to_frame: bool = True
    default_label: str = DEFAULT_LABEL
    default_box_ratio: float = DEFAULT_BOX_RATIO
    sampler_workers: int = DEFAULT_SAMPLER_WORKERS
    max_parallel_videos: int = DEFAULT_MAX_PARALLEL_VIDEOS
    show_progress: bool = True

    def __post_init__(self):
        """Validate configuration."""
        self.output_dir = Path(self.output_dir)

        ext = self.image_extension.lower()
        if not ext.startswith("."):
            ext = "." + ext
        if ext not in IMAGE_EXTENSIONS:
            raise ValidationError(
                "Unsupported image extension",
                field_name="image_extension",
                invalid_value=self.image_extension,
            )
        self.image_extension = ext

        if not 0 <= self.jpeg_quality <= 100:
            raise ValidationError(
                "jpeg_quality must be within [0, 100]",
                field_name="jpeg_quality",
                invalid_value=self.jpeg_quality,
            )
        if self.tracker_type not in TRACKER_FACTORIES:
            raise ValidationError(
                f"Unknown tracker type, expected one of {sorted(TRACKER_FACTORIES)}",
                field_name="tracker_type",
                invalid_value=self.tracker_type,
            )
        if not 0.0 < self.default_box_ratio <= 1.0:
            raise ValidationError(
                "default_box_ratio must be within (0, 1]",
                field_name="default_box_ratio",
                invalid_value=self.default_box_ratio,
            )
        if self.sampler_workers < 1:
            raise ValidationError(
                "sampler_workers must be at least 1",
                field_name="sampler_workers",
                invalid_value=self.sampler_workers,
            )
        if self.max_parallel_videos < 1:
            raise ValidationError(
                "max_parallel_videos must be at least 1",
                field_name="max_parallel_videos",
                invalid_value=self.max_parallel_videos,
            )


# =============================================================================
# Export Configuration
# =============================================================================


@dataclass
class ExportConfig:
    """
    Configuration for dataset export.

    Attributes:
        manifest_name: Archive entry name of the consolidated manifest
        archive_name: Default archive file name (without extension)
        collision_policy: "overwrite" keeps the last asset with a given name,
            "namespace" prefixes every asset with its dataset directory name
        compression: "deflated" or "stored"
        show_progress: Show tqdm progress bars
    """

    manifest_name: str = DEFAULT_MANIFEST_NAME
    archive_name: str = DEFAULT_ARCHIVE_NAME
    collision_policy: str = DEFAULT_COLLISION_POLICY
    compression: str = DEFAULT_COMPRESSION
    show_progress: bool = True

    def __post_init__(self):
        """Validate configuration."""
        if self.collision_policy not in COLLISION_POLICIES:
            raise ValidationError(
                f"Unknown collision policy, expected one of {COLLISION_POLICIES}",
                field_name="collision_policy",
                invalid_value=self.collision_policy,
            )
        if self.compression not in COMPRESSION_METHODS:
            raise ValidationError(
                f"Unknown compression, expected one of {COMPRESSION_METHODS}",
                field_name="compression",
                invalid_value=self.compression,
            )
        if not self.manifest_name.endswith(SIDECAR_EXTENSION):
            raise ValidationError(
                "manifest_name must be a .json file name",
                field_name="manifest_name",
                invalid_value=self.manifest_name,
            )


# =============================================================================
# Pipeline Configuration
# =============================================================================


@dataclass
class PipelineConfig:
    """Capture and export settings plus the dataset registry location."""

    capture: CaptureConfig = field(default_factory=CaptureConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    registry_file: Optional[Path] = None

    def __post_init__(self):
        if self.registry_file is None:
            env_file = os.getenv(REGISTRY_FILE_ENV)
            self.registry_file = (
                Path(env_file)
                if env_file
                else self.capture.output_dir / DEFAULT_REGISTRY_FILENAME
            )
        else:
            self.registry_file = Path(self.registry_file)


def _build_section(cls, data: Any, section: str):
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ValidationError(
            f"Section '{section}' must be a mapping",
            field_name=section,
            invalid_value=data,
        )

    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValidationError(
            f"Unknown keys in section '{section}': {unknown}",
            field_name=section,
            invalid_value=unknown,
        )
    return cls(**data)


def load_pipeline_config(config_path: Union[str, Path]) -> PipelineConfig:
    """
    Load pipeline configuration from a YAML file.

    Expected layout:
        capture:
          output_dir: /data/captures
          tracker_type: csrt
        export:
          collision_policy: namespace
        registry_file: /data/captures/registry.json

    Args:
        config_path: Path to YAML configuration file

    Returns:
        PipelineConfig instance

    Raises:
        FileNotFoundError: If the file does not exist
        ValidationError: If the file contains unknown keys or invalid values
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, "r", encoding="utf-8") as f:
        try:
            data: Dict[str, Any] = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValidationError(f"Failed to parse YAML: {e}") from e

    if not isinstance(data, dict):
        raise ValidationError("Config root must be a mapping", invalid_value=type(data).__name__)

    unknown = sorted(set(data) - {"capture", "export", "registry_file"})
    if unknown:
        raise ValidationError(
            f"Unknown top-level keys: {unknown}",
            invalid_value=unknown,
        )

    return PipelineConfig(
        capture=_build_section(CaptureConfig, data.get("capture"), "capture"),
        export=_build_section(ExportConfig, data.get("export"), "export"),
        registry_file=data.get("registry_file"),
    )
