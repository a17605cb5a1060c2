"""
Video Dataset Capture - Common Constants

Shared constants used across the capture, annotation and export modules.
"""

from typing import List

# =============================================================================
# File Extensions
# =============================================================================
# Supported image file extensions for dataset frames
IMAGE_EXTENSIONS: List[str] = [".jpg", ".jpeg", ".png", ".bmp", ".tiff"]

# Video containers accepted by the capture front end
VIDEO_EXTENSIONS: List[str] = [".mp4", ".mov", ".m4v", ".avi", ".mkv"]

# Annotation sidecar written next to every frame image
SIDECAR_EXTENSION: str = ".json"


# =============================================================================
# Capture Defaults
# =============================================================================
DEFAULT_IMAGE_EXTENSION: str = ".jpg"
DEFAULT_JPEG_QUALITY: int = 95

# One frame per whole second of video
SAMPLING_INTERVAL_SEC: float = 1.0

# Parallel frame extraction when no tracking is requested
DEFAULT_SAMPLER_WORKERS: int = 4
DEFAULT_MAX_PARALLEL_VIDEOS: int = 1

# Untracked frames get a centred box of this fraction of the frame size
DEFAULT_BOX_RATIO: float = 0.5
DEFAULT_LABEL: str = ""

# Environment overrides
OUTPUT_DIR_ENV: str = "VIDEO_DATASET_OUTPUT_DIR"
REGISTRY_FILE_ENV: str = "VIDEO_DATASET_REGISTRY"
DEFAULT_CAPTURE_DIRNAME: str = "video_dataset_captures"
DEFAULT_REGISTRY_FILENAME: str = "registry.json"


# =============================================================================
# Tracking Defaults
# =============================================================================
DEFAULT_TRACKER_TYPE: str = "mil"

# Tracker name -> OpenCV tracker class. CSRT and KCF need opencv-contrib.
TRACKER_FACTORIES: dict = {
    "mil": "TrackerMIL",
    "csrt": "TrackerCSRT",
    "kcf": "TrackerKCF",
}


# =============================================================================
# Export Defaults
# =============================================================================
DEFAULT_MANIFEST_NAME: str = "exported_annotations.json"
DEFAULT_ARCHIVE_NAME: str = "exported_annotations"
ARCHIVE_EXTENSION: str = ".zip"

COLLISION_POLICIES: List[str] = ["overwrite", "namespace"]
DEFAULT_COLLISION_POLICY: str = "overwrite"

COMPRESSION_METHODS: List[str] = ["deflated", "stored"]
DEFAULT_COMPRESSION: str = "deflated"
