"""
Video Dataset Capture - Annotation Module

Frame records, sidecar persistence and dataset validation.
"""

from .models import Coordinates, Annotation, FrameRecord
from .annotation_store import AnnotationStore, ReadResult, LabelRewriteResult
from .dataset_validator import validate_dataset_directory

__all__ = [
    "Coordinates",
    "Annotation",
    "FrameRecord",
    "AnnotationStore",
    "ReadResult",
    "LabelRewriteResult",
    "validate_dataset_directory",
]
