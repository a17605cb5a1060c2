"""
Video Dataset Capture - Export Module

Archive export and bulk relabeling over captured datasets.
"""

from .dataset_exporter import DatasetExporter, ExportPlan, ExportResult
from .bulk_relabeler import BulkRelabeler, RelabelResult

__all__ = [
    "DatasetExporter",
    "ExportPlan",
    "ExportResult",
    "BulkRelabeler",
    "RelabelResult",
]
