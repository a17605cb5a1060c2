"""Services shared by the capture and export front ends."""

from .dataset_registry import DatasetRegistry, ResolvedSelection

__all__ = ["DatasetRegistry", "ResolvedSelection"]
