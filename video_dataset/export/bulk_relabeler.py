"""
Bulk Relabeler

Rewrites the label of every annotation across selected datasets. Image files
and coordinates are left untouched.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from tqdm import tqdm

from ..annotation.annotation_store import AnnotationStore, LabelRewriteResult
from ..common.logger import get_logger
from ..common.validation import ErrorSeverity, PipelineError
from ..services.dataset_registry import DatasetRegistry

logger = get_logger(__name__)

SOURCE = "BulkRelabeler"


@dataclass
class RelabelResult:
    """Outcome of relabeling a set of datasets."""

    label: str
    datasets: List[LabelRewriteResult] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)

    @property
    def updated(self) -> int:
        return sum(d.updated for d in self.datasets)

    @property
    def skipped(self) -> List[PipelineError]:
        errors = [
            PipelineError(
                "Dataset not registered",
                severity=ErrorSeverity.WARNING,
                source=SOURCE,
                item=name,
            )
            for name in self.missing
        ]
        for dataset in self.datasets:
            errors.extend(dataset.skipped)
        return errors


class BulkRelabeler:
    """Applies one label to every annotation of the selected datasets."""

    def __init__(self, store: Optional[AnnotationStore] = None, show_progress: bool = True):
        self.store = store or AnnotationStore()
        self.show_progress = show_progress

    def relabel(self, directories: List[Union[str, Path]], label: str) -> RelabelResult:
        """
        Overwrite every annotation label in the given dataset directories.

        Running it twice with the same label leaves byte-identical sidecars.
        """
        if not isinstance(label, str):
            raise TypeError(f"Label must be a string, got {label!r}")

        result = RelabelResult(label=label)
        for directory in tqdm(
            [Path(d) for d in directories],
            desc="Relabeling",
            unit="dataset",
            disable=not self.show_progress,
        ):
            rewrite = self.store.rewrite_labels(directory, label)
            result.datasets.append(rewrite)
            logger.info(
                f"{directory.name}: relabeled {rewrite.updated} frame(s) as '{label}'"
                + (f", {len(rewrite.skipped)} skipped" if rewrite.skipped else "")
            )

        return result

    def relabel_selected(
        self,
        registry: DatasetRegistry,
        names: List[str],
        label: str,
    ) -> RelabelResult:
        """Relabel the datasets registered under `names`."""
        selection = registry.resolve(names)
        for name in selection.missing:
            logger.warning(f"Dataset not registered: {name}")

        result = self.relabel(selection.directories, label)
        result.missing = list(selection.missing)
        return result
