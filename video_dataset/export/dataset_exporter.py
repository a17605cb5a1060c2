"""
Dataset Exporter

Consolidates selected dataset directories into one zip archive holding a
manifest of every frame's annotations plus every non-sidecar asset file.

Archive layout (flat, no directory prefixes):
    exported_annotations.json
    0.jpg
    1.jpg
    ...

Name collisions between datasets follow ExportConfig.collision_policy:
"overwrite" keeps the asset from the last selected dataset, "namespace"
prefixes every asset and manifest image name with its dataset directory name.
"""

import json
import shutil
import tempfile
import uuid
import zipfile
from collections import OrderedDict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from tqdm import tqdm

from ..annotation.annotation_store import AnnotationStore
from ..common.config_utils import ExportConfig
from ..common.constants import ARCHIVE_EXTENSION
from ..common.exceptions import ArchiveWriteError, DestinationWriteError
from ..common.image_utils import list_asset_files
from ..common.logger import get_logger
from ..common.validation import ErrorSeverity, PipelineError
from ..services.dataset_registry import DatasetRegistry

logger = get_logger(__name__)

SOURCE = "DatasetExporter"

_COMPRESSION = {
    "deflated": zipfile.ZIP_DEFLATED,
    "stored": zipfile.ZIP_STORED,
}


@dataclass
class ExportPlan:
    """Manifest entries and archive members gathered from the selected datasets."""

    manifest: List[Dict[str, Any]] = field(default_factory=list)
    assets: "OrderedDict[str, Path]" = field(default_factory=OrderedDict)
    collisions: List[str] = field(default_factory=list)
    skipped: List[PipelineError] = field(default_factory=list)


@dataclass
class ExportResult:
    """Outcome of an export."""

    archive_path: Path
    datasets: List[Path]
    manifest_entries: int
    asset_count: int
    collisions: List[str] = field(default_factory=list)
    skipped: List[PipelineError] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)


class DatasetExporter:
    """Builds export archives from dataset directories."""

    def __init__(
        self,
        config: Optional[ExportConfig] = None,
        store: Optional[AnnotationStore] = None,
    ):
        self.config = config or ExportConfig()
        self.store = store or AnnotationStore()

    def _arcname(self, directory: Path, file_name: str) -> str:
        if self.config.collision_policy == "namespace":
            return f"{directory.name}_{file_name}"
        return file_name

    def plan(self, directories: List[Union[str, Path]]) -> ExportPlan:
        """
        Gather manifest entries and asset files without writing anything.

        Manifest entries follow selection order, then natural file order
        within each dataset.
        """
        plan = ExportPlan()

        for directory in (Path(d) for d in directories):
            loaded = self.store.read_all(directory)
            plan.skipped.extend(loaded.skipped)

            for record in loaded.records:
                plan.manifest.append(
                    record.to_manifest_entry(self._arcname(directory, record.image_name))
                )

            for asset in list_asset_files(directory):
                arcname = self._arcname(directory, asset.name)
                previous = plan.assets.get(arcname)
                if previous is not None and previous != asset:
                    logger.warning(
                        f"Asset name collision: {arcname} from {directory} replaces {previous}"
                    )
                    plan.collisions.append(arcname)
                plan.assets[arcname] = asset

        return plan

    def _resolve_destination(self, destination: Union[str, Path]) -> Path:
        destination = Path(destination)
        if destination.is_dir():
            destination = destination / f"{self.config.archive_name}{ARCHIVE_EXTENSION}"
        elif destination.suffix.lower() != ARCHIVE_EXTENSION:
            destination = destination.with_name(destination.name + ARCHIVE_EXTENSION)

        if not destination.parent.is_dir():
            raise DestinationWriteError(
                "Destination directory does not exist", path=str(destination.parent)
            )
        return destination

    def _write_archive(self, plan: ExportPlan, temp_dir: Path) -> Path:
        manifest_path = temp_dir / self.config.manifest_name
        archive_path = temp_dir / (
            f"{self.config.archive_name}_{uuid.uuid4().hex}{ARCHIVE_EXTENSION}"
        )

        try:
            with open(manifest_path, "w", encoding="utf-8") as f:
                json.dump(plan.manifest, f, indent=2, ensure_ascii=False)

            with zipfile.ZipFile(
                archive_path, "w", compression=_COMPRESSION[self.config.compression]
            ) as zf:
                zf.write(manifest_path, arcname=self.config.manifest_name)
                for arcname, asset in tqdm(
                    plan.assets.items(),
                    desc="Packing",
                    unit="file",
                    disable=not self.config.show_progress,
                ):
                    zf.write(asset, arcname=arcname)
        except (OSError, zipfile.BadZipFile) as e:
            raise ArchiveWriteError(f"Failed to build archive: {e}", path=str(archive_path)) from e

        return archive_path

    def export(
        self,
        directories: List[Union[str, Path]],
        destination: Union[str, Path],
    ) -> ExportResult:
        """
        Export dataset directories into one archive at `destination`.

        Args:
            directories: Dataset directories, in selection order
            destination: Archive path, or an existing directory to place
                "<archive_name>.zip" in

        Returns:
            ExportResult

        Raises:
            ArchiveWriteError: If the manifest or archive cannot be built
            DestinationWriteError: If the archive cannot be moved to its destination
        """
        directories = [Path(d) for d in directories]
        target = self._resolve_destination(destination)
        if not directories:
            logger.warning("No datasets selected; exporting an empty manifest")

        plan = self.plan(directories)
        logger.info(
            f"Exporting {len(plan.manifest)} frame(s) and {len(plan.assets)} file(s) "
            f"from {len(directories)} dataset(s)"
        )

        temp_dir = Path(tempfile.mkdtemp(prefix="dataset_export_"))
        try:
            archive_path = self._write_archive(plan, temp_dir)
            try:
                shutil.move(str(archive_path), str(target))
            except OSError as e:
                raise DestinationWriteError(
                    f"Failed to move archive to destination: {e}", path=str(target)
                ) from e
        finally:
            shutil.rmtree(temp_dir, ignore_errors=True)

        logger.info(f"Export written to {target}")
        return ExportResult(
            archive_path=target,
            datasets=directories,
            manifest_entries=len(plan.manifest),
            asset_count=len(plan.assets),
            collisions=plan.collisions,
            skipped=plan.skipped,
        )

    def export_selected(
        self,
        registry: DatasetRegistry,
        names: List[str],
        destination: Union[str, Path],
    ) -> ExportResult:
        """Export the datasets registered under `names`, in that order."""
        selection = registry.resolve(names)
        for name in selection.missing:
            logger.warning(f"Dataset not registered: {name}")

        result = self.export(selection.directories, destination)
        result.missing = list(selection.missing)
        result.skipped = [
            PipelineError(
                "Dataset not registered",
                severity=ErrorSeverity.WARNING,
                source=SOURCE,
                item=name,
            )
            for name in selection.missing
        ] + result.skipped
        return result
