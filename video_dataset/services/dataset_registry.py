"""
Dataset Registry

Explicit name -> dataset directory mapping shared by capture, export and
relabel. Capture registers a dataset once, after that video's capture
succeeded; export and relabel only read it.

With a registry file the mapping survives between runs; without one it
lives in memory only.
"""

import json
import threading
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

from ..common.exceptions import ValidationError
from ..common.logger import get_logger

logger = get_logger(__name__)

REGISTRY_VERSION = "1.0.0"


@dataclass
class ResolvedSelection:
    """Registry lookup for a list of dataset names."""

    found: List[Tuple[str, Path]] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)

    @property
    def directories(self) -> List[Path]:
        return [directory for _, directory in self.found]


class DatasetRegistry:
    """Registry of captured datasets, keyed by video file name."""

    def __init__(self, registry_file: Optional[Union[str, Path]] = None):
        self.registry_file = Path(registry_file) if registry_file else None
        self._datasets: Dict[str, Path] = {}
        self._lock = threading.Lock()
        self._load()

    def _load(self) -> None:
        """Load registry from file."""
        if self.registry_file is None or not self.registry_file.exists():
            return

        try:
            with open(self.registry_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ValidationError(
                f"Failed to read registry: {e}",
                field_name="registry_file",
                invalid_value=self.registry_file,
            ) from e

        datasets = data.get("datasets", {}) if isinstance(data, dict) else None
        if not isinstance(datasets, dict):
            raise ValidationError(
                "Registry 'datasets' must be a mapping",
                field_name="registry_file",
                invalid_value=self.registry_file,
            )

        self._datasets = {str(name): Path(directory) for name, directory in datasets.items()}
        logger.debug(f"Loaded {len(self._datasets)} dataset(s) from {self.registry_file}")

    def _save(self) -> None:
        """Save registry to file."""
        if self.registry_file is None:
            return

        data = {
            "version": REGISTRY_VERSION,
            "updated_at": datetime.now().isoformat(),
            "datasets": {name: str(directory) for name, directory in self._datasets.items()},
        }
        self.registry_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.registry_file, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    def register(self, name: str, directory: Union[str, Path]) -> Optional[Path]:
        """
        Map a dataset name to its directory.

        Re-registering a name points it at the new directory; the previous
        dataset stays on disk.

        Returns:
            The directory the name pointed to before, if it was a different one
        """
        with self._lock:
            previous = self._datasets.get(name)
            self._datasets[name] = Path(directory)
            self._save()

        if previous is not None and previous != Path(directory):
            logger.warning(f"Dataset '{name}' now points to {directory} (was {previous})")
            return previous
        logger.info(f"Registered dataset '{name}' -> {directory}")
        return None

    def unregister(self, name: str) -> bool:
        """Remove a mapping. Dataset files are left untouched."""
        with self._lock:
            if name not in self._datasets:
                return False
            del self._datasets[name]
            self._save()
        return True

    def get(self, name: str) -> Optional[Path]:
        return self._datasets.get(name)

    def names(self) -> List[str]:
        return list(self._datasets)

    def items(self) -> List[Tuple[str, Path]]:
        return list(self._datasets.items())

    def resolve(self, names: List[str]) -> ResolvedSelection:
        """Look up selected names, keeping selection order."""
        selection = ResolvedSelection()
        for name in names:
            directory = self._datasets.get(name)
            if directory is None:
                selection.missing.append(name)
            else:
                selection.found.append((name, directory))
        return selection

    def __contains__(self, name: object) -> bool:
        return name in self._datasets

    def __len__(self) -> int:
        return len(self._datasets)

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())
