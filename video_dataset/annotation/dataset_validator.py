"""
Dataset validation before hand-off to the detector trainer.

The trainer consumes a directory of paired image + sidecar files. This
checks that pairing and the sidecar schema without modifying anything.
"""

from pathlib import Path
from typing import Optional, Union

from ..common.constants import IMAGE_EXTENSIONS, SIDECAR_EXTENSION
from ..common.exceptions import SidecarDecodeError
from ..common.image_utils import list_asset_files, natural_sort_key
from ..common.validation import ValidationResult
from .annotation_store import AnnotationStore

SOURCE = "validate_dataset_directory"


def validate_dataset_directory(
    directory: Union[str, Path],
    store: Optional[AnnotationStore] = None,
) -> ValidationResult:
    """
    Validate a dataset directory for training.

    Checks:
    - Directory exists
    - Every image has a decodable sidecar (missing ones are errors)
    - Sidecars without an image (warnings)
    - Non-image assets (warnings)
    - Annotations with an empty label (warnings)
    - At least one usable frame

    Args:
        directory: Dataset directory
        store: AnnotationStore used for decoding (default: new instance)

    Returns:
        ValidationResult with any errors or warnings
    """
    result = ValidationResult()
    directory = Path(directory)
    store = store or AnnotationStore()

    if not directory.is_dir():
        result.add_error(f"Dataset directory not found: {directory}", source=SOURCE)
        return result

    usable = 0
    asset_stems = set()
    for asset in list_asset_files(directory):
        asset_stems.add(asset.stem)

        if asset.suffix.lower() not in IMAGE_EXTENSIONS:
            result.add_warning("Not an image file", source=SOURCE, item=asset.name)
            continue

        try:
            record = store.read(asset)
        except SidecarDecodeError as e:
            result.add_error(str(e), source=SOURCE, details=type(e).__name__, item=asset.name)
            continue

        usable += 1
        unlabeled = sum(1 for a in record.annotations if not a.label)
        if unlabeled:
            result.add_warning(
                f"{unlabeled} annotation(s) without a label",
                source=SOURCE,
                item=asset.name,
            )

    orphans = sorted(
        (
            p
            for p in directory.glob(f"*{SIDECAR_EXTENSION}")
            if p.stem not in asset_stems and not p.name.startswith(".")
        ),
        key=natural_sort_key,
    )
    for orphan in orphans:
        result.add_warning("Sidecar without an image", source=SOURCE, item=orphan.name)

    if usable == 0:
        result.add_error("Dataset contains no usable frames", source=SOURCE, item=str(directory))

    return result
