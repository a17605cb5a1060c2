"""
Annotation Store

Persists frame images with one JSON sidecar per image and loads them back.
A frame is visible to readers only when both its image and a decodable
sidecar with the same base name exist in the dataset directory.
"""

import contextlib
import json
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import List, Union

import cv2

from ..common.constants import DEFAULT_IMAGE_EXTENSION, DEFAULT_JPEG_QUALITY, SIDECAR_EXTENSION
from ..common.exceptions import FrameWriteError, SidecarDecodeError
from ..common.image_utils import encode_image, list_asset_files
from ..common.logger import get_logger
from ..common.validation import ErrorSeverity, PipelineError
from .models import Annotation, FrameRecord

logger = get_logger(__name__)

SOURCE = "AnnotationStore"


@dataclass
class ReadResult:
    """Records loaded from one dataset directory plus what was excluded."""

    directory: Path
    records: List[FrameRecord] = field(default_factory=list)
    skipped: List[PipelineError] = field(default_factory=list)


@dataclass
class LabelRewriteResult:
    """Outcome of rewriting every label in one dataset directory."""

    directory: Path
    updated: int = 0
    skipped: List[PipelineError] = field(default_factory=list)


class AnnotationStore:
    """
    Reads and writes frame images and their annotation sidecars.

    Sidecars are serialized with a fixed key order, two-space indentation and a
    trailing newline, so writing the same record twice yields identical bytes.
    """

    def __init__(
        self,
        image_extension: str = DEFAULT_IMAGE_EXTENSION,
        jpeg_quality: int = DEFAULT_JPEG_QUALITY,
    ):
        self.image_extension = image_extension
        self.jpeg_quality = jpeg_quality

    @staticmethod
    def sidecar_path(image_path: Union[str, Path]) -> Path:
        """Sidecar location for an image: same base name, .json extension."""
        return Path(image_path).with_suffix(SIDECAR_EXTENSION)

    @staticmethod
    def serialize(record: FrameRecord) -> bytes:
        text = json.dumps(record.to_sidecar(), indent=2, ensure_ascii=False)
        return (text + "\n").encode("utf-8")

    def _write_sidecar(self, record: FrameRecord) -> None:
        sidecar = self.sidecar_path(record.image_path)
        # Hidden temp file so a crash never leaves a truncated sidecar behind
        tmp_path = sidecar.with_name(f".{sidecar.name}.tmp")
        try:
            tmp_path.write_bytes(self.serialize(record))
            os.replace(tmp_path, sidecar)
        finally:
            with contextlib.suppress(OSError):
                tmp_path.unlink(missing_ok=True)

    # -------------------------------------------------------------------------
    # Write
    # -------------------------------------------------------------------------

    def write(self, record: FrameRecord, directory: Union[str, Path]) -> FrameRecord:
        """
        Write a frame image and its sidecar into a dataset directory.

        Either both files are written or neither remains on disk.

        Args:
            record: Record carrying the image payload and annotations
            directory: Existing dataset directory

        Returns:
            The persisted record (image payload released, image_path set)

        Raises:
            FrameWriteError: If encoding or writing fails
        """
        directory = Path(directory)
        if record.image is None:
            raise FrameWriteError("Frame record has no image payload", path=str(directory))

        image_name = record.image_name or f"{record.frame_index}{self.image_extension}"
        image_path = directory / image_name

        try:
            payload = encode_image(record.image, image_path.suffix, self.jpeg_quality)
        except (ValueError, cv2.error) as e:
            raise FrameWriteError(f"Failed to encode frame: {e}", path=str(image_path)) from e

        persisted = replace(record, image=None, image_name=image_name, image_path=image_path)
        try:
            image_path.write_bytes(payload)
            self._write_sidecar(persisted)
        except OSError as e:
            for path in (image_path, self.sidecar_path(image_path)):
                with contextlib.suppress(OSError):
                    path.unlink(missing_ok=True)
            raise FrameWriteError(f"Failed to write frame: {e}", path=str(image_path)) from e

        logger.debug(f"Wrote {image_name} with {len(persisted.annotations)} annotation(s)")
        return persisted

    # -------------------------------------------------------------------------
    # Read
    # -------------------------------------------------------------------------

    def read(self, image_path: Union[str, Path]) -> FrameRecord:
        """
        Load the record for one image.

        Raises:
            SidecarDecodeError: If the sidecar is missing, unreadable or malformed
        """
        image_path = Path(image_path)
        sidecar = self.sidecar_path(image_path)

        try:
            data = json.loads(sidecar.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise SidecarDecodeError("Sidecar not found", path=str(sidecar)) from e
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise SidecarDecodeError(f"Unreadable sidecar: {e}", path=str(sidecar)) from e

        try:
            return FrameRecord.from_sidecar(data, image_path=image_path)
        except (KeyError, TypeError, ValueError) as e:
            raise SidecarDecodeError(f"Invalid sidecar content: {e!r}", path=str(sidecar)) from e

    def read_all(self, directory: Union[str, Path]) -> ReadResult:
        """
        Load every frame record of a dataset directory.

        Images whose sidecar is missing or corrupt are excluded and reported
        in the result's skipped list. Records are returned in natural
        file-name order.
        """
        directory = Path(directory)
        result = ReadResult(directory=directory)

        if not directory.is_dir():
            logger.warning(f"Dataset directory not found: {directory}")
            result.skipped.append(
                PipelineError(
                    "Dataset directory not found",
                    severity=ErrorSeverity.WARNING,
                    source=SOURCE,
                    item=str(directory),
                )
            )
            return result

        for asset in list_asset_files(directory):
            try:
                result.records.append(self.read(asset))
            except SidecarDecodeError as e:
                logger.warning(f"Skipping {asset.name}: {e}")
                result.skipped.append(
                    PipelineError.from_exception(e, source=SOURCE, item=asset.name)
                )

        return result

    # -------------------------------------------------------------------------
    # Update
    # -------------------------------------------------------------------------

    def rewrite_labels(self, directory: Union[str, Path], new_label: str) -> LabelRewriteResult:
        """
        Overwrite the label of every annotation in a dataset directory.

        Image files are not touched and coordinates are kept as they are.
        """
        loaded = self.read_all(directory)
        result = LabelRewriteResult(directory=loaded.directory, skipped=list(loaded.skipped))

        for record in loaded.records:
            for annotation in record.annotations:
                annotation.label = new_label
            try:
                self._write_sidecar(record)
                result.updated += 1
            except OSError as e:
                logger.warning(f"Failed to rewrite sidecar for {record.image_name}: {e}")
                result.skipped.append(
                    PipelineError.from_exception(e, source=SOURCE, item=record.image_name)
                )

        return result

    def update_annotations(
        self,
        directory: Union[str, Path],
        image_name: str,
        annotations: List[Annotation],
    ) -> FrameRecord:
        """
        Replace the annotations of one frame and rewrite its sidecar.

        Raises:
            SidecarDecodeError: If the frame has no readable sidecar
            FrameWriteError: If the sidecar cannot be written
        """
        image_path = Path(directory) / image_name
        if not image_path.exists():
            raise SidecarDecodeError("Image not found", path=str(image_path))

        record = self.read(image_path)
        record.annotations = list(annotations)

        try:
            self._write_sidecar(record)
        except OSError as e:
            raise FrameWriteError(f"Failed to write sidecar: {e}", path=str(image_path)) from e

        return record
