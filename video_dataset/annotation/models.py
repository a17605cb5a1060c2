"""
Annotation data model.

FrameRecord, Annotation and Coordinates mirror the sidecar JSON schema:

    {"imageName": str, "imageURL": str,
     "annotations": [{"label": str,
                      "coordinates": {"x": int, "y": int, "width": int, "height": int}}]}

Coordinates are integer pixels with a top-left origin.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np


@dataclass
class Coordinates:
    """Pixel-space bounding box, origin top-left."""

    x: int
    y: int
    width: int
    height: int

    def __post_init__(self):
        for name in ("x", "y", "width", "height"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise TypeError(f"Coordinate '{name}' must be an integer, got {value!r}")
            setattr(self, name, int(value))
        if self.width < 0 or self.height < 0:
            raise ValueError(
                f"Coordinates must have non-negative size, got {self.width}x{self.height}"
            )

    @classmethod
    def zero(cls) -> "Coordinates":
        """The explicit "no selection" rectangle."""
        return cls(0, 0, 0, 0)

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def to_dict(self) -> Dict[str, int]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Coordinates":
        return cls(
            x=data["x"],
            y=data["y"],
            width=data["width"],
            height=data["height"],
        )


@dataclass
class Annotation:
    """One labeled box. The label may be empty."""

    label: str
    coordinates: Coordinates

    def __post_init__(self):
        if not isinstance(self.label, str):
            raise TypeError(f"Annotation label must be a string, got {self.label!r}")

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "coordinates": self.coordinates.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Annotation":
        return cls(
            label=data["label"],
            coordinates=Coordinates.from_dict(data["coordinates"]),
        )


@dataclass
class FrameRecord:
    """
    One sampled frame of a dataset.

    Attributes:
        frame_index: Whole second of the video the frame was taken at
        annotations: Ordered annotations for the frame
        image: Image payload (BGR); only held while the frame is being written
        image_name: File name of the image inside its dataset directory
        image_path: Absolute image path once the record is persisted or loaded
    """

    frame_index: Optional[int]
    annotations: List[Annotation] = field(default_factory=list)
    image: Optional[np.ndarray] = field(default=None, repr=False)
    image_name: Optional[str] = None
    image_path: Optional[Path] = None

    @classmethod
    def for_frame(
        cls,
        frame_index: int,
        image: np.ndarray,
        annotations: List[Annotation],
        image_extension: str,
    ) -> "FrameRecord":
        """Create a record for a freshly sampled frame, named "<index><ext>"."""
        return cls(
            frame_index=frame_index,
            annotations=annotations,
            image=image,
            image_name=f"{frame_index}{image_extension}",
        )

    @property
    def image_url(self) -> str:
        if self.image_path is None:
            return ""
        return Path(self.image_path).resolve().as_uri()

    def to_sidecar(self) -> Dict[str, Any]:
        """Serialize to the sidecar JSON object."""
        return {
            "imageName": self.image_name,
            "imageURL": self.image_url,
            "annotations": [a.to_dict() for a in self.annotations],
        }

    def to_manifest_entry(self, image_name: Optional[str] = None) -> Dict[str, Any]:
        """Serialize to one export manifest entry."""
        return {
            "image": image_name or self.image_name,
            "annotations": [a.to_dict() for a in self.annotations],
        }

    @classmethod
    def from_sidecar(cls, data: Dict[str, Any], image_path: Optional[Path] = None) -> "FrameRecord":
        """
        Build a record from a decoded sidecar object.

        Raises:
            KeyError, TypeError, ValueError: If the object does not match the schema
        """
        if not isinstance(data, dict):
            raise TypeError("Sidecar root must be an object")

        image_name = data["imageName"]
        if not isinstance(image_name, str) or not image_name:
            raise ValueError("Sidecar imageName must be a non-empty string")

        raw_annotations = data["annotations"]
        if not isinstance(raw_annotations, list):
            raise TypeError("Sidecar annotations must be a list")

        stem = Path(image_name).stem
        return cls(
            frame_index=int(stem) if stem.isdigit() else None,
            annotations=[Annotation.from_dict(a) for a in raw_annotations],
            image_name=image_name,
            image_path=image_path,
        )
