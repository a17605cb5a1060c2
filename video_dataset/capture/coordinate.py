"""
Coordinate transformation utilities.

Three spaces are involved:
- display space: a rectangle drawn over a (possibly scaled) preview
- pixel space: integer Coordinates on the native frame, origin top-left
- tracker space: normalized [0, 1] rectangle, origin bottom-left

Sizes are always (width, height).
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from ..annotation.models import Coordinates

Size = Tuple[float, float]


@dataclass(frozen=True)
class Rect:
    """Floating point rectangle (display or normalized tracker space)."""

    x: float
    y: float
    width: float
    height: float

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0


def _scale_factors(from_size: Size, to_size: Size) -> Tuple[float, float]:
    from_w, from_h = from_size
    to_w, to_h = to_size
    if from_w <= 0 or from_h <= 0:
        raise ValueError(f"Source size must be positive, got {from_size}")
    return (to_w / from_w, to_h / from_h)


def to_pixel_space(
    display_rect: Optional[Rect],
    display_size: Size,
    image_size: Size,
) -> Coordinates:
    """
    Convert a rectangle drawn over a preview into native pixel coordinates.

    Args:
        display_rect: Rectangle in display coordinates, or None for no selection
        display_size: (width, height) of the preview the rectangle was drawn on
        image_size: (width, height) of the source frame in pixels

    Returns:
        Rounded pixel Coordinates. Coordinates.zero() when no selection was made.
    """
    if display_rect is None or display_rect.is_empty:
        return Coordinates.zero()

    scale_x, scale_y = _scale_factors(display_size, image_size)
    return Coordinates(
        x=max(0, round(display_rect.x * scale_x)),
        y=max(0, round(display_rect.y * scale_y)),
        width=max(0, round(display_rect.width * scale_x)),
        height=max(0, round(display_rect.height * scale_y)),
    )


def to_normalized_tracker_space(pixel_rect: Coordinates, image_size: Size) -> Rect:
    """
    Convert pixel Coordinates (top-left origin) into tracker space.

    Each axis is divided by the frame size, then the vertical axis is flipped:
    flipped_y = 1 - norm_y - norm_h.
    """
    width, height = image_size
    if width <= 0 or height <= 0:
        raise ValueError(f"Image size must be positive, got {image_size}")

    norm_x = pixel_rect.x / width
    norm_y = pixel_rect.y / height
    norm_w = pixel_rect.width / width
    norm_h = pixel_rect.height / height

    return Rect(x=norm_x, y=1.0 - norm_y - norm_h, width=norm_w, height=norm_h)


def from_normalized_tracker_space(
    normalized: Rect,
    image_size: Size,
    flip: bool = True,
) -> Coordinates:
    """
    Convert a tracker observation back into pixel Coordinates.

    Args:
        normalized: Observation in tracker space (bottom-left origin)
        image_size: (width, height) of the frame in pixels
        flip: Flip the vertical axis back to top-left origin. With flip=False
            the normalized y is scaled as-is (y * height), which reproduces the
            legacy placement where stored boxes were mirrored vertically.

    Returns:
        Rounded pixel Coordinates
    """
    width, height = image_size
    norm_y = 1.0 - normalized.y - normalized.height if flip else normalized.y

    return Coordinates(
        x=round(normalized.x * width),
        y=round(norm_y * height),
        width=max(0, round(normalized.width * width)),
        height=max(0, round(normalized.height * height)),
    )


def clamp_to_frame(coords: Coordinates, image_size: Size) -> Coordinates:
    """Clamp Coordinates so the box lies inside the frame."""
    width, height = int(image_size[0]), int(image_size[1])

    x = min(max(0, coords.x), width)
    y = min(max(0, coords.y), height)
    right = min(max(x, coords.x + coords.width), width)
    bottom = min(max(y, coords.y + coords.height), height)

    return Coordinates(x=x, y=y, width=right - x, height=bottom - y)


def centered_box(image_size: Size, ratio: float) -> Coordinates:
    """Box of `ratio` times the frame size, centred in the frame."""
    width, height = image_size
    box_w = int(width * ratio)
    box_h = int(height * ratio)
    return Coordinates(
        x=int((width - box_w) / 2),
        y=int((height - box_h) / 2),
        width=box_w,
        height=box_h,
    )
