"""
Video Dataset Capture - Image Utilities

Image encoding and directory listing helpers shared by the capture and
annotation modules.
"""

import re
from pathlib import Path
from typing import List, Tuple, Union

import cv2
import numpy as np

from .constants import DEFAULT_JPEG_QUALITY, SIDECAR_EXTENSION


def natural_sort_key(path: Union[str, Path]) -> list:
    """Sort key for natural/alphanumeric ordering ("2.jpg" before "10.jpg")."""
    name = Path(path).name
    return [
        int(c) if c.isdigit() else c.lower()
        for c in re.split(r"(\d+)", name)
    ]


def image_size(image: np.ndarray) -> Tuple[int, int]:
    """Return (width, height) of an image array."""
    height, width = image.shape[:2]
    return (int(width), int(height))


def encode_image(
    image: np.ndarray,
    extension: str,
    quality: int = DEFAULT_JPEG_QUALITY,
) -> bytes:
    """
    Encode an image array to bytes in the format implied by the extension.

    Args:
        image: Image array (BGR)
        extension: Target extension, e.g. ".jpg" or ".png"
        quality: JPEG quality (0-100), also mapped to PNG compression

    Returns:
        Encoded image bytes

    Raises:
        ValueError: If OpenCV cannot encode the image
    """
    ext = extension.lower()
    if not ext.startswith("."):
        ext = "." + ext

    params = []
    if ext in [".jpg", ".jpeg"]:
        params = [cv2.IMWRITE_JPEG_QUALITY, quality]
    elif ext == ".png":
        params = [cv2.IMWRITE_PNG_COMPRESSION, 9 - (quality // 12)]

    ok, buffer = cv2.imencode(ext, image, params)
    if not ok:
        raise ValueError(f"Failed to encode image as {ext}")
    return buffer.tobytes()


def list_asset_files(directory: Union[str, Path]) -> List[Path]:
    """
    List every non-sidecar file in a dataset directory.

    Hidden files and subdirectories are ignored. The result is in natural
    sort order so repeated listings of the same directory are identical.

    Args:
        directory: Dataset directory

    Returns:
        List of asset file paths
    """
    directory = Path(directory)
    if not directory.is_dir():
        return []

    assets = [
        p
        for p in directory.iterdir()
        if p.is_file()
        and not p.name.startswith(".")
        and p.suffix.lower() != SIDECAR_EXTENSION
    ]
    return sorted(assets, key=natural_sort_key)
