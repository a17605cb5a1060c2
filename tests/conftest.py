"""
Shared test fixtures.

Fixtures here are used by every test package: temporary directories,
synthetic frames, a small synthetic video and ready-made datasets.
"""

from pathlib import Path

import cv2
import numpy as np
import pytest

from video_dataset.annotation.annotation_store import AnnotationStore
from video_dataset.annotation.models import Annotation, Coordinates, FrameRecord

# 54 frames at 10 fps: a 5.4 second video
SAMPLE_VIDEO_FPS = 10.0
SAMPLE_VIDEO_FRAMES = 54
SAMPLE_VIDEO_SIZE = (64, 48)


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for a test."""
    return tmp_path


@pytest.fixture
def sample_frame() -> np.ndarray:
    """640x480 BGR frame with a white square."""
    img = np.zeros((480, 640, 3), dtype=np.uint8)
    img[100:200, 100:200] = 255
    return img


@pytest.fixture
def sample_video(temp_dir: Path) -> Path:
    """
    Write a 5.4 s MJPG video whose frame n has gray level 4 * n.

    Sampled second i therefore has a mean close to 40 * i.
    """
    path = temp_dir / "sample.avi"
    width, height = SAMPLE_VIDEO_SIZE
    writer = cv2.VideoWriter(
        str(path),
        cv2.VideoWriter_fourcc(*"MJPG"),
        SAMPLE_VIDEO_FPS,
        (width, height),
    )
    assert writer.isOpened()
    for n in range(SAMPLE_VIDEO_FRAMES):
        writer.write(np.full((height, width, 3), 4 * n, dtype=np.uint8))
    writer.release()
    return path


@pytest.fixture
def make_dataset(temp_dir: Path):
    """
    Factory creating a dataset directory with `num_frames` frames.

    Each frame is 64x48 and has one annotation with box (1, 2, 10, 12).
    """

    def _make(name: str, num_frames: int, label: str = "") -> Path:
        directory = temp_dir / name
        directory.mkdir(parents=True)
        store = AnnotationStore()
        for i in range(num_frames):
            image = np.full((48, 64, 3), 20 * i, dtype=np.uint8)
            record = FrameRecord.for_frame(
                i,
                image,
                [Annotation(label=label, coordinates=Coordinates(1, 2, 10, 12))],
                ".jpg",
            )
            store.write(record, directory)
        return directory

    return _make
