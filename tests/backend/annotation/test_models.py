"""
Tests for the annotation data model.
"""

from pathlib import Path

import numpy as np
import pytest

from video_dataset.annotation.models import Annotation, Coordinates, FrameRecord


class TestCoordinates:
    """Test Coordinates."""

    def test_to_dict_key_order(self):
        """Test serialization order x, y, width, height."""
        assert list(Coordinates(1, 2, 3, 4).to_dict()) == ["x", "y", "width", "height"]

    def test_from_dict(self):
        """Test deserialization."""
        assert Coordinates.from_dict({"x": 1, "y": 2, "width": 3, "height": 4}) == Coordinates(1, 2, 3, 4)

    def test_numpy_integers_accepted(self):
        """Test that numpy integers are converted to int."""
        coords = Coordinates(np.int64(1), np.int32(2), 3, 4)
        assert type(coords.x) is int and type(coords.y) is int

    @pytest.mark.parametrize("value", [1.5, "1", None, True])
    def test_non_integer_rejected(self, value):
        """Test that non-integer values are rejected."""
        with pytest.raises(TypeError):
            Coordinates(value, 0, 1, 1)

    def test_negative_size_rejected(self):
        """Test that negative width or height is rejected."""
        with pytest.raises(ValueError):
            Coordinates(0, 0, -1, 5)
        with pytest.raises(ValueError):
            Coordinates(0, 0, 5, -1)

    def test_zero(self):
        """Test the zero rectangle."""
        assert Coordinates.zero().is_empty
        assert not Coordinates(0, 0, 1, 1).is_empty


class TestAnnotation:
    """Test Annotation."""

    def test_empty_label_allowed(self):
        """Test that an empty label is valid."""
        assert Annotation("", Coordinates.zero()).label == ""

    def test_label_must_be_string(self):
        """Test that a non-string label is rejected."""
        with pytest.raises(TypeError):
            Annotation(None, Coordinates.zero())

    def test_round_trip_dict(self):
        """Test dict conversion both ways."""
        annotation = Annotation("cup", Coordinates(1, 2, 3, 4))
        assert Annotation.from_dict(annotation.to_dict()) == annotation


class TestFrameRecord:
    """Test FrameRecord."""

    def test_for_frame_names_image(self):
        """Test that images are named after the frame index."""
        record = FrameRecord.for_frame(7, np.zeros((2, 2, 3), np.uint8), [], ".jpg")
        assert record.image_name == "7.jpg"
        assert record.frame_index == 7

    def test_sidecar_schema(self, temp_dir):
        """Test the sidecar JSON object."""
        image_path = temp_dir / "3.jpg"
        record = FrameRecord(
            frame_index=3,
            annotations=[Annotation("cup", Coordinates(1, 2, 3, 4))],
            image_name="3.jpg",
            image_path=image_path,
        )

        sidecar = record.to_sidecar()

        assert list(sidecar) == ["imageName", "imageURL", "annotations"]
        assert sidecar["imageName"] == "3.jpg"
        assert sidecar["imageURL"] == image_path.resolve().as_uri()
        assert sidecar["annotations"] == [
            {"label": "cup", "coordinates": {"x": 1, "y": 2, "width": 3, "height": 4}}
        ]

    def test_image_url_empty_without_path(self):
        """Test that an unsaved record has an empty URL."""
        assert FrameRecord(frame_index=0, image_name="0.jpg").image_url == ""

    def test_manifest_entry(self):
        """Test the export manifest entry."""
        record = FrameRecord(
            frame_index=0,
            annotations=[Annotation("", Coordinates(0, 0, 1, 1))],
            image_name="0.jpg",
        )

        assert record.to_manifest_entry() == {
            "image": "0.jpg",
            "annotations": [{"label": "", "coordinates": {"x": 0, "y": 0, "width": 1, "height": 1}}],
        }
        assert record.to_manifest_entry("ds_0.jpg")["image"] == "ds_0.jpg"

    def test_from_sidecar(self):
        """Test loading a record from a sidecar object."""
        record = FrameRecord.from_sidecar(
            {
                "imageName": "12.jpg",
                "imageURL": "file:///tmp/12.jpg",
                "annotations": [{"label": "a", "coordinates": {"x": 1, "y": 1, "width": 2, "height": 2}}],
            },
            image_path=Path("/data/12.jpg"),
        )

        assert record.frame_index == 12
        assert record.annotations[0].label == "a"
        assert record.image_path == Path("/data/12.jpg")

    def test_from_sidecar_non_numeric_name(self):
        """Test that a non-numeric image name has no frame index."""
        record = FrameRecord.from_sidecar({"imageName": "cover.png", "annotations": []})
        assert record.frame_index is None

    @pytest.mark.parametrize(
        "data,error",
        [
            ([], TypeError),
            ({"annotations": []}, KeyError),
            ({"imageName": "", "annotations": []}, ValueError),
            ({"imageName": "0.jpg", "annotations": {}}, TypeError),
            ({"imageName": "0.jpg", "annotations": [{"label": "a"}]}, KeyError),
            (
                {
                    "imageName": "0.jpg",
                    "annotations": [
                        {"label": "a", "coordinates": {"x": 0, "y": 0, "width": -2, "height": 1}}
                    ],
                },
                ValueError,
            ),
        ],
    )
    def test_from_sidecar_invalid(self, data, error):
        """Test that malformed sidecars are rejected."""
        with pytest.raises(error):
            FrameRecord.from_sidecar(data)
