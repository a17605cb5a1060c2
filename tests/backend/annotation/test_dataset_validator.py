"""
Tests for dataset validation before training.
"""

from video_dataset.annotation.dataset_validator import validate_dataset_directory


class TestValidateDatasetDirectory:
    """Test validate_dataset_directory()."""

    def test_valid_dataset(self, make_dataset):
        """Test that a labeled dataset passes without warnings."""
        directory = make_dataset("ds", 3, label="cup")

        result = validate_dataset_directory(directory)

        assert result.is_valid
        assert result.errors == []
        assert result.warnings == []

    def test_missing_directory(self, temp_dir):
        """Test that a missing directory is an error."""
        result = validate_dataset_directory(temp_dir / "missing")

        assert not result.is_valid
        assert "not found" in result.errors[0].message

    def test_unlabeled_annotations_warn(self, make_dataset):
        """Test that empty labels are warnings, not errors."""
        result = validate_dataset_directory(make_dataset("ds", 2))

        assert result.is_valid
        assert len(result.warnings) == 2

    def test_missing_sidecar_is_error(self, make_dataset):
        """Test that an image without a sidecar is an error."""
        directory = make_dataset("ds", 2, label="cup")
        (directory / "1.json").unlink()

        result = validate_dataset_directory(directory)

        assert not result.is_valid
        assert [e.item for e in result.errors] == ["1.jpg"]

    def test_orphan_sidecar_warns(self, make_dataset):
        """Test that a sidecar without an image is a warning."""
        directory = make_dataset("ds", 2, label="cup")
        (directory / "1.jpg").unlink()

        result = validate_dataset_directory(directory)

        assert result.is_valid
        assert [w.item for w in result.warnings] == ["1.json"]

    def test_non_image_asset_warns(self, make_dataset):
        """Test that unexpected files are warnings."""
        directory = make_dataset("ds", 1, label="cup")
        (directory / "notes.txt").write_text("hello")

        result = validate_dataset_directory(directory)

        assert result.is_valid
        assert [w.item for w in result.warnings] == ["notes.txt"]

    def test_empty_dataset_is_error(self, temp_dir):
        """Test that a dataset without frames is an error."""
        (temp_dir / "empty").mkdir()

        result = validate_dataset_directory(temp_dir / "empty")

        assert not result.is_valid
        assert "no usable frames" in result.errors[0].message
