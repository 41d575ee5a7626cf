"""Tests for manifest construction and the CSV sink."""

from pathlib import Path

import pytest
from PIL import Image

from waste_classifier.config import DatasetConfig
from waste_classifier.data.manifest import (
    build_manifest,
    read_manifest,
    scan_dataset,
    write_manifest,
)
from waste_classifier.errors import DatasetNotFound
from waste_classifier.schemas.manifest import LabeledImage


def _touch_image(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", (8, 8)).save(path, format="PNG")


class TestScanDataset:
    def test_counts_every_matching_file(self, dataset_config: DatasetConfig) -> None:
        records = scan_dataset(dataset_config)
        assert len(records) == 20
        assert {r.label for r in records} <= set(dataset_config.valid_labels)

    def test_paths_are_relative_with_forward_slashes(
        self, dataset_config: DatasetConfig
    ) -> None:
        records = scan_dataset(dataset_config)
        assert LabeledImage(relative_path="organik/1.jpg", label="organik") in records
        for r in records:
            assert "\\" not in r.relative_path
            assert not Path(r.relative_path).is_absolute()
            assert r.relative_path.split("/")[0] == r.label

    def test_excludes_unknown_folder_and_extension(self, tmp_path: Path) -> None:
        root = tmp_path / "dataset"
        _touch_image(root / "unknown" / "x.jpg")
        (root / "organik").mkdir(parents=True)
        (root / "organik" / "x.txt").write_text("not an image")
        _touch_image(root / "organik" / "keep.png")

        records = scan_dataset(DatasetConfig(root=str(root)))
        assert records == [LabeledImage(relative_path="organik/keep.png", label="organik")]

    def test_folder_names_are_normalized(self, tmp_path: Path) -> None:
        root = tmp_path / "dataset"
        _touch_image(root / "Kertas" / "a.JPG")

        records = scan_dataset(DatasetConfig(root=str(root)))
        assert records == [LabeledImage(relative_path="Kertas/a.JPG", label="kertas")]

    def test_ignores_files_at_root_and_nested_folders(self, tmp_path: Path) -> None:
        root = tmp_path / "dataset"
        _touch_image(root / "loose.jpg")
        _touch_image(root / "b3" / "nested" / "deep.jpg")
        _touch_image(root / "b3" / "top.jpg")

        records = scan_dataset(DatasetConfig(root=str(root)))
        assert [r.relative_path for r in records] == ["b3/top.jpg"]

    def test_custom_label_set(self, tmp_path: Path) -> None:
        root = tmp_path / "dataset"
        _touch_image(root / "glass" / "1.jpg")
        _touch_image(root / "organik" / "1.jpg")

        config = DatasetConfig(root=str(root), valid_labels=("glass", "metal"))
        assert [r.label for r in scan_dataset(config)] == ["glass"]

    def test_order_is_deterministic(self, dataset_config: DatasetConfig) -> None:
        assert scan_dataset(dataset_config) == scan_dataset(dataset_config)

    def test_missing_root_raises(self, tmp_path: Path) -> None:
        with pytest.raises(DatasetNotFound):
            scan_dataset(DatasetConfig(root=str(tmp_path / "missing")))

    def test_empty_root_gives_empty_manifest(self, tmp_path: Path) -> None:
        root = tmp_path / "dataset"
        root.mkdir()
        (root / "random").mkdir()
        assert scan_dataset(DatasetConfig(root=str(root))) == []


class TestManifestSink:
    def test_build_writes_headerless_csv(self, dataset_config: DatasetConfig) -> None:
        records = build_manifest(dataset_config)
        lines = Path(dataset_config.manifest_path).read_text().splitlines()
        assert len(lines) == len(records) == 20
        assert lines[0] == f"{records[0].relative_path},{records[0].label}"
        assert all(line.count(",") == 1 for line in lines)

    def test_rerun_overwrites(self, dataset_config: DatasetConfig) -> None:
        build_manifest(dataset_config)
        build_manifest(dataset_config)
        lines = Path(dataset_config.manifest_path).read_text().splitlines()
        assert len(lines) == 20

    def test_read_back_matches(self, dataset_config: DatasetConfig) -> None:
        records = build_manifest(dataset_config)
        loaded = read_manifest(dataset_config.manifest_path, dataset_config.valid_labels)
        assert loaded == records

    def test_read_rejects_unknown_label(self, tmp_path: Path) -> None:
        path = write_manifest(
            [LabeledImage(relative_path="glass/1.jpg", label="glass")],
            tmp_path / "m.csv",
        )
        with pytest.raises(ValueError, match="unknown label"):
            read_manifest(path, ("organik", "b3"))

    def test_read_rejects_malformed_row(self, tmp_path: Path) -> None:
        path = tmp_path / "m.csv"
        path.write_text("organik/1.jpg\n")
        with pytest.raises(ValueError, match="expected 2 columns"):
            read_manifest(path)
