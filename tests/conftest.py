"""Shared pytest fixtures for waste_classifier tests."""

from pathlib import Path

import pytest
from PIL import Image

from waste_classifier.config import DatasetConfig, TrainerHyperparameters

LABELS = ("organik", "anorganik", "b3", "kertas")
LABEL_COLORS = {
    "organik": (40, 160, 40),
    "anorganik": (160, 160, 160),
    "b3": (200, 30, 30),
    "kertas": (240, 230, 200),
}


def make_image(path: Path, color: tuple[int, int, int], size: int = 48) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", (size, size), color=color).save(path)
    return path


@pytest.fixture()
def waste_dataset_dir(tmp_path: Path) -> Path:
    """Dataset in ``<root>/<label>/<n>.jpg`` layout.

    4 label folders x 5 images = 20 images, solid colour per label.
    """
    root = tmp_path / "dataset"
    for label in LABELS:
        for i in range(1, 6):
            make_image(root / label / f"{i}.jpg", LABEL_COLORS[label])
    return root


@pytest.fixture()
def dataset_config(waste_dataset_dir: Path, tmp_path: Path) -> DatasetConfig:
    return DatasetConfig(
        root=str(waste_dataset_dir),
        manifest_path=str(tmp_path / "dataset_labels.csv"),
    )


@pytest.fixture()
def tiny_hparams() -> TrainerHyperparameters:
    """CPU-only, single epoch, 32px images: fast enough for unit tests."""
    return TrainerHyperparameters(
        epochs=1,
        batch_size=4,
        image_size=32,
        num_workers=0,
        accelerator="cpu",
    )
