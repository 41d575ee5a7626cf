"""Data pipeline for waste_classifier."""

from waste_classifier.data.datamodule import WasteDataModule
from waste_classifier.data.dataset import WasteImageDataset
from waste_classifier.data.manifest import (
    build_manifest,
    read_manifest,
    scan_dataset,
    write_manifest,
)
from waste_classifier.data.split import split_manifest

__all__ = [
    "WasteDataModule",
    "WasteImageDataset",
    "build_manifest",
    "read_manifest",
    "scan_dataset",
    "split_manifest",
    "write_manifest",
]
