"""Dataset over manifest records resolved against the dataset root."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path

import torch
from loguru import logger
from PIL import Image
from torch.utils.data import Dataset

from waste_classifier.schemas.manifest import LabeledImage


class WasteImageDataset(Dataset[tuple[torch.Tensor, int]]):
    """Images listed in a manifest, each paired with its class index.

    Args:
        root: Dataset root the records' relative paths are resolved against.
        records: Manifest records (one subset of a Split).
        class_to_idx: Label -> index mapping in label-set order. Shared by
            train and test so both use the same key encoding.
        transform: Optional callable applied to PIL Image, returns torch.Tensor.
    """

    def __init__(
        self,
        root: Path,
        records: Sequence[LabeledImage],
        class_to_idx: dict[str, int],
        transform: Callable[[Image.Image], torch.Tensor] | None = None,
    ) -> None:
        self.root = root
        self.class_to_idx = class_to_idx
        self.transform = transform
        self.samples: list[tuple[Path, int]] = []
        for record in records:
            if record.label not in class_to_idx:
                raise ValueError(
                    f"Label {record.label!r} of {record.relative_path} is not "
                    f"in the trained label set {list(class_to_idx)}"
                )
            self.samples.append(
                (root / record.relative_path, class_to_idx[record.label])
            )
        logger.debug(f"WasteImageDataset: {len(self.samples)} samples under {root}")

    def __len__(self) -> int:
        return len(self.samples)

    def __getitem__(self, idx: int) -> tuple[torch.Tensor, int]:
        img_path, label = self.samples[idx]
        img = Image.open(img_path).convert("RGB")
        if self.transform is not None:
            img = self.transform(img)  # type: ignore[assignment]
        return img, label  # type: ignore[return-value]
