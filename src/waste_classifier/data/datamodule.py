"""LightningDataModule serving a manifest Split."""

from pathlib import Path

import lightning as L
import torch
from loguru import logger
from torch.utils.data import DataLoader

from waste_classifier.config import TrainerHyperparameters
from waste_classifier.data.dataset import WasteImageDataset
from waste_classifier.data.transforms import (
    build_eval_transforms,
    build_train_transforms,
)
from waste_classifier.schemas.manifest import LabeledImage


class WasteDataModule(L.LightningDataModule):
    """DataModule for a waste photograph manifest.

    Serves the train subset with augmentation and the test subset with
    deterministic eval transforms. No validation loader is defined; the
    held-out subset is only used by ``Trainer.test``.

    class_to_idx follows the configured label-set order, not alphabetical
    order, so score vectors line up with ``class_names``.

    Args:
        dataset_root: Root the records' relative paths resolve against.
        class_names: Valid labels in key-encoding order.
        hyperparameters: Batch size, image size, worker count and batch keys.
        train_records: Records to fit on.
        test_records: Records to evaluate on.
    """

    def __init__(
        self,
        dataset_root: str | Path,
        class_names: tuple[str, ...] | list[str],
        hyperparameters: TrainerHyperparameters,
        train_records: list[LabeledImage] | None = None,
        test_records: list[LabeledImage] | None = None,
    ) -> None:
        super().__init__()
        self._data_root = Path(dataset_root)
        self._class_names = list(class_names)
        self._hparams = hyperparameters
        self.train_records = list(train_records or [])
        self.test_records = list(test_records or [])

        num_workers = hyperparameters.num_workers
        if torch.backends.mps.is_available() and num_workers > 0:
            logger.warning(
                "MPS detected: setting num_workers=0 to avoid multiprocessing crash."
            )
            num_workers = 0
        self._num_workers = num_workers

        self._train_dataset: WasteImageDataset | None = None
        self._test_dataset: WasteImageDataset | None = None

    @property
    def class_to_idx(self) -> dict[str, int]:
        return {name: i for i, name in enumerate(self._class_names)}

    @property
    def num_classes(self) -> int:
        return len(self._class_names)

    # ------------------------------------------------------------------
    # LightningDataModule lifecycle
    # ------------------------------------------------------------------

    def setup(self, stage: str | None = None) -> None:
        """Instantiate datasets: "fit" -> train, "test" -> test, None -> both."""
        if stage in ("fit", None):
            self._train_dataset = WasteImageDataset(
                root=self._data_root,
                records=self.train_records,
                class_to_idx=self.class_to_idx,
                transform=build_train_transforms(self._hparams.image_size),
            )
            logger.info(f"Setup fit: train={len(self._train_dataset)} samples")

        if stage in ("test", None):
            self._test_dataset = WasteImageDataset(
                root=self._data_root,
                records=self.test_records,
                class_to_idx=self.class_to_idx,
                transform=build_eval_transforms(self._hparams.image_size),
            )
            logger.info(f"Setup test: {len(self._test_dataset)} samples")

    def _collate_fn(
        self, batch: list[tuple[torch.Tensor, int]]
    ) -> dict[str, torch.Tensor]:
        """Stack (image, label) tuples under the configured batch keys."""
        images = torch.stack([item[0] for item in batch])
        labels = torch.tensor([item[1] for item in batch], dtype=torch.long)
        return {
            self._hparams.feature_column: images,
            self._hparams.label_column: labels,
        }

    def train_dataloader(self) -> DataLoader[tuple[torch.Tensor, int]]:
        if self._train_dataset is None:
            raise RuntimeError("Call setup('fit') first")
        batch_size = self._hparams.batch_size
        # BatchNorm cannot train on a trailing batch of one sample
        drop_last = (
            len(self._train_dataset) > batch_size
            and len(self._train_dataset) % batch_size == 1
        )
        return DataLoader(
            self._train_dataset,
            batch_size=batch_size,
            shuffle=True,
            drop_last=drop_last,
            num_workers=self._num_workers,
            persistent_workers=self._num_workers > 0,
            collate_fn=self._collate_fn,
        )

    def test_dataloader(self) -> DataLoader[tuple[torch.Tensor, int]]:
        if self._test_dataset is None:
            raise RuntimeError("Call setup('test') first")
        return DataLoader(
            self._test_dataset,
            batch_size=self._hparams.batch_size,
            shuffle=False,
            num_workers=self._num_workers,
            persistent_workers=self._num_workers > 0,
            collate_fn=self._collate_fn,
        )
