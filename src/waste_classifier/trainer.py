"""Transfer-learning trainer, evaluator and model persistence.

``ImageClassificationTrainer`` wraps a ``lightning.Trainer`` behind the
fit / evaluate contract the pipeline relies on. Models are persisted as one
``torch.save`` artifact holding the model class target, its
hyperparameters (including the label set) and its state dict.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import lightning as L
import torch
from loguru import logger

from waste_classifier.callbacks import (
    DatasetStatisticsCallback,
    EpochMetricsCallback,
    ModelInfoCallback,
)
from waste_classifier.config import TrainerHyperparameters
from waste_classifier.data.datamodule import WasteDataModule
from waste_classifier.models.base import BaseClassificationModel
from waste_classifier.models.resnet import ResNet18ClassificationModel
from waste_classifier.schemas.manifest import LabeledImage
from waste_classifier.schemas.metrics import EpochMetrics, EvaluationMetrics
from waste_classifier.utils.hydra import resolve_target, target_path

ARTIFACT_VERSION = 1

ModelFactory = Callable[..., BaseClassificationModel]


class ImageClassificationTrainer:
    """Fit and evaluate a classification model on manifest records.

    Args:
        dataset_root: Root the records' relative paths resolve against.
        class_names: Valid labels in key-encoding order.
        hyperparameters: Epochs, batch size, image size and batch keys.
        model_factory: Called as ``factory(class_names=..., pretrained_weights=...,
            feature_column=..., label_column=..., image_size=...)``.
            Defaults to :class:`ResNet18ClassificationModel`.
        pretrained_weights: Local backbone weight file, or None for random init.
        on_epoch: Progress handler receiving one EpochMetrics per epoch.
        callbacks: Extra Lightning callbacks appended to the defaults.
    """

    def __init__(
        self,
        dataset_root: str | Path,
        class_names: Sequence[str],
        hyperparameters: TrainerHyperparameters,
        model_factory: ModelFactory | None = None,
        pretrained_weights: str | Path | None = None,
        on_epoch: Callable[[EpochMetrics], None] | None = None,
        callbacks: list[L.Callback] | None = None,
    ) -> None:
        self.dataset_root = Path(dataset_root)
        self.class_names = list(class_names)
        self.hyperparameters = hyperparameters
        self.model_factory = model_factory or ResNet18ClassificationModel
        self.pretrained_weights = (
            str(pretrained_weights) if pretrained_weights is not None else None
        )
        self.on_epoch = on_epoch
        self.extra_callbacks = list(callbacks or [])

    def _lightning_trainer(self, callbacks: list[L.Callback], **kwargs: Any) -> L.Trainer:
        return L.Trainer(
            accelerator=self.hyperparameters.accelerator,
            devices=1,
            logger=False,
            enable_checkpointing=False,
            enable_model_summary=False,
            callbacks=callbacks,
            **kwargs,
        )

    def build_model(self) -> BaseClassificationModel:
        hp = self.hyperparameters
        return self.model_factory(
            class_names=self.class_names,
            pretrained_weights=self.pretrained_weights,
            feature_column=hp.feature_column,
            label_column=hp.label_column,
            image_size=hp.image_size,
        )

    def fit(self, train_records: list[LabeledImage]) -> BaseClassificationModel:
        """Train a fresh model on train_records and return it in eval mode.

        Raises:
            ValueError: If train_records is empty.
        """
        if not train_records:
            raise ValueError("Cannot fit on an empty training set")

        datamodule = WasteDataModule(
            self.dataset_root,
            self.class_names,
            self.hyperparameters,
            train_records=train_records,
        )
        model = self.build_model()
        callbacks: list[L.Callback] = [
            ModelInfoCallback(),
            DatasetStatisticsCallback(),
            EpochMetricsCallback(self.on_epoch),
            *self.extra_callbacks,
        ]
        trainer = self._lightning_trainer(
            callbacks, max_epochs=self.hyperparameters.epochs
        )
        logger.info(
            f"Training {type(model).__name__} for {self.hyperparameters.epochs} "
            f"epoch(s), batch size {self.hyperparameters.batch_size}"
        )
        trainer.fit(model, datamodule=datamodule)
        logger.info("Training finished")
        return model.eval()

    def evaluate(
        self, model: BaseClassificationModel, test_records: list[LabeledImage]
    ) -> EvaluationMetrics:
        """Micro/macro accuracy and log-loss of model on test_records.

        An empty test set yields NaN metrics.
        """
        if not test_records:
            logger.warning("Test split is empty; evaluation metrics are undefined")
            nan = math.nan
            return EvaluationMetrics(micro_accuracy=nan, macro_accuracy=nan, log_loss=nan)

        datamodule = WasteDataModule(
            self.dataset_root,
            model.class_names,
            self.hyperparameters,
            test_records=test_records,
        )
        trainer = self._lightning_trainer([], enable_progress_bar=False)
        results = trainer.test(model, datamodule=datamodule, verbose=False)
        metrics = results[0]
        return EvaluationMetrics(
            micro_accuracy=float(metrics["test/micro_accuracy"]),
            macro_accuracy=float(metrics["test/macro_accuracy"]),
            log_loss=float(metrics["test/log_loss"]),
        )


def save_model(model: BaseClassificationModel, path: str | Path) -> Path:
    """Persist model as a single versioned artifact file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    artifact = {
        "artifact_version": ARTIFACT_VERSION,
        "model_target": target_path(type(model)),
        "hyper_parameters": dict(model.hparams),
        "state_dict": model.state_dict(),
    }
    torch.save(artifact, path)
    logger.info(f"Model saved to {path}")
    return path


def load_model(path: str | Path) -> BaseClassificationModel:
    """Rebuild a model written by :func:`save_model`, in eval mode.

    Raises:
        FileNotFoundError: If path does not exist.
        ValueError: If the artifact version is not supported.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Model artifact not found: {path}")
    artifact = torch.load(path, map_location="cpu", weights_only=True)
    version = artifact.get("artifact_version")
    if version != ARTIFACT_VERSION:
        raise ValueError(
            f"Unsupported model artifact version {version!r} in {path} "
            f"(expected {ARTIFACT_VERSION})"
        )
    model_cls = resolve_target(artifact["model_target"])
    hparams = dict(artifact["hyper_parameters"])
    # Weights come from the state dict; never re-read the backbone file.
    if "pretrained_weights" in hparams:
        hparams["pretrained_weights"] = None
    model: BaseClassificationModel = model_cls(**hparams)
    model.load_state_dict(artifact["state_dict"])
    logger.debug(f"Loaded {type(model).__name__} from {path}")
    return model.eval()
