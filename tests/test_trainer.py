"""Integration tests for ImageClassificationTrainer on a tiny CPU run."""

from __future__ import annotations

import math
from pathlib import Path

import lightning as L
import pytest
import torch

from waste_classifier.config import DatasetConfig, TrainerHyperparameters
from waste_classifier.data import scan_dataset, split_manifest
from waste_classifier.models import BaseClassificationModel, ResNet18ClassificationModel
from waste_classifier.schemas.manifest import LabeledImage
from waste_classifier.schemas.metrics import EpochMetrics
from waste_classifier.trainer import ImageClassificationTrainer


@pytest.fixture(autouse=True)
def _isolate_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    L.seed_everything(123)


class FixedLogitModel(BaseClassificationModel):
    """Returns preset logits row by row, in test loader order."""

    fixed_logits: torch.Tensor

    def forward(self, images: torch.Tensor) -> torch.Tensor:
        start = getattr(self, "_cursor", 0)
        self._cursor = start + images.shape[0]
        return self.fixed_logits[start : self._cursor]


@pytest.fixture()
def trainer(
    dataset_config: DatasetConfig, tiny_hparams: TrainerHyperparameters
) -> ImageClassificationTrainer:
    return ImageClassificationTrainer(
        dataset_root=dataset_config.root,
        class_names=dataset_config.valid_labels,
        hyperparameters=tiny_hparams,
    )


class TestFit:
    def test_fit_returns_eval_model_with_label_set(
        self, trainer: ImageClassificationTrainer, dataset_config: DatasetConfig
    ) -> None:
        split = split_manifest(scan_dataset(dataset_config), 0.2, seed=123)
        model = trainer.fit(split.train)
        assert isinstance(model, ResNet18ClassificationModel)
        assert model.class_names == list(dataset_config.valid_labels)
        assert not model.training

    def test_on_epoch_called_once_per_epoch(
        self, dataset_config: DatasetConfig
    ) -> None:
        received: list[EpochMetrics] = []
        hparams = TrainerHyperparameters(
            epochs=2, batch_size=8, image_size=32, accelerator="cpu"
        )
        trainer = ImageClassificationTrainer(
            dataset_root=dataset_config.root,
            class_names=dataset_config.valid_labels,
            hyperparameters=hparams,
            on_epoch=received.append,
        )
        trainer.fit(scan_dataset(dataset_config))

        assert [m.epoch for m in received] == [0, 1]
        assert all(m.loss is not None and math.isfinite(m.loss) for m in received)

    def test_failing_progress_handler_does_not_abort(
        self, dataset_config: DatasetConfig, tiny_hparams: TrainerHyperparameters
    ) -> None:
        def _boom(_: EpochMetrics) -> None:
            raise RuntimeError("display broke")

        trainer = ImageClassificationTrainer(
            dataset_root=dataset_config.root,
            class_names=dataset_config.valid_labels,
            hyperparameters=tiny_hparams,
            on_epoch=_boom,
        )
        assert trainer.fit(scan_dataset(dataset_config)) is not None

    def test_custom_model_factory(
        self, dataset_config: DatasetConfig, tiny_hparams: TrainerHyperparameters
    ) -> None:
        built: list[BaseClassificationModel] = []

        def _factory(**kwargs: object) -> BaseClassificationModel:
            model = ResNet18ClassificationModel(learning_rate=1e-3, **kwargs)  # type: ignore[arg-type]
            built.append(model)
            return model

        trainer = ImageClassificationTrainer(
            dataset_root=dataset_config.root,
            class_names=dataset_config.valid_labels,
            hyperparameters=tiny_hparams,
            model_factory=_factory,
        )
        model = trainer.fit(scan_dataset(dataset_config)[:8])
        assert built == [model]
        assert model.hparams["learning_rate"] == pytest.approx(1e-3)
        assert model.hparams["image_size"] == 32

    def test_empty_training_set_rejected(
        self, trainer: ImageClassificationTrainer
    ) -> None:
        with pytest.raises(ValueError, match="empty"):
            trainer.fit([])


class TestEvaluate:
    def test_metrics_in_range(
        self, trainer: ImageClassificationTrainer, dataset_config: DatasetConfig
    ) -> None:
        split = split_manifest(scan_dataset(dataset_config), 0.2, seed=123)
        model = trainer.fit(split.train)
        metrics = trainer.evaluate(model, split.test)

        assert 0.0 <= metrics.micro_accuracy <= 1.0
        assert 0.0 <= metrics.macro_accuracy <= 1.0
        assert metrics.log_loss >= 0.0

    def test_empty_test_set_gives_nan(
        self, trainer: ImageClassificationTrainer
    ) -> None:
        model = ResNet18ClassificationModel(
            class_names=["organik", "anorganik", "b3", "kertas"]
        )
        metrics = trainer.evaluate(model, [])
        assert math.isnan(metrics.micro_accuracy)
        assert math.isnan(metrics.log_loss)

    def test_exact_metrics_with_missing_classes(
        self, trainer: ImageClassificationTrainer
    ) -> None:
        # targets organik, organik, anorganik; predicted organik, b3, anorganik
        probs = torch.tensor(
            [
                [0.5, 0.25, 0.125, 0.125],
                [0.25, 0.125, 0.5, 0.125],
                [0.125, 0.5, 0.25, 0.125],
            ]
        )
        model = FixedLogitModel(class_names=["organik", "anorganik", "b3", "kertas"])
        model.fixed_logits = probs.log()
        records = [
            LabeledImage(relative_path="organik/1.jpg", label="organik"),
            LabeledImage(relative_path="organik/2.jpg", label="organik"),
            LabeledImage(relative_path="anorganik/1.jpg", label="anorganik"),
        ]

        metrics = trainer.evaluate(model, records)

        assert metrics.micro_accuracy == pytest.approx(2 / 3)
        # mean recall over organik (1/2) and anorganik (1/1) only
        assert metrics.macro_accuracy == pytest.approx(0.75)
        assert metrics.log_loss == pytest.approx(4 * math.log(2) / 3, rel=1e-5)
