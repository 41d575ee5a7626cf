"""Base LightningModule for waste classification models."""

from __future__ import annotations

from typing import Any

import lightning as L
import torch
import torch.nn.functional as F
from torch.optim.lr_scheduler import CosineAnnealingLR, LinearLR, SequentialLR
from torchmetrics import MeanMetric
from torchmetrics.classification import MulticlassAccuracy, MulticlassConfusionMatrix

from waste_classifier.schemas.metrics import EpochMetrics


def macro_recall(confusion: torch.Tensor) -> torch.Tensor:
    """Mean per-class recall over the classes present in the targets.

    Rows of confusion are targets, columns are predictions. A class that
    only ever appears as a prediction has no row support and is skipped.
    """
    confusion = confusion.float()
    support = confusion.sum(dim=1)
    present = support > 0
    if not present.any():
        return torch.tensor(float("nan"))
    return (confusion.diag()[present] / support[present]).mean()


class BaseClassificationModel(L.LightningModule):
    """Abstract base for backbone classification models.

    Subclasses must set ``self.model`` (nn.Module backbone) in ``__init__``
    and implement ``forward()``.

    ``class_names`` is stored in the hyperparameters so a persisted model
    carries its own key encoding: index ``i`` of the score vector is
    ``class_names[i]``.  Batches are dicts keyed by ``feature_column`` and
    ``label_column``.
    """

    def __init__(
        self,
        class_names: list[str],
        learning_rate: float = 1e-4,
        weight_decay: float = 1e-4,
        warmup_epochs: int = 2,
        label_smoothing: float = 0.0,
        warmup_start_factor: float = 1e-2,
        cosine_eta_min_factor: float = 0.05,
        feature_column: str = "images",
        label_column: str = "labels",
        image_size: int = 224,
    ) -> None:
        super().__init__()
        self.save_hyperparameters()
        num_classes = len(class_names)
        if num_classes < 2:
            raise ValueError(f"Need at least 2 classes, got {class_names}")

        self.loss_fn = torch.nn.CrossEntropyLoss(label_smoothing=label_smoothing)

        # Train metrics are reset at epoch start, not end, so callbacks can
        # read them during on_train_epoch_end regardless of hook order.
        self.train_loss = MeanMetric()
        self.train_acc = MulticlassAccuracy(num_classes=num_classes, average="micro")

        self.test_micro_acc = MulticlassAccuracy(
            num_classes=num_classes, average="micro"
        )
        self.test_confusion = MulticlassConfusionMatrix(num_classes=num_classes)
        self.test_log_loss = MeanMetric()

    @property
    def class_names(self) -> list[str]:
        return list(self.hparams["class_names"])

    @property
    def num_classes(self) -> int:
        return len(self.hparams["class_names"])

    def _unpack(
        self, batch: dict[str, torch.Tensor]
    ) -> tuple[torch.Tensor, torch.Tensor]:
        return batch[self.hparams["feature_column"]], batch[self.hparams["label_column"]]

    def on_train_epoch_start(self) -> None:
        self.train_loss.reset()
        self.train_acc.reset()

    def training_step(
        self, batch: dict[str, torch.Tensor], batch_idx: int
    ) -> torch.Tensor:
        images, labels = self._unpack(batch)
        logits = self(images)
        loss: torch.Tensor = self.loss_fn(logits, labels)
        self.log("train/loss", loss, on_step=True, on_epoch=False, prog_bar=True)
        self.train_loss.update(loss.detach(), weight=labels.numel())
        self.train_acc.update(logits.detach(), labels)
        return loss

    def on_train_epoch_end(self) -> None:
        if self.train_acc.update_called:
            self.log("train/loss_epoch", self.train_loss.compute())
            self.log("train/acc", self.train_acc.compute())

    def current_epoch_metrics(self) -> EpochMetrics:
        """Loss and accuracy accumulated so far in the running epoch."""
        if not self.train_acc.update_called:
            return EpochMetrics(epoch=self.current_epoch)
        return EpochMetrics(
            epoch=self.current_epoch,
            loss=float(self.train_loss.compute()),
            accuracy=float(self.train_acc.compute()),
        )

    def test_step(self, batch: dict[str, torch.Tensor], batch_idx: int) -> None:
        images, labels = self._unpack(batch)
        logits = self(images)
        self.test_micro_acc.update(logits, labels)
        self.test_confusion.update(logits, labels)
        self.test_log_loss.update(F.cross_entropy(logits, labels, reduction="none"))

    def on_test_epoch_end(self) -> None:
        self.log("test/micro_accuracy", self.test_micro_acc.compute())
        self.log("test/macro_accuracy", macro_recall(self.test_confusion.compute()))
        self.log("test/log_loss", self.test_log_loss.compute())
        self.test_micro_acc.reset()
        self.test_confusion.reset()
        self.test_log_loss.reset()

    @torch.inference_mode()
    def predict_scores(self, images: torch.Tensor) -> torch.Tensor:
        """Softmax scores of shape (B, num_classes) in ``class_names`` order."""
        self.eval()
        logits = self(images.to(self.device))
        return torch.softmax(logits, dim=-1).cpu()

    def configure_optimizers(self) -> dict[str, Any]:  # type: ignore[override]
        optimizer = torch.optim.AdamW(
            self.parameters(),
            lr=self.hparams["learning_rate"],
            weight_decay=self.hparams["weight_decay"],
        )
        max_epochs = (self.trainer.max_epochs or 50) if self.trainer else 50
        warmup = min(int(self.hparams["warmup_epochs"]), max(0, max_epochs - 1))
        cosine_epochs = max(1, max_epochs - warmup)
        eta_min = self.hparams["learning_rate"] * self.hparams["cosine_eta_min_factor"]

        cosine_sched = CosineAnnealingLR(optimizer, T_max=cosine_epochs, eta_min=eta_min)
        if warmup == 0:
            scheduler: Any = cosine_sched
        else:
            warmup_sched = LinearLR(
                optimizer,
                start_factor=self.hparams["warmup_start_factor"],
                end_factor=1.0,
                total_iters=warmup,
            )
            scheduler = SequentialLR(
                optimizer,
                schedulers=[warmup_sched, cosine_sched],
                milestones=[warmup],
            )
        return {
            "optimizer": optimizer,
            "lr_scheduler": {"scheduler": scheduler, "interval": "epoch"},
        }
