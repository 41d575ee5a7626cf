"""Per-epoch progress callback with a fixed EpochMetrics record."""

from __future__ import annotations

from collections.abc import Callable

import lightning as L
from loguru import logger

from waste_classifier.schemas.metrics import EpochMetrics


def log_epoch_metrics(metrics: EpochMetrics) -> None:
    """Default progress handler: one log line per epoch."""
    loss = f"{metrics.loss:.4f}" if metrics.loss is not None else "n/a"
    acc = f"{metrics.accuracy:.2%}" if metrics.accuracy is not None else "n/a"
    logger.info(f"Epoch {metrics.epoch}: loss={loss} accuracy={acc}")


class EpochMetricsCallback(L.Callback):
    """Hand an :class:`EpochMetrics` record to ``on_epoch`` after each epoch.

    Best effort: any exception raised while building or handling the record
    is logged and replaced with a generic completion notice. Training is
    never interrupted by it.

    Args:
        on_epoch: Receives one record per finished training epoch.
    """

    def __init__(
        self, on_epoch: Callable[[EpochMetrics], None] | None = None
    ) -> None:
        super().__init__()
        self.on_epoch = on_epoch or log_epoch_metrics

    def on_train_epoch_end(
        self, trainer: L.Trainer, pl_module: L.LightningModule
    ) -> None:
        try:
            metrics = pl_module.current_epoch_metrics()  # type: ignore[operator]
            self.on_epoch(metrics)
        except Exception as e:
            logger.debug(f"Epoch metrics unavailable: {e}")
            logger.info(f"Epoch {trainer.current_epoch} completed")
