"""Training and evaluation metric records."""

from __future__ import annotations

from pydantic import BaseModel


class EpochMetrics(BaseModel, frozen=True):
    """Fixed per-epoch record handed to the progress callback.

    ``loss`` and ``accuracy`` are None when the epoch saw no batches.
    """

    epoch: int
    loss: float | None = None
    accuracy: float | None = None


class EvaluationMetrics(BaseModel, frozen=True):
    """Test-set metrics.

    micro_accuracy: fraction of correctly classified samples.
    macro_accuracy: mean of per-class recall.
    log_loss: mean negative log-likelihood of the true class.
    """

    micro_accuracy: float
    macro_accuracy: float
    log_loss: float
