"""Training callbacks for waste_classifier."""

from waste_classifier.callbacks.epoch_metrics import EpochMetricsCallback
from waste_classifier.callbacks.model_info import ModelInfoCallback
from waste_classifier.callbacks.statistics import DatasetStatisticsCallback

__all__ = [
    "DatasetStatisticsCallback",
    "EpochMetricsCallback",
    "ModelInfoCallback",
]
