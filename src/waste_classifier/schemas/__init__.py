"""Record schemas shared across waste_classifier modules."""

from waste_classifier.schemas.manifest import LabeledImage, Split
from waste_classifier.schemas.metrics import EpochMetrics, EvaluationMetrics
from waste_classifier.schemas.prediction import ClassScore, PredictionResult

__all__ = [
    "ClassScore",
    "EpochMetrics",
    "EvaluationMetrics",
    "LabeledImage",
    "PredictionResult",
    "Split",
]
