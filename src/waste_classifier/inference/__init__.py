"""Single-image inference with a persisted waste classifier."""

from waste_classifier.inference.predictor import (
    WastePredictor,
    predict_file,
    rank_scores,
)

__all__ = [
    "WastePredictor",
    "predict_file",
    "rank_scores",
]
