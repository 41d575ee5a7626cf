"""Prediction result schemas.

One result per image with the top-K classes sorted by score.
"""

from __future__ import annotations

from pydantic import BaseModel


class ClassScore(BaseModel, frozen=True):
    """Softmax score of a single class."""

    label: str
    score: float


class PredictionResult(BaseModel, frozen=True):
    """Outcome of classifying one image."""

    image_path: str
    predicted_label: str
    per_class_scores: list[ClassScore]
