"""Classification model implementations."""

from waste_classifier.models.base import BaseClassificationModel
from waste_classifier.models.resnet import ResNet18ClassificationModel

__all__ = [
    "BaseClassificationModel",
    "ResNet18ClassificationModel",
]
