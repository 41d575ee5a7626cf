"""ResNet18 waste classification model."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import torch
import torchvision.models as tv_models
from loguru import logger

from waste_classifier.models.base import BaseClassificationModel
from waste_classifier.utils.hydra import register


@register(group="model", name="resnet18", learning_rate=1e-4, weight_decay=1e-4)
class ResNet18ClassificationModel(BaseClassificationModel):
    """ResNet18 backbone, optionally initialized from ImageNet weights.

    ``pretrained_weights`` is a local state-dict file (the one the resource
    fetcher caches). The ImageNet head is loaded with it and then replaced
    with ``Linear(512, num_classes)``. Leave it None in tests to start from
    random weights without touching the network or disk.
    """

    def __init__(
        self,
        class_names: list[str],
        pretrained_weights: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(class_names=list(class_names), **kwargs)
        backbone = tv_models.resnet18(weights=None)
        if pretrained_weights is not None:
            state = torch.load(
                Path(pretrained_weights), map_location="cpu", weights_only=True
            )
            backbone.load_state_dict(state)
            logger.info(f"Loaded backbone weights from {pretrained_weights}")
        backbone.fc = torch.nn.Linear(backbone.fc.in_features, self.num_classes)
        self.model = backbone

    def forward(self, images: torch.Tensor) -> torch.Tensor:
        return self.model(images)  # type: ignore[no-any-return]
