"""Train and evaluation transform pipelines shared by training and inference."""

from __future__ import annotations

import torch
from torchvision.transforms import v2

# ImageNet normalization statistics, matching the pretrained backbone.
IMAGENET_MEAN: list[float] = [0.485, 0.456, 0.406]
IMAGENET_STD: list[float] = [0.229, 0.224, 0.225]


def build_train_transforms(image_size: int) -> v2.Compose:
    """Augmentation + normalization, applied to the train subset only."""
    return v2.Compose([
        v2.RandomResizedCrop(image_size, scale=(0.6, 1.0), antialias=True),
        v2.RandomHorizontalFlip(),
        v2.ColorJitter(brightness=0.2, contrast=0.2, saturation=0.2),
        v2.ToImage(),
        v2.ToDtype(torch.float32, scale=True),
        v2.Normalize(mean=IMAGENET_MEAN, std=IMAGENET_STD),
    ])


def build_eval_transforms(image_size: int) -> v2.Compose:
    """Deterministic resize + center crop + normalize for test and inference.

    Resizes the short side to ``image_size * 256 / 224`` before cropping,
    the usual ImageNet evaluation ratio.
    """
    resize = max(image_size, round(image_size * 256 / 224))
    return v2.Compose([
        v2.Resize(resize, antialias=True),
        v2.CenterCrop(image_size),
        v2.ToImage(),
        v2.ToDtype(torch.float32, scale=True),
        v2.Normalize(mean=IMAGENET_MEAN, std=IMAGENET_STD),
    ])
