"""Seeded train/test partition of a manifest."""

from __future__ import annotations

import torch
from loguru import logger

from waste_classifier.schemas.manifest import LabeledImage, Split


def split_manifest(
    manifest: list[LabeledImage], test_fraction: float, seed: int
) -> Split:
    """Partition manifest into disjoint train/test subsets.

    The test subset holds ``round(len(manifest) * test_fraction)`` records
    picked by a seeded permutation, so identical inputs always give the
    same partition. Both subsets keep the manifest's relative order. No
    stratification by label is attempted.

    Raises:
        ValueError: If test_fraction is not strictly between 0 and 1.
    """
    if not 0.0 < test_fraction < 1.0:
        raise ValueError(f"test_fraction must be in (0, 1), got {test_fraction}")

    n = len(manifest)
    n_test = round(n * test_fraction)
    generator = torch.Generator().manual_seed(seed)
    order = torch.randperm(n, generator=generator).tolist()
    test_idx = set(order[:n_test])

    train = [r for i, r in enumerate(manifest) if i not in test_idx]
    test = [r for i, r in enumerate(manifest) if i in test_idx]
    logger.info(
        f"Split {n} records: train={len(train)}, test={len(test)} "
        f"(test_fraction={test_fraction}, seed={seed})"
    )
    return Split(train=train, test=test)
