"""Manifest record and train/test split schemas."""

from __future__ import annotations

from pydantic import BaseModel


class LabeledImage(BaseModel, frozen=True):
    """One image of the training corpus.

    ``relative_path`` is relative to the dataset root and always uses
    forward slashes.
    """

    relative_path: str
    label: str


class Split(BaseModel, frozen=True):
    """Disjoint, exhaustive partition of a manifest."""

    train: list[LabeledImage]
    test: list[LabeledImage]

    def __len__(self) -> int:
        return len(self.train) + len(self.test)
