"""Predictor for persisted waste classification models."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from loguru import logger
from PIL import Image

from waste_classifier.data.transforms import build_eval_transforms
from waste_classifier.data.utils import to_relative_posix
from waste_classifier.errors import ImageNotFound
from waste_classifier.schemas.prediction import ClassScore, PredictionResult
from waste_classifier.trainer import load_model


def rank_scores(
    labels: Sequence[str], scores: Sequence[float], top_k: int | None = None
) -> list[ClassScore]:
    """Pair labels with scores and sort by descending score.

    Ties keep label-set order (stable on the label index).
    """
    if len(labels) != len(scores):
        raise ValueError(f"{len(labels)} labels but {len(scores)} scores")
    if top_k is not None and top_k < 1:
        raise ValueError(f"top_k must be at least 1, got {top_k}")
    order = sorted(range(len(labels)), key=lambda i: (-scores[i], i))
    if top_k is not None:
        order = order[:top_k]
    return [ClassScore(label=labels[i], score=float(scores[i])) for i in order]


class WastePredictor:
    """Classify single images with a model written by ``save_model``.

    The model is loaded once at construction. Images are resolved through
    their path relative to the training dataset root, normalized the same
    way as manifest records.

    Args:
        model_path: Path to the persisted model artifact.
        dataset_root: Dataset root the model was trained on.
        top_k: Number of ranked classes to return.
    """

    def __init__(
        self,
        model_path: str | Path,
        dataset_root: str | Path,
        top_k: int = 3,
    ) -> None:
        if top_k < 1:
            raise ValueError(f"top_k must be at least 1, got {top_k}")
        self.model = load_model(model_path)
        self.dataset_root = Path(dataset_root)
        self.top_k = top_k
        self.transform = build_eval_transforms(int(self.model.hparams["image_size"]))

    @property
    def class_names(self) -> list[str]:
        return self.model.class_names

    def predict(self, image_path: str | Path) -> PredictionResult:
        """Classify the image at image_path.

        Raises:
            ImageNotFound: If image_path does not exist.
        """
        image_path = Path(image_path)
        if not image_path.is_file():
            raise ImageNotFound(image_path)

        relative_path = to_relative_posix(image_path, self.dataset_root)
        with Image.open(self.dataset_root / relative_path) as img:
            tensor = self.transform(img.convert("RGB"))
        scores = self.model.predict_scores(tensor.unsqueeze(0))[0].tolist()

        ranked = rank_scores(self.class_names, scores, self.top_k)
        logger.debug(f"Prediction for {relative_path}: {ranked[0].label}")
        return PredictionResult(
            image_path=relative_path,
            predicted_label=ranked[0].label,
            per_class_scores=ranked,
        )


def predict_file(
    model_path: str | Path,
    image_path: str | Path,
    dataset_root: str | Path,
    top_k: int = 3,
) -> PredictionResult:
    """Load the model and classify one image.

    The image is checked before the model is loaded, so a missing image
    fails fast with ImageNotFound.
    """
    if not Path(image_path).is_file():
        raise ImageNotFound(image_path)
    return WastePredictor(model_path, dataset_root, top_k=top_k).predict(image_path)
