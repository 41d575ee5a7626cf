"""Pydantic frozen configuration models for waste_classifier."""

import tempfile
from pathlib import Path

from pydantic import BaseModel, field_validator, model_validator

DEFAULT_LABELS: tuple[str, ...] = ("organik", "anorganik", "b3", "kertas")
DEFAULT_IMAGE_EXTENSIONS: tuple[str, ...] = (".jpg", ".jpeg", ".png")

RESNET18_WEIGHTS_URL = "https://download.pytorch.org/models/resnet18-f37072fd.pth"


class DatasetConfig(BaseModel, frozen=True):
    """Where the labeled images live and how the manifest is written.

    Labels and extensions are normalized (lowercased, stripped) at
    construction so lookups never depend on how the config was typed.
    """

    root: str = "dataset"
    manifest_path: str = "dataset_labels.csv"
    valid_labels: tuple[str, ...] = DEFAULT_LABELS
    image_extensions: tuple[str, ...] = DEFAULT_IMAGE_EXTENSIONS

    @field_validator("valid_labels")
    @classmethod
    def _normalize_labels(cls, labels: tuple[str, ...]) -> tuple[str, ...]:
        normalized = tuple(label.lower().strip() for label in labels)
        if not normalized or any(not label for label in normalized):
            raise ValueError("valid_labels must be a non-empty list of names")
        if len(set(normalized)) != len(normalized):
            raise ValueError(f"valid_labels contains duplicates: {normalized}")
        return normalized

    @field_validator("image_extensions")
    @classmethod
    def _normalize_extensions(cls, extensions: tuple[str, ...]) -> tuple[str, ...]:
        result = []
        for ext in extensions:
            ext = ext.lower().strip()
            result.append(ext if ext.startswith(".") else f".{ext}")
        return tuple(result)


class SplitConfig(BaseModel, frozen=True):
    """Train/test partition parameters."""

    test_fraction: float = 0.2
    seed: int = 123

    @field_validator("test_fraction")
    @classmethod
    def _fraction_in_open_interval(cls, value: float) -> float:
        if not 0.0 < value < 1.0:
            raise ValueError(f"test_fraction must be in (0, 1), got {value}")
        return value


class TrainerHyperparameters(BaseModel, frozen=True):
    """Hyperparameters handed to ImageClassificationTrainer.

    ``feature_column`` and ``label_column`` name the batch keys that carry
    the image tensor and the integer label tensor.
    """

    epochs: int = 50
    batch_size: int = 32
    feature_column: str = "images"
    label_column: str = "labels"
    image_size: int = 224
    num_workers: int = 0
    accelerator: str = "auto"

    @model_validator(mode="after")
    def _positive_sizes(self) -> "TrainerHyperparameters":
        if self.epochs < 1 or self.batch_size < 1 or self.image_size < 1:
            raise ValueError("epochs, batch_size and image_size must be positive")
        if self.feature_column == self.label_column:
            raise ValueError("feature_column and label_column must differ")
        return self


class ResourceConfig(BaseModel, frozen=True):
    """Location of the pretrained backbone weight file.

    ``cache_dir`` of None resolves to ``<tmp>/waste_classifier``.
    """

    url: str = RESNET18_WEIGHTS_URL
    filename: str = "resnet18-f37072fd.pth"
    cache_dir: str | None = None
    timeout: float = 120.0
    user_agent: str = "waste-classifier/0.0.1 (+backbone weight fetcher)"

    @property
    def cache_path(self) -> Path:
        base = (
            Path(self.cache_dir)
            if self.cache_dir is not None
            else Path(tempfile.gettempdir()) / "waste_classifier"
        )
        return base / self.filename


class PipelineConfig(BaseModel, frozen=True):
    """Everything the end-to-end training run needs."""

    dataset: DatasetConfig = DatasetConfig()
    split: SplitConfig = SplitConfig()
    hyperparameters: TrainerHyperparameters = TrainerHyperparameters()
    resource: ResourceConfig = ResourceConfig()
    model_path: str = "trash_model.pt"
    top_k: int = 3
    use_pretrained: bool = True

    @field_validator("top_k")
    @classmethod
    def _positive_top_k(cls, value: int) -> int:
        if value < 1:
            raise ValueError(f"top_k must be at least 1, got {value}")
        return value
