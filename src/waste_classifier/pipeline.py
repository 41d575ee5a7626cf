"""End-to-end training run: manifest -> split -> fetch -> fit -> evaluate -> save -> predict.

Each step blocks on the previous one. Reportable conditions (missing
dataset, failed backbone download, empty training split, missing sample
image) are logged and end the run early. Library failures during training
propagate.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from loguru import logger
from pydantic import BaseModel
from rich import box
from rich.console import Console
from rich.table import Table

from waste_classifier.config import PipelineConfig
from waste_classifier.data.manifest import build_manifest, read_manifest
from waste_classifier.data.split import split_manifest
from waste_classifier.data.utils import find_files, get_files, normalize_label
from waste_classifier.errors import DatasetNotFound, ImageNotFound
from waste_classifier.inference.predictor import predict_file
from waste_classifier.resources import FetchResult, ResourceFetcher, remediation_message
from waste_classifier.schemas.manifest import LabeledImage, Split
from waste_classifier.schemas.metrics import EpochMetrics, EvaluationMetrics
from waste_classifier.schemas.prediction import PredictionResult
from waste_classifier.trainer import ImageClassificationTrainer, ModelFactory, save_model


class PipelineResult(BaseModel):
    """What a run produced. Fields stay None for steps that did not run."""

    manifest: list[LabeledImage] | None = None
    split: Split | None = None
    fetch: FetchResult | None = None
    metrics: EvaluationMetrics | None = None
    model_path: Path | None = None
    prediction: PredictionResult | None = None
    stopped_reason: str | None = None

    @property
    def completed(self) -> bool:
        return self.stopped_reason is None


def find_sample_image(config: PipelineConfig) -> Path | None:
    """First image of the first valid label folder, else the first image anywhere."""
    root = Path(config.dataset.root)
    extensions = config.dataset.image_extensions
    first_label = config.dataset.valid_labels[0]
    for label_dir in sorted(p for p in root.iterdir() if p.is_dir()):
        if normalize_label(label_dir.name) == first_label:
            images = get_files(label_dir, extensions)
            if images:
                return images[0]
    images = find_files(root, extensions)
    return images[0] if images else None


def print_metrics(metrics: EvaluationMetrics) -> None:
    table = Table(
        title="Evaluation Metrics",
        header_style="bold magenta",
        box=box.SQUARE,
        show_lines=True,
    )
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="green")
    table.add_row("Accuracy (micro)", f"{metrics.micro_accuracy:.2%}")
    table.add_row("Accuracy (macro)", f"{metrics.macro_accuracy:.2%}")
    table.add_row("Log loss", f"{metrics.log_loss:.4f}")
    Console().print(table)


def print_prediction(result: PredictionResult) -> None:
    table = Table(
        title=f"Prediction: {result.image_path} -> {result.predicted_label}",
        header_style="bold magenta",
        box=box.SQUARE,
    )
    table.add_column("Label", style="cyan")
    table.add_column("Score", justify="right", style="green")
    for item in result.per_class_scores:
        table.add_row(item.label, f"{item.score:.2%}")
    Console().print(table)


def run_pipeline(
    config: PipelineConfig,
    model_factory: ModelFactory | None = None,
    fetcher: ResourceFetcher | None = None,
    on_epoch: Callable[[EpochMetrics], None] | None = None,
) -> PipelineResult:
    """Run the full training pipeline described by config."""
    result = PipelineResult()
    dataset = config.dataset

    try:
        manifest = build_manifest(dataset)
        # Split the persisted sink, not the in-memory scan.
        manifest = read_manifest(dataset.manifest_path, dataset.valid_labels)
    except DatasetNotFound as e:
        logger.error(f"{e}. Nothing to train on.")
        result.stopped_reason = "dataset_not_found"
        return result
    result.manifest = manifest

    split = split_manifest(manifest, config.split.test_fraction, config.split.seed)
    result.split = split
    if not split.train:
        logger.error(
            f"No training images found under {dataset.root} "
            f"(expected subfolders: {', '.join(dataset.valid_labels)})"
        )
        result.stopped_reason = "empty_training_split"
        return result

    weights_path: Path | None = None
    if config.use_pretrained:
        fetch = (fetcher or ResourceFetcher(config.resource)).fetch()
        result.fetch = fetch
        if not fetch.ok:
            logger.error(remediation_message(config.resource, fetch))
            result.stopped_reason = "resource_fetch_failed"
            return result
        weights_path = fetch.path

    trainer = ImageClassificationTrainer(
        dataset_root=dataset.root,
        class_names=dataset.valid_labels,
        hyperparameters=config.hyperparameters,
        model_factory=model_factory,
        pretrained_weights=weights_path,
        on_epoch=on_epoch,
    )
    model = trainer.fit(split.train)

    metrics = trainer.evaluate(model, split.test)
    result.metrics = metrics
    print_metrics(metrics)

    result.model_path = save_model(model, config.model_path)

    sample = find_sample_image(config)
    if sample is None:
        logger.warning("No sample image found; skipping example prediction")
        return result
    try:
        prediction = predict_file(
            result.model_path, sample, dataset.root, top_k=config.top_k
        )
    except ImageNotFound as e:
        logger.error(f"{e}. Skipping example prediction.")
        return result
    result.prediction = prediction
    print_prediction(prediction)
    logger.info("Done")
    return result
