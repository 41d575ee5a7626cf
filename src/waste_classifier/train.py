"""Training entrypoint for waste_classifier.

Usage:
    waste-train                                    # defaults
    waste-train pipeline.dataset.root=/data/waste  # other dataset folder
    waste-train pipeline.hyperparameters.epochs=5  # override epochs
    waste-train model.learning_rate=3e-4           # override optimizer
"""

import sys

import hydra
import lightning as L
from loguru import logger
from omegaconf import DictConfig, OmegaConf

# Import models so @register populates the ConfigStore before Hydra composes
import waste_classifier.models  # noqa: F401
from waste_classifier.config import PipelineConfig
from waste_classifier.pipeline import run_pipeline


def build_pipeline_config(cfg: DictConfig) -> PipelineConfig:
    """Validate the ``pipeline`` node of a composed config."""
    return PipelineConfig.model_validate(
        OmegaConf.to_container(cfg.pipeline, resolve=True)
    )


@hydra.main(version_base=None, config_path="conf", config_name="train_waste_resnet18")
def main(cfg: DictConfig) -> None:
    """Run the training pipeline with the given Hydra config."""
    logger.remove()
    logger.add(sys.stderr, level=cfg.get("log_level", "INFO"))

    logger.info(f"Configuration:\n{OmegaConf.to_yaml(cfg)}")

    L.seed_everything(cfg.get("seed", 123), workers=True)

    pipeline_config = build_pipeline_config(cfg)
    model_factory = hydra.utils.instantiate(cfg.model, _partial_=True)

    result = run_pipeline(pipeline_config, model_factory=model_factory)
    if not result.completed:
        logger.error(f"Run stopped early: {result.stopped_reason}")
        sys.exit(1)


if __name__ == "__main__":
    main()
