"""Dataset statistics callback: prints the train label distribution."""

from __future__ import annotations

from collections import Counter

import lightning as L
from loguru import logger
from rich import box
from rich.console import Console
from rich.table import Table


class DatasetStatisticsCallback(L.Callback):
    """Print a rich table of label counts in the training records.

    Reads ``trainer.datamodule.train_records`` and ``class_to_idx``. Every
    label of the set gets a row, including labels with zero images, which
    makes class imbalance from the unstratified split visible.
    """

    def on_fit_start(self, trainer: L.Trainer, pl_module: L.LightningModule) -> None:
        datamodule = getattr(trainer, "datamodule", None)
        records = getattr(datamodule, "train_records", None)
        if datamodule is None or records is None:
            logger.warning("No datamodule with train_records. Skipping dataset statistics.")
            return

        counts = Counter(r.label for r in records)
        total = len(records)
        logger.info(f"Training dataset: {total} samples, {len(counts)} labels present")

        table = Table(
            title="Dataset Label Distribution",
            header_style="bold magenta",
            box=box.SQUARE,
            show_lines=True,
        )
        table.add_column("Label", style="cyan")
        table.add_column("Index", justify="right")
        table.add_column("Count", justify="right", style="green")
        table.add_column("Percentage", justify="right", style="yellow")

        for label, idx in datamodule.class_to_idx.items():
            count = counts.get(label, 0)
            pct = count / total * 100 if total > 0 else 0.0
            table.add_row(label, str(idx), str(count), f"{pct:.1f}%")
            if count == 0:
                logger.warning(f"Label '{label}' has no training images")

        Console().print(table)
