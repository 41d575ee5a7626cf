"""Model info callback: reports parameter counts at training start."""

from __future__ import annotations

import lightning as L
from loguru import logger
from rich import box
from rich.console import Console
from rich.table import Table


class ModelInfoCallback(L.Callback):
    """Display total/trainable parameters, size in MB and the label set."""

    def on_fit_start(
        self, trainer: L.Trainer, pl_module: L.LightningModule
    ) -> None:
        total_params = sum(p.numel() for p in pl_module.parameters())
        trainable_params = sum(
            p.numel() for p in pl_module.parameters() if p.requires_grad
        )
        size_bytes = sum(
            t.numel() * t.element_size()
            for t in (*pl_module.parameters(), *pl_module.buffers())
        )
        model_size_mb = size_bytes / (1024 * 1024)
        class_names = pl_module.hparams.get("class_names", [])

        table = Table(
            title="Model Information",
            header_style="bold magenta",
            box=box.SQUARE,
            show_lines=True,
        )
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green")
        table.add_row("Model Class", type(pl_module).__name__)
        table.add_row("Total Parameters", f"{total_params / 1e6:.2f} M")
        table.add_row("Trainable Parameters", f"{trainable_params / 1e6:.2f} M")
        table.add_row("Model Size", f"{model_size_mb:.2f} MB")
        table.add_row("Labels", ", ".join(class_names))
        Console().print(table)

        logger.info(
            f"Model: {type(pl_module).__name__} | "
            f"Params: {total_params:,} ({trainable_params:,} trainable) | "
            f"Size: {model_size_mb:.2f} MB"
        )
