"""Manifest construction: dataset folder tree -> (relative path, label) records.

Expected layout::

    <root>/<label>/*.{jpg,jpeg,png}

The manifest is written as a headerless CSV (``relative/path,label``) so it
can be reloaded without rescanning the tree.
"""

from __future__ import annotations

import csv
from pathlib import Path

from loguru import logger

from waste_classifier.config import DatasetConfig
from waste_classifier.data.utils import get_files, normalize_label, to_relative_posix
from waste_classifier.errors import DatasetNotFound
from waste_classifier.schemas.manifest import LabeledImage


def scan_dataset(config: DatasetConfig) -> list[LabeledImage]:
    """Walk ``config.root`` and return one record per recognized image.

    Subdirectories whose normalized name is not a valid label are skipped,
    as are files with an unrecognized extension. Only immediate children of
    each label folder are considered.

    Raises:
        DatasetNotFound: If the root directory does not exist.
    """
    root = Path(config.root)
    if not root.is_dir():
        raise DatasetNotFound(root)

    valid = set(config.valid_labels)
    records: list[LabeledImage] = []
    skipped_dirs: list[str] = []
    for label_dir in sorted(p for p in root.iterdir() if p.is_dir()):
        label = normalize_label(label_dir.name)
        if not label or label not in valid:
            skipped_dirs.append(label_dir.name)
            continue
        for image_path in get_files(label_dir, config.image_extensions):
            records.append(
                LabeledImage(
                    relative_path=to_relative_posix(image_path, root),
                    label=label,
                )
            )

    if skipped_dirs:
        logger.debug(f"Ignored unrecognized folders under {root}: {skipped_dirs}")
    logger.debug(f"Scanned {root}: {len(records)} labeled images")
    return records


def write_manifest(records: list[LabeledImage], path: str | Path) -> Path:
    """Write records as ``relative/path,label`` lines, overwriting path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f, lineterminator="\n")
        for record in records:
            writer.writerow([record.relative_path, record.label])
    return path.resolve()


def read_manifest(
    path: str | Path, valid_labels: tuple[str, ...] | None = None
) -> list[LabeledImage]:
    """Load a manifest written by :func:`write_manifest`.

    Raises:
        ValueError: On a malformed row or, when ``valid_labels`` is given,
            a label outside that set.
    """
    valid = set(valid_labels) if valid_labels is not None else None
    records: list[LabeledImage] = []
    with open(path, newline="", encoding="utf-8") as f:
        for line_no, row in enumerate(csv.reader(f), start=1):
            if not row:
                continue
            if len(row) != 2:
                raise ValueError(f"{path}:{line_no}: expected 2 columns, got {len(row)}")
            relative_path, label = row
            if valid is not None and label not in valid:
                raise ValueError(f"{path}:{line_no}: unknown label {label!r}")
            records.append(LabeledImage(relative_path=relative_path, label=label))
    return records


def build_manifest(config: DatasetConfig) -> list[LabeledImage]:
    """Scan the dataset, persist the manifest sink and return the records."""
    records = scan_dataset(config)
    csv_path = write_manifest(records, config.manifest_path)
    logger.info(f"Manifest written: {csv_path} ({len(records)} records)")
    return records
