"""Utility functions for the data pipeline."""

import os
from pathlib import Path


def get_files(directory: Path, extensions: tuple[str, ...]) -> list[Path]:
    """List files directly inside directory whose suffix matches extensions.

    Args:
        directory: Directory to list (not searched recursively).
        extensions: Tuple of lowercase extensions including dot
            (e.g., (".jpg", ".png")). Matching is case-insensitive.

    Returns:
        Sorted list of matching file paths.
    """
    files = []
    for p in directory.iterdir():
        if p.is_file() and p.suffix.lower() in extensions:
            files.append(p)
    return sorted(files)


def find_files(root: Path, extensions: tuple[str, ...]) -> list[Path]:
    """Recursively find files matching extensions under root, sorted."""
    files = []
    for p in root.rglob("*"):
        if p.is_file() and p.suffix.lower() in extensions:
            files.append(p)
    return sorted(files)


def to_relative_posix(path: str | Path, root: str | Path) -> str:
    """Path relative to root with forward slashes regardless of platform.

    Paths outside root are expressed with ``..`` components, like
    ``os.path.relpath``.
    """
    relative = os.path.relpath(os.path.abspath(path), os.path.abspath(root))
    return relative.replace("\\", "/")


def normalize_label(name: str) -> str:
    """Label key for a directory name: lowercased and stripped."""
    return name.lower().strip()
