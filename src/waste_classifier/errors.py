"""Exception taxonomy for waste_classifier."""

from __future__ import annotations

from pathlib import Path


class WasteClassifierError(Exception):
    """Base class for all waste_classifier errors."""


class DatasetNotFound(WasteClassifierError):
    """The dataset root directory does not exist."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        super().__init__(f"Dataset folder '{self.root}' not found")


class ResourceFetchError(WasteClassifierError):
    """The backbone weight file is missing and could not be downloaded.

    ``status_code`` is ``None`` when the request never produced a response
    (DNS failure, timeout, refused connection).
    """

    def __init__(self, status_code: int | None, reason: str) -> None:
        self.status_code = status_code
        self.reason = reason
        status = f"HTTP {status_code}" if status_code is not None else "no response"
        super().__init__(f"Resource download failed ({status}): {reason}")


class ImageNotFound(WasteClassifierError):
    """The image passed to the predictor does not exist."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        super().__init__(f"Image not found: {self.path}")
