"""One-time download of the pretrained backbone weight file.

The file is cached under the platform temp directory and fetched with a
single HTTP GET the first time it is missing. There is no retry policy;
on failure the caller tells the user how to place the file by hand.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

import requests
from loguru import logger
from pydantic import BaseModel

from waste_classifier.config import ResourceConfig
from waste_classifier.errors import ResourceFetchError


class FetchResult(BaseModel, frozen=True):
    """Outcome of :meth:`ResourceFetcher.fetch`.

    ``downloaded`` is False when the file was already cached.
    ``status_code`` is None when no HTTP response was received.
    """

    path: Path
    ok: bool
    downloaded: bool = False
    status_code: int | None = None
    reason: str | None = None

    def raise_for_failure(self) -> Path:
        """Return the cached path, or raise ResourceFetchError on failure."""
        if not self.ok:
            raise ResourceFetchError(self.status_code, self.reason or "unknown error")
        return self.path


def remediation_message(config: ResourceConfig, result: FetchResult | None = None) -> str:
    """Manual-copy instructions for a failed download."""
    lines = []
    if result is not None and result.reason:
        lines.append(f"Could not download the backbone weights: {result.reason}")
    lines += [
        "Download the file manually and copy it into the cache folder:",
        f"  URL:  {config.url}",
        f"  Copy: {config.cache_path}",
        "Then run the training again.",
    ]
    return "\n".join(lines)


class ResourceFetcher:
    """Ensure ``config.cache_path`` exists, downloading it once if needed.

    Args:
        config: URL, cache location, timeout and user agent.
        session: Optional ``requests.Session`` (defaults to module-level
            ``requests.get``).
    """

    def __init__(
        self, config: ResourceConfig, session: requests.Session | None = None
    ) -> None:
        self.config = config
        self._session = session

    @property
    def path(self) -> Path:
        return self.config.cache_path

    def fetch(self) -> FetchResult:
        """Return a success result immediately if cached, else download."""
        path = self.path
        if path.is_file():
            logger.debug(f"Backbone weights already cached at {path}")
            return FetchResult(path=path, ok=True)

        logger.info(f"Downloading backbone weights from {self.config.url}")
        get = self._session.get if self._session is not None else requests.get
        try:
            response = get(
                self.config.url,
                timeout=self.config.timeout,
                headers={"User-Agent": self.config.user_agent},
            )
        except requests.RequestException as e:
            logger.error(f"Backbone download failed: {e}")
            return FetchResult(path=path, ok=False, reason=str(e))

        if not response.ok:
            reason = f"HTTP {response.status_code} {response.reason or ''}".strip()
            logger.error(f"Backbone download failed: {reason}")
            return FetchResult(
                path=path, ok=False, status_code=response.status_code, reason=reason
            )

        try:
            self._write_atomic(path, response.content)
        except OSError as e:
            logger.error(f"Could not write backbone weights to {path}: {e}")
            return FetchResult(
                path=path,
                ok=False,
                status_code=response.status_code,
                reason=f"cannot write {path}: {e}",
            )
        logger.info(f"Saved backbone weights to {path} ({len(response.content) / 1024:.1f} KB)")
        return FetchResult(
            path=path, ok=True, downloaded=True, status_code=response.status_code
        )

    @staticmethod
    def _write_atomic(path: Path, data: bytes) -> None:
        """Write to a sibling temp file, then rename over path."""
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".part")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
