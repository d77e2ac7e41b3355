"""
Shared HDR environment lighting asset.

The 3D renders of every region are lit by the same HDR environment map. It is
downloaded on first use into the cache directory and read from disk
afterwards. Within a process the download is attempted at most once: if it
fails, the failure is remembered and every later request raises
LightingUnavailable without touching the network again.
"""

import logging
from pathlib import Path
from typing import Optional

import requests

from src.config import HDRI_FILENAME, HDRI_URL, LIGHTING_CACHE

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1 << 20
DOWNLOAD_TIMEOUT = 300


class LightingUnavailable(RuntimeError):
    """The HDR lighting asset could not be obtained for this run."""


class LightingAsset:
    """
    Write-once, read-many handle on the HDR lighting file.

    Attributes:
        url: Remote location of the HDR file
        path: Local cache path
    """

    def __init__(self, url: str = HDRI_URL, path: Optional[Path] = None, timeout: int = DOWNLOAD_TIMEOUT):
        self.url = url
        self.path = Path(path) if path is not None else LIGHTING_CACHE / HDRI_FILENAME
        self.timeout = timeout
        self.download_attempts = 0
        self._error: Optional[str] = None

    def ensure(self) -> Path:
        """
        Return the local path of the lighting asset, downloading it if missing.

        Raises:
            LightingUnavailable: If the download failed now or earlier in this run
        """
        if self.path.exists():
            return self.path

        if self._error is not None:
            raise LightingUnavailable(self._error)

        try:
            self._download()
        except (requests.exceptions.RequestException, OSError) as e:
            self._error = f"Could not download lighting asset from {self.url}: {e}"
            logger.error(self._error)
            raise LightingUnavailable(self._error) from e

        return self.path

    def _download(self):
        self.download_attempts += 1
        self.path.parent.mkdir(parents=True, exist_ok=True)
        partial = self.path.with_name(self.path.name + ".part")

        logger.info(f"Downloading lighting asset {self.url}...")
        try:
            with requests.get(self.url, stream=True, timeout=self.timeout) as response:
                response.raise_for_status()
                with open(partial, "wb") as f:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        if chunk:
                            f.write(chunk)
            partial.replace(self.path)
        finally:
            if partial.exists():
                partial.unlink()

        size_mb = self.path.stat().st_size / (1024 * 1024)
        logger.info(f"✓ Lighting asset cached at {self.path} ({size_mb:.1f} MB)")


_default_asset: Optional[LightingAsset] = None


def default_lighting_asset() -> LightingAsset:
    """Process-wide lighting asset shared by all regions of a run."""
    global _default_asset
    if _default_asset is None:
        _default_asset = LightingAsset()
    return _default_asset
