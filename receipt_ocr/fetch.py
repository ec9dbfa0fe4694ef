"""
Image download for extraction jobs.

HTTP(S) URLs are fetched with httpx under a fixed timeout. Plain paths and
``file://`` URLs are read from disk.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Protocol
from urllib.parse import unquote, urlparse

import httpx

from .errors import DownloadError

DEFAULT_TIMEOUT = 30.0


class ImageFetcher(Protocol):
    def fetch(self, url: str) -> bytes:
        ...


class HttpImageFetcher:
    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.timeout = timeout
        self.transport = transport
        self.logger = logger or logging.getLogger(__name__)

    def fetch(self, url: str) -> bytes:
        """
        Return the raw bytes behind ``url``.

        Raises DownloadError on network errors, timeouts, non-2xx responses and
        missing local files.
        """
        self.logger.info(f"Downloading image from: {url}")
        scheme = urlparse(url).scheme.lower()
        if scheme in ("http", "https"):
            return self._fetch_http(url)
        if scheme == "file":
            return self._read_file(Path(unquote(urlparse(url).path)))
        return self._read_file(Path(url))

    def _fetch_http(self, url: str) -> bytes:
        try:
            with httpx.Client(timeout=self.timeout, follow_redirects=True, transport=self.transport) as client:
                response = client.get(url)
                response.raise_for_status()
                return response.content
        except httpx.HTTPStatusError as e:
            raise DownloadError(f"Failed to download image: HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise DownloadError(f"Failed to download image: {e}") from e

    def _read_file(self, path: Path) -> bytes:
        try:
            return path.read_bytes()
        except OSError as e:
            raise DownloadError(f"Failed to download image: {e}") from e
