"""Placeholder download performed when a watched file is deleted."""
from __future__ import annotations

import logging
import os
import posixpath
from typing import Optional
from urllib.parse import urlparse

import requests

from .ledger import SuppressionLedger

logger = logging.getLogger(__name__)

PLACEHOLDER_PREFIX = "meme_"


def placeholder_path(deleted_path: str, source_url: str) -> str:
    """Name the placeholder after the deleted file and the remote resource's extension."""

    extension = posixpath.splitext(urlparse(source_url).path)[1].lstrip(".")
    directory, filename = os.path.split(deleted_path)
    return os.path.join(directory, f"{PLACEHOLDER_PREFIX}{filename}.{extension}")


class PlaceholderFetcher:
    """Fetch a random image from a remote API and drop it where a file was deleted."""

    def __init__(
        self,
        ledger: SuppressionLedger,
        api_url: str,
        *,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self._ledger = ledger
        self._api_url = api_url
        self._timeout = timeout
        self._session = session or requests.Session()

    def __call__(self, deleted_path: str) -> Optional[str]:
        """Return the written placeholder path, or None when nothing was written."""

        logger.info("File deleted: %s", deleted_path)
        try:
            response = self._session.get(self._api_url, timeout=self._timeout)
            response.raise_for_status()
            payload = response.json()
        except ValueError as exc:
            # requests' JSONDecodeError is also a RequestException.
            logger.error("Placeholder API returned invalid JSON: %s", exc)
            return None
        except requests.RequestException as exc:
            logger.error("Failed to fetch placeholder metadata from %s: %s", self._api_url, exc)
            return None

        source_url = payload.get("url") if isinstance(payload, dict) else None
        if not source_url:
            logger.error("No placeholder found to download for deleted file %s", deleted_path)
            return None

        logger.info("Downloading placeholder from: %s", source_url)
        try:
            download = self._session.get(source_url, timeout=self._timeout)
        except requests.RequestException as exc:
            logger.error("Failed to download placeholder %s: %s", source_url, exc)
            return None

        if not download.ok:
            logger.error("Placeholder download returned HTTP %s: %s", download.status_code, source_url)
            return None

        target = placeholder_path(deleted_path, source_url)
        self._ledger.mark(target)
        try:
            with open(target, "wb") as handle:
                handle.write(download.content)
        except OSError as exc:
            logger.error("Could not write placeholder %s: %s", target, exc)
            return None

        logger.info("Placeholder saved to: %s", target)
        return target
