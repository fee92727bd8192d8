"""Handler callbacks for text, JSON and archive files."""
from __future__ import annotations

import json
import logging
import os
import random
import zipfile
from typing import Any, Dict

import requests

from .registry import HandlerContext

logger = logging.getLogger(__name__)


def forward_json(context: HandlerContext, options: Dict[str, Any]) -> None:
    """POST the parsed JSON document to a remote collector."""

    if not _is_write(context):
        return

    url = options.get("url") or context.endpoints.json_forward
    try:
        with open(context.path, encoding="utf-8") as handle:
            document = json.load(handle)
    except (OSError, ValueError) as exc:
        logger.error("Could not read JSON from %s: %s", context.path, exc)
        return

    try:
        response = requests.post(url, json=document, timeout=context.endpoints.timeout)
    except requests.RequestException as exc:
        logger.error("Failed to send file content: %s", exc)
        return

    if not response.ok:
        logger.error("Failed to send file content (HTTP %s): %s", response.status_code, response.text)
        return
    logger.info("Successfully sent content of %s to %s", context.path, url)


def append_sample_text(context: HandlerContext, options: Dict[str, Any]) -> None:
    """Append a random paragraph fetched from a filler-text API to the file."""

    if not _is_write(context):
        return

    url = options.get("url") or context.endpoints.sample_text_api
    try:
        response = requests.get(url, timeout=context.endpoints.timeout)
        response.raise_for_status()
        paragraphs = response.json()
    except ValueError as exc:
        logger.error("Sample text API returned invalid JSON: %s", exc)
        return
    except requests.RequestException as exc:
        logger.error("Failed to fetch sample text: %s", exc)
        return

    if not isinstance(paragraphs, list) or not paragraphs:
        logger.error("Sample text API returned no paragraphs")
        return

    content = str(random.choice(paragraphs))
    context.mark()
    try:
        with open(context.path, "a", encoding="utf-8") as handle:
            handle.write(content)
    except OSError as exc:
        logger.error("Could not append to %s: %s", context.path, exc)
        return
    logger.info("Appended %s characters to %s", len(content), context.path)


def extract_zip(context: HandlerContext, options: Dict[str, Any]) -> None:
    """Extract the archive into a sibling directory and remove the archive."""

    if not _is_write(context):
        return

    destination = extraction_directory(context.path)
    try:
        with zipfile.ZipFile(context.path) as archive:
            context.mark(destination)
            archive.extractall(destination)
    except (zipfile.BadZipFile, OSError) as exc:
        logger.error("Failed to open zip file: %s (%s)", context.path, exc)
        return
    logger.info("Successfully extracted zip file: %s", context.path)

    if not options.get("delete_archive", True):
        return

    context.mark()
    try:
        os.remove(context.path)
    except FileNotFoundError:
        logger.warning("Original zip file not found for deletion: %s", context.path)
        return
    logger.info("Deleted original zip file: %s", context.path)


def extraction_directory(path: str) -> str:
    """Strip a trailing ``.zip`` extension; archives without one get an ``_extracted`` suffix."""

    stem, extension = os.path.splitext(path)
    if extension.lower() == ".zip" and os.path.basename(stem):
        return stem
    return f"{path}_extracted"


def _is_write(context: HandlerContext) -> bool:
    if context.is_created or context.is_modified:
        return True
    logger.info("Skipping file: %s as it is not created or modified.", context.path)
    return False
