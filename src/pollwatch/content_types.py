"""Resolve a file path to a media type tag."""
from __future__ import annotations

import json
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)

SNIFF_BYTES = 8192
JSON_LIMIT = 1024 * 1024


class ContentType(str, Enum):
    """Media types the watcher knows how to route."""

    JPEG = "image/jpeg"
    JSON = "application/json"
    JSON_LD = "application/ld+json"
    TXT = "text/plain"
    ZIP = "application/zip"
    ZIP_COMPRESSED = "application/x-zip-compressed"
    EMPTY = "application/x-empty"


OCTET_STREAM = "application/octet-stream"

_EXTENSION_MAP = {
    "jpeg": ContentType.JPEG.value,
    "jpg": ContentType.JPEG.value,
    "json": ContentType.JSON.value,
    "jsonld": ContentType.JSON_LD.value,
    "txt": ContentType.TXT.value,
    "zip": ContentType.ZIP.value,
}

_SIGNATURES = (
    (b"\xff\xd8\xff", ContentType.JPEG.value),
    (b"PK\x03\x04", ContentType.ZIP.value),
    (b"PK\x05\x06", ContentType.ZIP.value),
    (b"PK\x07\x08", ContentType.ZIP.value),
)


def resolve(path: Union[str, Path]) -> str:
    """Sniff the content of ``path``, falling back to its extension when inconclusive."""

    mime_type = sniff(path)
    if mime_type in (ContentType.EMPTY.value, OCTET_STREAM):
        mime_type = from_extension(path)
    return mime_type


def is_supported(mime_type: str) -> bool:
    return mime_type in _SUPPORTED and mime_type != ContentType.EMPTY.value


def sniff(path: Union[str, Path]) -> str:
    try:
        with open(path, "rb") as handle:
            head = handle.read(SNIFF_BYTES)
    except OSError as exc:
        logger.debug("Could not read %s for sniffing: %s", path, exc)
        return ContentType.EMPTY.value

    if not head:
        return ContentType.EMPTY.value

    for signature, mime_type in _SIGNATURES:
        if head.startswith(signature):
            return mime_type

    # Control bytes outside the usual whitespace set mean binary; any byte
    # from 0x80 up counts as text so Latin-1 and other 8-bit encodings pass.
    if head.translate(None, _TEXT_BYTES):
        return OCTET_STREAM

    if head.lstrip()[:1] in (b"{", b"["):
        valid = _is_json(path)
        if valid is None:
            by_extension = from_extension(path)
            if by_extension in (ContentType.JSON.value, ContentType.JSON_LD.value):
                return by_extension
            return ContentType.TXT.value
        if valid:
            return ContentType.JSON.value
    return ContentType.TXT.value


def from_extension(path: Union[str, Path]) -> str:
    extension = Path(path).suffix.lstrip(".").lower()
    return _EXTENSION_MAP.get(extension, ContentType.EMPTY.value)


def _is_json(path: Union[str, Path]) -> Optional[bool]:
    """Parse the whole file; None when it is too large to validate."""

    try:
        if os.path.getsize(path) > JSON_LIMIT:
            return None
        with open(path, "rb") as handle:
            json.loads(handle.read())
    except (OSError, ValueError):
        return False
    return True


_SUPPORTED = frozenset(member.value for member in ContentType)
_TEXT_BYTES = bytes({7, 8, 9, 10, 11, 12, 13, 27} | set(range(0x20, 0x100)))
