"""Handler callbacks for image files."""
from __future__ import annotations

import logging
import os
from typing import Any, Dict

from PIL import Image, UnidentifiedImageError

from .registry import HandlerContext

logger = logging.getLogger(__name__)

OPTIMIZED_PREFIX = "optimized_"


def optimize_jpeg(context: HandlerContext, options: Dict[str, Any]) -> None:
    """Write a recompressed, metadata-free copy next to the original as ``optimized_<name>``."""

    if not context.is_created and not context.is_modified:
        logger.info("Skipping file: %s as it is not created or modified.", context.path)
        return

    directory, filename = os.path.split(context.path)
    if filename.startswith(OPTIMIZED_PREFIX) and not options.get("reoptimize", False):
        logger.debug("Skipping already optimized file: %s", context.path)
        return

    target = os.path.join(directory, OPTIMIZED_PREFIX + filename)
    quality = int(options.get("quality", 85))

    try:
        with Image.open(context.path) as source:
            source.load()
            image = _jpeg_compatible(source)
            try:
                context.mark(target)
                # Saving without exif/icc arguments drops the source metadata.
                image.save(target, format="JPEG", quality=quality, optimize=True, progressive=True)
            finally:
                if image is not source:
                    image.close()
    except (UnidentifiedImageError, OSError) as exc:
        logger.error("Could not load image: %s. Error: %s", context.path, exc)
        return

    logger.info("Successfully optimized JPEG file: '%s' to '%s'", context.path, target)


def _jpeg_compatible(image: Image.Image) -> Image.Image:
    """Return an image JPEG can encode; a converted copy when the mode needs it."""

    if image.mode in ("RGB", "L", "CMYK"):
        return image
    return image.convert("RGB")
