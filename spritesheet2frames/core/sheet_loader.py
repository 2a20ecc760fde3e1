"""Sprite sheet loading via Pillow."""

from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from . import SpriteSheet
from .errors import InvalidSheetError
from ..utils import validators

logger = logging.getLogger(__name__)


def load_sheet(path: Path) -> SpriteSheet:
    """Open an image from disk as an RGBA sprite sheet."""

    validated_path = validators.validate_sheet_path(path)
    try:
        with Image.open(validated_path) as image:
            sheet = SpriteSheet.from_image(image, validated_path)
    except (OSError, UnidentifiedImageError) as exc:
        raise InvalidSheetError(validated_path, reason=f"Could not decode image: {exc}") from exc

    logger.debug("Loaded %s -> %sx%s", validated_path, sheet.width, sheet.height)
    return sheet
