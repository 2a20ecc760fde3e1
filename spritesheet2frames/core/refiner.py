"""Trim transparent margins from frames and re-apply bounded padding."""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from . import ExtractionSettings, FrameSlice, Rect, SpriteSheet
from ..utils import image_tools
from .pivot import clamp_unit

logger = logging.getLogger(__name__)


def refine_frames(sheet: SpriteSheet, frames: Sequence[FrameSlice], settings: ExtractionSettings) -> list[FrameSlice]:
    """Return trimmed, padded copies of ``frames``; empty frames are dropped.

    Padding on each side never reaches past the sheet edge. Pivots are
    re-projected into the new frame and re-indexed in order.
    """

    refined: list[FrameSlice] = []
    for frame in frames:
        pixels = np.asarray(frame.image.convert("RGBA"))
        local = image_tools.opaque_bounds(pixels, settings.alpha_threshold)
        if local.is_empty:
            logger.debug("Dropping empty frame %s at %s", frame.index, frame.rect.as_list())
            continue

        abs_left = frame.rect.x + local.x
        abs_top = frame.rect.y + local.y
        pad = settings.padding
        pad_left = max(0, min(pad, abs_left))
        pad_top = max(0, min(pad, abs_top))
        pad_right = max(0, min(pad, sheet.width - (abs_left + local.width)))
        pad_bottom = max(0, min(pad, sheet.height - (abs_top + local.height)))

        trimmed = image_tools.crop(pixels, local)
        padded = image_tools.add_padding(trimmed, pad_left, pad_top, pad_right, pad_bottom)
        new_height, new_width = padded.shape[:2]
        rect = Rect(abs_left - pad_left, abs_top - pad_top, new_width, new_height)

        pivot_x = frame.pivot_x * frame.rect.width - local.x + pad_left
        pivot_y = frame.pivot_y * frame.rect.height - local.y + pad_top
        pivot_x = clamp_unit(pivot_x / new_width) if new_width > 0 else 0.5
        pivot_y = clamp_unit(pivot_y / new_height) if new_height > 0 else 0.5

        refined.append(
            FrameSlice(
                image=image_tools.to_image(padded),
                index=len(refined),
                rect=rect,
                pivot_x=pivot_x,
                pivot_y=pivot_y,
            )
        )
    return refined
