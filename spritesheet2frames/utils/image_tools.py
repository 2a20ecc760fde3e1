"""Pixel helpers shared by the frame builders and the refiner."""

from __future__ import annotations

import numpy as np
from PIL import Image

from ..core import Rect


def opaque_bounds(pixels: np.ndarray, alpha_threshold: int) -> Rect:
    """Tight box around pixels whose alpha exceeds the threshold; empty Rect if none."""

    mask = pixels[:, :, 3] > alpha_threshold
    rows = np.flatnonzero(mask.any(axis=1))
    cols = np.flatnonzero(mask.any(axis=0))
    if rows.size == 0 or cols.size == 0:
        return Rect(0, 0, 0, 0)
    top, bottom = int(rows[0]), int(rows[-1])
    left, right = int(cols[0]), int(cols[-1])
    return Rect(left, top, right - left + 1, bottom - top + 1)


def crop(pixels: np.ndarray, rect: Rect) -> np.ndarray:
    """Copy a region out of an HxWx4 array."""

    return np.array(pixels[rect.y : rect.bottom, rect.x : rect.right], copy=True)


def add_padding(pixels: np.ndarray, left: int, top: int, right: int, bottom: int) -> np.ndarray:
    """Surround a region with fully transparent pixels."""

    return np.pad(pixels, ((top, bottom), (left, right), (0, 0)), mode="constant", constant_values=0)


def opaque_centroid(pixels: np.ndarray, alpha_threshold: int) -> tuple[float, float, int]:
    """Return (x, y, count) for the mean position of opaque pixels."""

    ys, xs = np.nonzero(pixels[:, :, 3] > alpha_threshold)
    count = int(xs.size)
    if count == 0:
        return 0.0, 0.0, 0
    return float(xs.mean()), float(ys.mean()), count


def to_image(pixels: np.ndarray) -> Image.Image:
    """Wrap an HxWx4 array as a Pillow RGBA image."""

    return Image.fromarray(np.ascontiguousarray(pixels, dtype=np.uint8))
