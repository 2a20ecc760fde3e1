"""Opaque-region segmentation: threshold, matte removal, morphology, labelling."""

from __future__ import annotations

import logging
from collections import deque

import numpy as np

from . import Component, ExtractionSettings, SpriteSheet
from .alpha_metrics import AlphaMetrics

logger = logging.getLogger(__name__)

MATTE_COVERAGE_TRIGGER = 0.85
MATTE_COLOR_DISTANCE = 32.0
NEIGHBOURS = ((1, 0), (-1, 0), (0, 1), (0, -1), (1, 1), (1, -1), (-1, 1), (-1, -1))


def segment(sheet: SpriteSheet, metrics: AlphaMetrics, settings: ExtractionSettings) -> list[Component]:
    """Return the connected opaque regions of a sheet after speckle cleanup."""

    mask = threshold(metrics.alpha, settings.alpha_threshold)
    mask = remove_matte_background(sheet.pixels, mask, settings.alpha_threshold)
    mask = morphological_open(morphological_close(mask))
    components = label_components(sheet.pixels, mask, settings.min_area)
    logger.debug("Segmented %s into %s components", sheet.name, len(components))
    return components


def threshold(alpha: np.ndarray, alpha_threshold: int) -> np.ndarray:
    return alpha > alpha_threshold


def dilate(mask: np.ndarray) -> np.ndarray:
    """3x3 dilation; pixels beyond the edge contribute nothing."""

    height, width = mask.shape
    padded = np.pad(mask, 1, mode="constant", constant_values=False)
    result = np.zeros_like(mask)
    for dy in (-1, 0, 1):
        for dx in (-1, 0, 1):
            result |= padded[1 + dy : 1 + dy + height, 1 + dx : 1 + dx + width]
    return result


def erode(mask: np.ndarray) -> np.ndarray:
    """3x3 erosion; pixels beyond the edge count as empty."""

    height, width = mask.shape
    padded = np.pad(mask, 1, mode="constant", constant_values=False)
    result = np.ones_like(mask)
    for dy in (-1, 0, 1):
        for dx in (-1, 0, 1):
            result &= padded[1 + dy : 1 + dy + height, 1 + dx : 1 + dx + width]
    return result


def morphological_close(mask: np.ndarray) -> np.ndarray:
    return erode(dilate(mask))


def morphological_open(mask: np.ndarray) -> np.ndarray:
    return dilate(erode(mask))


def estimate_background_color(pixels: np.ndarray) -> np.ndarray:
    """Mean RGB over the top/bottom rows and left/right columns."""

    rgb = pixels[:, :, :3].astype(float)
    border = np.concatenate((rgb[0, :], rgb[-1, :], rgb[:, 0], rgb[:, -1]))
    if border.size == 0:
        return np.zeros(3)
    return border.mean(axis=0)


def remove_matte_background(pixels: np.ndarray, mask: np.ndarray, alpha_threshold: int) -> np.ndarray:
    """Clear a solid matte that touches the border when the sheet is nearly fully opaque.

    Flood fills inward from every border pixel that is transparent or close to
    the estimated background colour.
    """

    height, width = mask.shape
    if mask.size == 0 or np.count_nonzero(mask) / mask.size < MATTE_COVERAGE_TRIGGER:
        return mask

    background = estimate_background_color(pixels)
    distance = np.sqrt(((pixels[:, :, :3].astype(float) - background) ** 2).sum(axis=2))
    clearable = (pixels[:, :, 3] <= alpha_threshold) | (distance < MATTE_COLOR_DISTANCE)

    result = mask.copy()
    reachable = clearable.tolist()
    visited = [[False] * width for _ in range(height)]
    queue: deque[tuple[int, int]] = deque()

    def enqueue(x: int, y: int) -> None:
        if x < 0 or x >= width or y < 0 or y >= height or visited[y][x]:
            return
        visited[y][x] = True
        if reachable[y][x]:
            result[y, x] = False
            queue.append((x, y))

    for x in range(width):
        enqueue(x, 0)
        enqueue(x, height - 1)
    for y in range(height):
        enqueue(0, y)
        enqueue(width - 1, y)

    while queue:
        px, py = queue.popleft()
        for dx, dy in NEIGHBOURS:
            enqueue(px + dx, py + dy)

    logger.debug(
        "Matte removal cleared %s pixels (background rgb=%s)",
        int(np.count_nonzero(mask & ~result)),
        np.round(background, 1).tolist(),
    )
    return result


def label_components(pixels: np.ndarray, mask: np.ndarray, min_area: int) -> list[Component]:
    """Breadth-first labelling of 8-connected regions in a boolean mask."""

    height, width = mask.shape
    opaque = mask.tolist()
    labels = [[-1] * width for _ in range(height)]
    rgb = pixels[:, :, :3].astype(float)
    intensity = rgb.sum(axis=2) / 3.0
    components: list[Component] = []
    label = 0

    for start_y, start_x in zip(*np.nonzero(mask)):
        start_x, start_y = int(start_x), int(start_y)
        if labels[start_y][start_x] != -1:
            continue
        labels[start_y][start_x] = label
        queue: deque[tuple[int, int]] = deque([(start_x, start_y)])
        xs: list[int] = []
        ys: list[int] = []
        while queue:
            px, py = queue.popleft()
            xs.append(px)
            ys.append(py)
            for dx, dy in NEIGHBOURS:
                nx, ny = px + dx, py + dy
                if 0 <= nx < width and 0 <= ny < height and opaque[ny][nx] and labels[ny][nx] == -1:
                    labels[ny][nx] = label
                    queue.append((nx, ny))

        area = len(xs)
        if area >= min_area:
            components.append(_describe_region(label, np.array(xs), np.array(ys), intensity))
        label += 1

    return components


def _describe_region(label: int, xs: np.ndarray, ys: np.ndarray, intensity: np.ndarray) -> Component:
    left, right = int(xs.min()), int(xs.max())
    top, bottom = int(ys.min()), int(ys.max())
    comp_width = right - left + 1
    comp_height = bottom - top + 1
    area = int(xs.size)
    values = intensity[ys, xs]
    mean = float(values.mean())
    variance = max(0.0, float((values * values).mean()) - mean * mean)
    density = area / float(comp_width * comp_height)
    return Component(
        label=label,
        left=left,
        top=top,
        width=comp_width,
        height=comp_height,
        area=area,
        centroid_x=float(xs.mean()),
        centroid_y=float(ys.mean()),
        density=density,
        mean_intensity=mean,
        color_variance=variance,
        # approximation: no convex hull, so solidity mirrors density
        solidity=density,
    )
