"""Alpha-channel projections used to find gaps between frames."""

from __future__ import annotations

import logging

import numpy as np

from . import ExtractionSettings, Rect, SpriteSheet

logger = logging.getLogger(__name__)


def smooth(data: np.ndarray, window: int) -> np.ndarray:
    """Centered moving average; the window is truncated at both ends."""

    values = np.asarray(data, dtype=float)
    if window <= 1 or values.size == 0:
        return values.copy()
    half = window // 2
    cumulative = np.concatenate(([0.0], np.cumsum(values)))
    idx = np.arange(values.size)
    lo = np.maximum(0, idx - half)
    hi = np.minimum(values.size - 1, idx + half) + 1
    return (cumulative[hi] - cumulative[lo]) / (hi - lo)


def find_valley(data: np.ndarray) -> int:
    """Index of the smallest interior value, or -1 when there is no interior."""

    if len(data) < 3:
        return -1
    return int(np.argmin(data[1:-1])) + 1


def valley_depth(data: np.ndarray) -> float:
    """How far the valley dips below the peak, as ``1 - valley / max``."""

    valley = find_valley(data)
    if valley <= 0 or valley >= len(data) - 1:
        return 0.0
    peak = float(np.max(data))
    if peak <= 0:
        return 0.0
    return 1.0 - float(data[valley]) / peak


class AlphaMetrics:
    """Read-only alpha statistics for one sheet."""

    def __init__(self, sheet: SpriteSheet, settings: ExtractionSettings):
        self.sheet = sheet
        self.settings = settings
        self.alpha = sheet.pixels[:, :, 3].astype(np.int32)
        self.row_sums = self.alpha.sum(axis=1).astype(float)
        self.col_sums = self.alpha.sum(axis=0).astype(float)
        self.smooth_rows = smooth(self.row_sums, settings.valley_window)
        self.smooth_cols = smooth(self.col_sums, settings.valley_window)
        self.opaque_pixels = int(np.count_nonzero(self.alpha > settings.alpha_threshold))
        total = sheet.width * sheet.height
        self._coverage = self.opaque_pixels / total if total else 0.0
        logger.debug("Alpha coverage for %s: %.4f", sheet.name, self._coverage)

    def coverage(self) -> float:
        return self._coverage

    def row_valley_score(self) -> float:
        return valley_depth(self.smooth_rows)

    def col_valley_score(self) -> float:
        return valley_depth(self.smooth_cols)

    def find_best_binary_split(self) -> list[Rect]:
        """Split the sheet in two at the deepest interior row or column valley."""

        width, height = self.sheet.width, self.sheet.height
        row_valley = find_valley(self.smooth_rows)
        col_valley = find_valley(self.smooth_cols)

        horizontal = None
        if 0 < row_valley < height - 1:
            horizontal = [Rect(0, 0, width, row_valley), Rect(0, row_valley, width, height - row_valley)]
        vertical = None
        if 0 < col_valley < width - 1:
            vertical = [Rect(0, 0, col_valley, height), Rect(col_valley, 0, width - col_valley, height)]

        if horizontal is None and vertical is None:
            return []
        if horizontal is not None and vertical is not None:
            return horizontal if self.row_valley_score() >= self.col_valley_score() else vertical
        return horizontal if horizontal is not None else vertical
