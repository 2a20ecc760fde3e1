"""Anchor-point estimation for frames."""

from __future__ import annotations

from typing import Sequence

from . import Component, Rect, SpriteSheet
from ..utils import image_tools
from .classifier import CoreVsFxClassifier


def clamp_unit(value: float) -> float:
    return max(0.0, min(1.0, value))


class PivotEstimator:
    """Weighted component centroid, biased towards core (body) pixels."""

    def __init__(self, classifier: CoreVsFxClassifier, alpha_threshold: int = 0):
        self.classifier = classifier
        self.alpha_threshold = alpha_threshold

    def estimate(self, sheet: SpriteSheet, components: Sequence[Component], bounds: Rect) -> tuple[float, float]:
        """Return the pivot normalized to ``bounds``.

        Each intersecting component pulls with ``score * area``. Without any,
        falls back to the opaque-pixel centroid of the region, then to the
        centre.
        """

        weighted_x = 0.0
        weighted_y = 0.0
        total_weight = 0.0
        for component in components:
            if not bounds.intersects(component.bounds):
                continue
            weight = self.classifier.score(component) * component.area
            weighted_x += weight * (component.centroid_x - bounds.x)
            weighted_y += weight * (component.centroid_y - bounds.y)
            total_weight += weight

        if total_weight <= 0.0:
            return self._pixel_centroid(sheet, bounds)

        pivot_x = (weighted_x / total_weight) / bounds.width if bounds.width > 0 else 0.5
        pivot_y = (weighted_y / total_weight) / bounds.height if bounds.height > 0 else 0.5
        return clamp_unit(pivot_x), clamp_unit(pivot_y)

    def _pixel_centroid(self, sheet: SpriteSheet, bounds: Rect) -> tuple[float, float]:
        if bounds.is_empty:
            return 0.5, 0.5
        region = image_tools.crop(sheet.pixels, bounds)
        cx, cy, count = image_tools.opaque_centroid(region, self.alpha_threshold)
        if count == 0:
            return 0.5, 0.5
        return clamp_unit(cx / bounds.width), clamp_unit(cy / bounds.height)
