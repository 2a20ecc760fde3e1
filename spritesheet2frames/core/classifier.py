"""Core-vs-effect scoring of components, with online learning across sheets."""

from __future__ import annotations

import json
import logging
import math
import threading
from pathlib import Path
from typing import Iterable, Sequence

from . import Component, FrameSlice, SpriteSheet
from .errors import ValidationError
from ..utils import file_tools

logger = logging.getLogger(__name__)

DEFAULT_WEIGHTS = (0.6, 0.2, -0.1, -0.05)
LEARNING_RATE = 0.05


def features(component: Component) -> list[float]:
    """Normalized area, density, solidity and normalized luminance variance."""

    return [
        min(1.0, component.area / 10000.0),
        component.density,
        component.solidity,
        min(1.0, component.color_variance / 5000.0),
    ]


def _sigmoid(z: float) -> float:
    if z < -700:
        return 0.0
    return 1.0 / (1.0 + math.exp(-z))


class CoreVsFxClassifier:
    """Logistic scorer favouring solid character bodies over particle effects.

    The weights are the only state shared between sheets. ``score`` and
    ``learn_from`` take the same lock, so one instance can be shared by
    several worker threads. Alternatively give each worker a ``copy()`` and
    combine them afterwards with ``merge``.
    """

    def __init__(
        self,
        weights: Sequence[float] = DEFAULT_WEIGHTS,
        bias: float = 0.0,
        learning_rate: float = LEARNING_RATE,
    ):
        if len(weights) != len(DEFAULT_WEIGHTS):
            raise ValueError(f"Expected {len(DEFAULT_WEIGHTS)} weights, got {len(weights)}")
        self._weights = [float(w) for w in weights]
        self._bias = float(bias)
        self.learning_rate = learning_rate
        self._lock = threading.Lock()

    @property
    def weights(self) -> tuple[float, ...]:
        with self._lock:
            return tuple(self._weights)

    @property
    def bias(self) -> float:
        with self._lock:
            return self._bias

    def score(self, component: Component) -> float:
        with self._lock:
            return self._score_unlocked(component)

    def _score_unlocked(self, component: Component) -> float:
        z = self._bias + sum(w * f for w, f in zip(self._weights, features(component)))
        return _sigmoid(z)

    def learn_from(
        self,
        sheet: SpriteSheet,
        components: Sequence[Component],
        frames: Sequence[FrameSlice],
    ) -> int:
        """Take one gradient step per confidently labelled component.

        Returns the number of components used for training.
        """

        if not components:
            return 0
        areas = [component.area for component in components]
        max_area = float(max(areas))
        avg_area = sum(areas) / float(len(areas))
        updates = 0
        with self._lock:
            for component in components:
                label = _derive_label(component, max_area, avg_area, frames)
                if label is None:
                    continue
                error = label - self._score_unlocked(component)
                for i, value in enumerate(features(component)):
                    self._weights[i] += self.learning_rate * error * value
                self._bias += self.learning_rate * error
                updates += 1
        logger.debug("Classifier learned from %s components of %s", updates, sheet.name)
        return updates

    def copy(self) -> "CoreVsFxClassifier":
        with self._lock:
            return CoreVsFxClassifier(self._weights, self._bias, self.learning_rate)

    @classmethod
    def merge(cls, classifiers: Iterable["CoreVsFxClassifier"]) -> "CoreVsFxClassifier":
        """Average the weights of independently trained copies."""

        snapshots = [(c.weights, c.bias) for c in classifiers]
        if not snapshots:
            return cls()
        count = float(len(snapshots))
        weights = [sum(ws[i] for ws, _ in snapshots) / count for i in range(len(DEFAULT_WEIGHTS))]
        bias = sum(b for _, b in snapshots) / count
        return cls(weights, bias)

    def to_dict(self) -> dict[str, object]:
        with self._lock:
            return {"bias": self._bias, "weights": list(self._weights)}

    def save(self, path: Path) -> Path:
        file_tools.ensure_directory(path.parent)
        path.write_text(json.dumps(self.to_dict(), indent=2), encoding="utf-8")
        logger.info("Saved classifier to %s", path)
        return path

    @classmethod
    def load_or_create(cls, path: Path) -> "CoreVsFxClassifier":
        if not path.exists():
            return cls()
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
            return cls(payload.get("weights", DEFAULT_WEIGHTS), payload.get("bias", 0.0))
        except (OSError, ValueError, TypeError, AttributeError) as exc:
            raise ValidationError(f"Failed to read classifier model {path}: {exc}") from exc


def _derive_label(
    component: Component,
    max_area: float,
    avg_area: float,
    frames: Sequence[FrameSlice],
) -> float | None:
    if component.area >= max_area * 0.4:
        return 1.0
    if component.area <= avg_area * 0.15 and component.color_variance > 1500 and component.density < 0.4:
        return 0.0
    if any(frame.rect.intersects(component.bounds) for frame in frames):
        return 1.0
    return None
