"""Core data model for sprite sheet decomposition."""

__all__ = [
    "DEFAULT_FRAME_DURATION",
    "ProcessingDecision",
    "Rect",
    "SpriteSheet",
    "Component",
    "FrameCluster",
    "FrameSlice",
    "AnimationClip",
    "SheetResult",
    "ExtractionSettings",
]

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import numpy as np
from PIL import Image

DEFAULT_FRAME_DURATION = 0.08


class ProcessingDecision(enum.Enum):
    """How a sheet is split into frames."""

    WHOLE = "WHOLE"
    TWO = "TWO"
    MANY = "MANY"

    @classmethod
    def parse(cls, value: "str | ProcessingDecision") -> "ProcessingDecision":
        if isinstance(value, cls):
            return value
        try:
            return cls[str(value).strip().upper()]
        except KeyError as exc:
            raise ValueError(f"Unknown decision: {value!r}") from exc


@dataclass(frozen=True)
class Rect:
    """Integer rectangle in sheet coordinates."""

    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def area(self) -> int:
        return max(self.width, 0) * max(self.height, 0)

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def intersects(self, other: "Rect") -> bool:
        return self.x < other.right and self.right > other.x and self.y < other.bottom and self.bottom > other.y

    def iou(self, other: "Rect") -> float:
        iw = max(0, min(self.right, other.right) - max(self.x, other.x))
        ih = max(0, min(self.bottom, other.bottom) - max(self.y, other.y))
        intersection = iw * ih
        union = self.area + other.area - intersection
        if union <= 0:
            return 0.0
        return intersection / union

    def union(self, other: "Rect") -> "Rect":
        left = min(self.x, other.x)
        top = min(self.y, other.y)
        return Rect(left, top, max(self.right, other.right) - left, max(self.bottom, other.bottom) - top)

    def within(self, width: int, height: int) -> bool:
        return self.x >= 0 and self.y >= 0 and self.width >= 0 and self.height >= 0 and self.right <= width and self.bottom <= height

    def as_list(self) -> list[int]:
        return [self.x, self.y, self.width, self.height]


@dataclass(frozen=True)
class SpriteSheet:
    """An RGBA raster (H x W x 4, uint8) and the file it came from."""

    source: Path
    pixels: np.ndarray

    def __post_init__(self) -> None:
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 4 or self.pixels.dtype != np.uint8:
            raise ValueError("Sprite sheet pixels must be an HxWx4 uint8 array")
        frozen = np.array(self.pixels, copy=True)
        frozen.flags.writeable = False
        object.__setattr__(self, "pixels", frozen)
        object.__setattr__(self, "source", Path(self.source))

    @classmethod
    def from_image(cls, image: Image.Image, source: Path | str) -> "SpriteSheet":
        return cls(source=Path(source), pixels=np.asarray(image.convert("RGBA"), dtype=np.uint8))

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def name(self) -> str:
        return self.source.name

    @property
    def bounds(self) -> Rect:
        return Rect(0, 0, self.width, self.height)


@dataclass(frozen=True)
class Component:
    """A connected region of opaque pixels.

    ``solidity`` is an approximation: without a convex hull it reuses
    ``density`` (area over bounding-box area).
    """

    label: int
    left: int
    top: int
    width: int
    height: int
    area: int
    centroid_x: float
    centroid_y: float
    density: float
    mean_intensity: float
    color_variance: float
    solidity: float

    @property
    def bounds(self) -> Rect:
        return Rect(self.left, self.top, self.width, self.height)


@dataclass(frozen=True)
class FrameCluster:
    """Components believed to make up one animation frame."""

    label: int
    bounds: Rect
    components: tuple[Component, ...] = ()


@dataclass(frozen=True)
class FrameSlice:
    """A cropped frame, where it came from on the sheet, and its pivot."""

    image: Image.Image
    index: int
    rect: Rect
    pivot_x: float = 0.5
    pivot_y: float = 0.5

    @property
    def width(self) -> int:
        return self.rect.width

    @property
    def height(self) -> int:
        return self.rect.height


@dataclass(frozen=True)
class AnimationClip:
    """Named, ordered frames with playback settings."""

    name: str
    frames: tuple[FrameSlice, ...]
    frame_duration: float = DEFAULT_FRAME_DURATION
    loop: bool = False


@dataclass
class SheetResult:
    """Everything the pipeline produced for one sheet."""

    source: Path
    decision: ProcessingDecision
    frames: list[FrameSlice]
    clips: list[AnimationClip]
    stats: dict[str, Any]


@dataclass
class ExtractionSettings:
    """User-configurable thresholds used while decomposing a sheet."""

    alpha_threshold: int = 8
    padding: int = 2
    min_area: int = 40
    eps: float = 26.0
    min_samples: int = 3
    valley_window: int = 7
    whole_coverage: float = 0.90
    two_gap_iou_max: float = 0.05
    decision_overrides: list[tuple[str, ProcessingDecision]] = field(default_factory=list)
    clip_overrides: list[tuple[str, str]] = field(default_factory=list)
    character_overrides: list[tuple[str, str]] = field(default_factory=list)
    frame_duration: float = DEFAULT_FRAME_DURATION
