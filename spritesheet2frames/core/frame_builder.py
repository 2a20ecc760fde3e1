"""Materialize frames for each processing decision."""

from __future__ import annotations

import logging
from typing import Sequence

from . import Component, FrameCluster, FrameSlice, ProcessingDecision, Rect, SpriteSheet
from ..utils import image_tools
from .alpha_metrics import AlphaMetrics
from .errors import ProcessingError
from .pivot import PivotEstimator
from .refiner import refine_frames

logger = logging.getLogger(__name__)


def build_frames(
    decision: ProcessingDecision,
    sheet: SpriteSheet,
    metrics: AlphaMetrics,
    components: Sequence[Component],
    clusters: Sequence[FrameCluster],
    estimator: PivotEstimator,
) -> list[FrameSlice]:
    """Dispatch to the builder for ``decision``."""

    if decision is ProcessingDecision.WHOLE:
        frames = build_whole_frames(sheet, metrics, components, clusters, estimator)
    elif decision is ProcessingDecision.TWO:
        frames = build_two_frames(sheet, metrics, components, clusters, estimator)
    elif decision is ProcessingDecision.MANY:
        frames = build_many_frames(sheet, metrics, components, clusters, estimator)
    else:
        raise ProcessingError(f"Unhandled decision: {decision!r}")

    for frame in frames:
        _check_inside(sheet, frame.rect)
    return frames


def build_whole_frames(
    sheet: SpriteSheet,
    metrics: AlphaMetrics,
    components: Sequence[Component],
    clusters: Sequence[FrameCluster],
    estimator: PivotEstimator,
) -> list[FrameSlice]:
    """One frame cropped to the opaque content of the whole sheet."""

    bounds = image_tools.opaque_bounds(sheet.pixels, metrics.settings.alpha_threshold)
    if bounds.is_empty:
        logger.info("No opaque pixels in %s; no frame produced", sheet.name)
        return []
    pivot_x, pivot_y = estimator.estimate(sheet, components, bounds)
    return [_slice(sheet, 0, bounds, pivot_x, pivot_y)]


def build_two_frames(
    sheet: SpriteSheet,
    metrics: AlphaMetrics,
    components: Sequence[Component],
    clusters: Sequence[FrameCluster],
    estimator: PivotEstimator,
) -> list[FrameSlice]:
    """Two frames from the valley split, trimmed afterwards."""

    splits = metrics.find_best_binary_split()
    if not splits:
        logger.info("No interior valley in %s; falling back to a single frame", sheet.name)
        return build_whole_frames(sheet, metrics, components, clusters, estimator)
    frames = []
    for index, rect in enumerate(splits):
        pivot_x, pivot_y = estimator.estimate(sheet, components, rect)
        frames.append(_slice(sheet, index, rect, pivot_x, pivot_y))
    return refine_frames(sheet, frames, metrics.settings)


def build_many_frames(
    sheet: SpriteSheet,
    metrics: AlphaMetrics,
    components: Sequence[Component],
    clusters: Sequence[FrameCluster],
    estimator: PivotEstimator,
) -> list[FrameSlice]:
    """One frame per cluster, in cluster order, trimmed afterwards."""

    frames = []
    for index, cluster in enumerate(clusters):
        pivot_x, pivot_y = estimator.estimate(sheet, cluster.components, cluster.bounds)
        frames.append(_slice(sheet, index, cluster.bounds, pivot_x, pivot_y))
    return refine_frames(sheet, frames, metrics.settings)


def _slice(sheet: SpriteSheet, index: int, rect: Rect, pivot_x: float, pivot_y: float) -> FrameSlice:
    _check_inside(sheet, rect)
    region = image_tools.crop(sheet.pixels, rect)
    return FrameSlice(image=image_tools.to_image(region), index=index, rect=rect, pivot_x=pivot_x, pivot_y=pivot_y)


def _check_inside(sheet: SpriteSheet, rect: Rect) -> None:
    if rect.is_empty or not rect.within(sheet.width, sheet.height):
        raise ProcessingError(f"Frame rectangle {rect.as_list()} outside {sheet.width}x{sheet.height} sheet {sheet.name}")
