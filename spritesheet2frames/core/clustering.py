"""Density-based grouping of components into frame candidates."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from . import Component, ExtractionSettings, FrameCluster, Rect
from .alpha_metrics import AlphaMetrics

logger = logging.getLogger(__name__)


def cluster_components(
    components: Sequence[Component],
    metrics: AlphaMetrics,
    settings: ExtractionSettings,
) -> list[FrameCluster]:
    """Group components whose centroids chain together within ``eps``.

    Groups smaller than ``min_samples`` are kept, one cluster per member. When
    at most one cluster comes out, the best binary valley split is tried
    instead and its two halves returned as component-less clusters.
    """

    eps_squared = settings.eps * settings.eps
    total = len(components)
    visited = [False] * total
    clusters: list[FrameCluster] = []
    label = 0

    for start in range(total):
        if visited[start]:
            continue
        visited[start] = True
        frontier = [start]
        group: list[Component] = []
        # frontier grows while it is walked
        for current_index in frontier:
            current = components[current_index]
            group.append(current)
            for candidate in range(total):
                if visited[candidate]:
                    continue
                other = components[candidate]
                dx = current.centroid_x - other.centroid_x
                dy = current.centroid_y - other.centroid_y
                if dx * dx + dy * dy <= eps_squared:
                    visited[candidate] = True
                    frontier.append(candidate)

        if len(group) < settings.min_samples:
            for component in group:
                clusters.append(FrameCluster(label, union_bounds([component]), (component,)))
                label += 1
        else:
            clusters.append(FrameCluster(label, union_bounds(group), tuple(group)))
            label += 1

    if len(clusters) <= 1:
        splits = metrics.find_best_binary_split()
        if len(splits) >= 2:
            logger.debug("Clustering inconclusive (%s clusters); using valley split", len(clusters))
            clusters = [FrameCluster(label + offset, rect) for offset, rect in enumerate(splits)]

    clusters.sort(key=lambda cluster: (cluster.bounds.y, cluster.bounds.x))
    logger.debug("Found %s clusters from %s components", len(clusters), total)
    return clusters


def union_bounds(components: Iterable[Component]) -> Rect:
    """Tight box around every member's bounding box."""

    result: Rect | None = None
    for component in components:
        result = component.bounds if result is None else result.union(component.bounds)
    if result is None:
        return Rect(0, 0, 0, 0)
    return result
