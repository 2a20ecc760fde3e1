"""Choose how a sheet is split: WHOLE, TWO or MANY."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional, Sequence, TypeVar

from . import Component, ExtractionSettings, FrameCluster, ProcessingDecision
from .alpha_metrics import AlphaMetrics

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Sheets the generic heuristics get wrong; always evaluated before caller rules.
BUILTIN_DECISION_OVERRIDES: tuple[tuple[str, ProcessingDecision], ...] = (
    ("theWelchAttack3.png", ProcessingDecision.WHOLE),
    ("purpleEmpressAttack3.png", ProcessingDecision.TWO),
)
CLEAR_VALLEY_DEPTH = 0.35
TWO_AREA_SHARE = 0.75


def matches_pattern(file_name: str, pattern: str | None) -> bool:
    """Case-insensitive match against ``*``, ``*contains*``, ``*suffix``, ``prefix*`` or an exact name."""

    if not pattern or not pattern.strip():
        return False
    name = file_name.lower()
    pattern = pattern.lower()
    if pattern == "*":
        return True
    if len(pattern) > 1 and pattern.startswith("*") and pattern.endswith("*"):
        return pattern[1:-1] in name
    if pattern.startswith("*"):
        return name.endswith(pattern[1:])
    if pattern.endswith("*"):
        return name.startswith(pattern[:-1])
    return name == pattern


def first_match(file_name: str, rules: Iterable[tuple[str, T]]) -> Optional[T]:
    """Value of the first rule whose pattern matches, in rule order."""

    for pattern, value in rules:
        if matches_pattern(file_name, pattern):
            return value
    return None


def decision_rules(settings: ExtractionSettings) -> list[tuple[str, ProcessingDecision]]:
    return [*BUILTIN_DECISION_OVERRIDES, *settings.decision_overrides]


def resolve_override(source: Path, settings: ExtractionSettings) -> Optional[ProcessingDecision]:
    return first_match(Path(source).name, decision_rules(settings))


def decide(
    source: Path,
    components: Sequence[Component],
    clusters: Sequence[FrameCluster],
    metrics: AlphaMetrics,
    settings: ExtractionSettings,
) -> ProcessingDecision:
    """Classify a sheet from overrides, coverage, cluster count and valley depth."""

    override = resolve_override(source, settings)
    if override is not None:
        logger.info("Decision override for %s: %s", Path(source).name, override.value)
        return override
    if not components:
        return ProcessingDecision.WHOLE

    total_area = float(sum(component.area for component in components))
    largest_area = float(max(component.area for component in components))
    if total_area <= 0:
        return ProcessingDecision.WHOLE
    # a valley-split fallback yields two clusters, so a lone sprite goes on to TWO
    if largest_area / total_area >= settings.whole_coverage and len(clusters) <= 1:
        return ProcessingDecision.WHOLE

    if should_split_in_two(clusters, metrics, settings):
        return ProcessingDecision.TWO
    return ProcessingDecision.MANY


def should_split_in_two(
    clusters: Sequence[FrameCluster],
    metrics: AlphaMetrics,
    settings: ExtractionSettings,
) -> bool:
    """Two dominant, non-overlapping clusters separated by a clear valley."""

    if len(clusters) < 2:
        return False
    ranked = sorted(clusters, key=lambda cluster: -len(cluster.components))
    first, second = ranked[0].bounds, ranked[1].bounds
    pair_area = first.area + second.area
    if pair_area <= 0:
        return False
    all_area = sum(cluster.bounds.area for cluster in clusters)
    share = pair_area / all_area
    iou = first.iou(second)
    clear_valley = metrics.row_valley_score() > CLEAR_VALLEY_DEPTH or metrics.col_valley_score() > CLEAR_VALLEY_DEPTH
    logger.debug("Two-way check: share=%.3f iou=%.3f clear_valley=%s", share, iou, clear_valley)
    return share > TWO_AREA_SHARE and iou < settings.two_gap_iou_max and clear_valley
