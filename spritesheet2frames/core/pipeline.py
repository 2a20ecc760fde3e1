"""Per-sheet decomposition driver and multi-sheet runner."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Optional

from . import ExtractionSettings, SheetResult, SpriteSheet
from . import clustering, decision, frame_builder, naming, segmentation
from .alpha_metrics import AlphaMetrics
from .classifier import CoreVsFxClassifier
from .pivot import PivotEstimator

logger = logging.getLogger(__name__)


class SheetProcessor:
    """Runs the decomposition stages for one sheet at a time.

    The classifier is supplied by the caller and is the only state carried
    from one sheet to the next.
    """

    def __init__(self, settings: ExtractionSettings, classifier: CoreVsFxClassifier):
        self.settings = settings
        self.classifier = classifier
        self.estimator = PivotEstimator(classifier, settings.alpha_threshold)

    def process(self, sheet: SpriteSheet) -> SheetResult:
        settings = self.settings
        metrics = AlphaMetrics(sheet, settings)
        components = segmentation.segment(sheet, metrics, settings)
        clusters = clustering.cluster_components(components, metrics, settings)
        chosen = decision.decide(sheet.source, components, clusters, metrics, settings)

        frames = frame_builder.build_frames(chosen, sheet, metrics, components, clusters, self.estimator)
        self.classifier.learn_from(sheet, components, frames)
        clips = naming.name_clips(sheet.source, frames, chosen, settings)

        stats = {
            "count": len(frames),
            "decision": chosen.value,
            "coverage": metrics.coverage(),
            "clusters": len(clusters),
            "components": len(components),
            "alpha_threshold": settings.alpha_threshold,
            "padding": settings.padding,
            "eps": settings.eps,
            "min_samples": settings.min_samples,
            "whole_coverage": settings.whole_coverage,
            "two_gap_iou_max": settings.two_gap_iou_max,
        }
        logger.info(
            "Processed %s: decision=%s frames=%s clusters=%s coverage=%.3f",
            sheet.name,
            chosen.value,
            len(frames),
            len(clusters),
            metrics.coverage(),
        )
        return SheetResult(source=sheet.source, decision=chosen, frames=frames, clips=clips, stats=stats)


def process_sheets(
    sheets: Iterable[SpriteSheet],
    settings: ExtractionSettings,
    classifier: Optional[CoreVsFxClassifier] = None,
    max_workers: Optional[int] = None,
) -> list[SheetResult]:
    """Process sheets concurrently, returning results in input order.

    Every worker shares ``classifier``; its lock serializes learning.
    """

    classifier = classifier if classifier is not None else CoreVsFxClassifier()
    processor = SheetProcessor(settings, classifier)
    sheets = list(sheets)
    if max_workers == 1 or len(sheets) <= 1:
        return [processor.process(sheet) for sheet in sheets]
    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="sheet") as pool:
        return list(pool.map(processor.process, sheets))
