"""Command-line entry point for sprite sheet decomposition."""

import argparse
import logging
import sys
from pathlib import Path

from spritesheet2frames.core import ExtractionSettings, ProcessingDecision
from spritesheet2frames.core import manifest_writer, pipeline, sheet_loader
from spritesheet2frames.core.classifier import CoreVsFxClassifier
from spritesheet2frames.core.errors import InvalidSheetError, ValidationError
from spritesheet2frames.utils import file_tools, validators

logger = logging.getLogger("sheet2frames")

DEFAULTS = ExtractionSettings()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sheet2frames",
        description="Split packed sprite sheets into trimmed animation frames with pivots.",
    )
    parser.add_argument("input", type=Path, help="Sprite sheet image, or a directory of sheets")
    parser.add_argument("--output", type=Path, help="Directory for frames and manifests (default: <input>/frames)")
    parser.add_argument("--alpha-threshold", type=int, default=DEFAULTS.alpha_threshold, help="Opacity cutoff 0-255")
    parser.add_argument("--padding", type=int, default=DEFAULTS.padding, help="Pixels re-added around trimmed frames")
    parser.add_argument("--min-area", type=int, default=DEFAULTS.min_area, help="Smallest component kept (px)")
    parser.add_argument("--eps", type=float, default=DEFAULTS.eps, help="Cluster linking distance (px)")
    parser.add_argument("--min-samples", type=int, default=DEFAULTS.min_samples, help="Components needed to form a cluster")
    parser.add_argument("--valley-window", type=int, default=DEFAULTS.valley_window, help="Projection smoothing width")
    parser.add_argument("--whole-coverage", type=float, default=DEFAULTS.whole_coverage, help="Dominant-area ratio for WHOLE")
    parser.add_argument("--two-gap-iou-max", type=float, default=DEFAULTS.two_gap_iou_max, help="Max overlap for TWO")
    parser.add_argument(
        "--decision",
        action="append",
        default=[],
        metavar="PATTERN=DECISION",
        help="Force WHOLE, TWO or MANY for matching file names (repeatable)",
    )
    parser.add_argument(
        "--clip",
        action="append",
        default=[],
        metavar="PATTERN=NAME",
        help="Clip name for matching file names (repeatable)",
    )
    parser.add_argument("--name", help="Character name used for every sheet")
    force = parser.add_mutually_exclusive_group()
    force.add_argument("--force-whole", action="store_true", help="Treat every sheet as a single frame")
    force.add_argument("--force-two", action="store_true", help="Split every sheet in two")
    parser.add_argument("--model", type=Path, help="Classifier weights file, loaded and updated after the run")
    parser.add_argument("--workers", help="Sheets processed in parallel (default: 1)")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse arguments and show plan without writing outputs",
    )
    return parser


def settings_from_args(args: argparse.Namespace) -> ExtractionSettings:
    decision_overrides = validators.parse_decision_overrides(args.decision)
    if args.force_whole:
        decision_overrides.append(("*", ProcessingDecision.WHOLE))
    elif args.force_two:
        decision_overrides.append(("*", ProcessingDecision.TWO))
    settings = ExtractionSettings(
        alpha_threshold=args.alpha_threshold,
        padding=args.padding,
        min_area=args.min_area,
        eps=args.eps,
        min_samples=args.min_samples,
        valley_window=args.valley_window,
        whole_coverage=args.whole_coverage,
        two_gap_iou_max=args.two_gap_iou_max,
        decision_overrides=decision_overrides,
        clip_overrides=validators.parse_name_overrides(args.clip),
        character_overrides=[("*", args.name)] if args.name else [],
    )
    return validators.validate_settings(settings)


def collect_inputs(path: Path) -> list[Path]:
    if path.is_dir():
        return file_tools.list_files_with_extensions(path, validators.ALLOWED_SHEET_EXTENSIONS)
    return [path]


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(name)s: %(message)s",
    )

    try:
        settings = settings_from_args(args)
        workers = validators.parse_optional_int(args.workers, "Workers") or 1
        inputs = collect_inputs(args.input)
        if not inputs:
            raise InvalidSheetError(args.input, reason="No sprite sheets found")

        output_dir = args.output or file_tools.default_output_dir(args.input)
        if args.dry_run:
            for path in inputs:
                print(f"{path} -> {output_dir}")
            return 0

        sheets = [sheet_loader.load_sheet(path) for path in inputs]
        classifier = CoreVsFxClassifier.load_or_create(args.model) if args.model else CoreVsFxClassifier()
    except (InvalidSheetError, ValidationError) as exc:
        logger.error("%s", exc)
        return 2

    results = pipeline.process_sheets(sheets, settings, classifier, max_workers=workers)
    for result in results:
        manifest_writer.write_manifest(result, output_dir, settings)
        print(f"{result.source.name}: {result.decision.value}, {len(result.frames)} frame(s)")
    if args.model:
        classifier.save(args.model)
    return 0


if __name__ == "__main__":
    sys.exit(main())
