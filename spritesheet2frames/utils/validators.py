"""Validation helpers for user inputs."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

from ..core import ExtractionSettings, ProcessingDecision
from ..core.errors import InvalidSheetError, ValidationError


ALLOWED_SHEET_EXTENSIONS = {".png", ".gif", ".webp", ".bmp", ".tga", ".tif", ".tiff"}


def validate_sheet_path(path: Path) -> Path:
    """Ensure the sheet path exists and appears to be a supported format."""

    if not path:
        raise InvalidSheetError(Path("<unset>"), reason="No path provided")
    path = Path(path)
    if not path.exists():
        raise InvalidSheetError(path, reason="File not found")
    if path.suffix.lower() not in ALLOWED_SHEET_EXTENSIONS:
        raise InvalidSheetError(path, reason="Unsupported format")
    return path


def validate_settings(settings: ExtractionSettings) -> ExtractionSettings:
    """Reject out-of-range thresholds before any sheet is processed."""

    if not 0 <= settings.alpha_threshold <= 255:
        raise ValidationError("Alpha threshold must be between 0 and 255")
    if settings.padding < 0:
        raise ValidationError("Padding must be zero or greater")
    if settings.min_area < 1:
        raise ValidationError("Minimum area must be at least 1")
    if settings.eps <= 0:
        raise ValidationError("Eps must be greater than zero")
    if settings.min_samples < 1:
        raise ValidationError("Minimum samples must be at least 1")
    if settings.valley_window < 1:
        raise ValidationError("Valley window must be at least 1")
    _validate_ratio(settings.whole_coverage, "Whole coverage")
    _validate_ratio(settings.two_gap_iou_max, "Two-gap IoU max")
    if settings.frame_duration <= 0:
        raise ValidationError("Frame duration must be greater than zero")
    for pattern, value in settings.decision_overrides:
        if not isinstance(value, ProcessingDecision):
            raise ValidationError(f"Decision override for {pattern!r} is not a decision: {value!r}")
    return settings


def _validate_ratio(value: float, field: str) -> None:
    if value < 0 or value > 1:
        raise ValidationError(f"{field} must be between 0 and 1")


def parse_rule(value: str, field: str) -> tuple[str, str]:
    """Split a 'PATTERN=VALUE' string."""

    if "=" not in value:
        raise ValidationError(f"{field} must look like PATTERN=VALUE")
    pattern, _, target = value.partition("=")
    pattern, target = pattern.strip(), target.strip()
    if not pattern or not target:
        raise ValidationError(f"{field} must look like PATTERN=VALUE")
    return pattern, target


def parse_decision_overrides(values: Optional[Iterable[str]]) -> list[tuple[str, ProcessingDecision]]:
    """Parse 'PATTERN=WHOLE|TWO|MANY' strings, keeping their order."""

    rules = []
    for value in values or []:
        pattern, target = parse_rule(value, "Decision override")
        try:
            rules.append((pattern, ProcessingDecision.parse(target)))
        except ValueError as exc:
            raise ValidationError(f"Decision override must be WHOLE, TWO or MANY (got {target!r})") from exc
    return rules


def parse_name_overrides(values: Optional[Iterable[str]], field: str = "Clip override") -> list[tuple[str, str]]:
    """Parse 'PATTERN=NAME' strings, keeping their order."""

    return [parse_rule(value, field) for value in values or []]


def parse_optional_int(value: str | None, field: str) -> Optional[int]:
    """Parse a positive integer from a string value, if provided."""

    if value is None or value == "":
        return None
    try:
        parsed = int(value)
    except ValueError as exc:
        raise ValidationError(f"{field} must be an integer") from exc
    if parsed <= 0:
        raise ValidationError(f"{field} must be greater than zero")
    return parsed
