"""Clip and character names derived from sheet file names."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Sequence

from . import AnimationClip, ExtractionSettings, FrameSlice, ProcessingDecision
from .decision import first_match

BUILTIN_CLIP_OVERRIDES: tuple[tuple[str, str], ...] = (("goldMechAttack3.png", "Attack3"),)
NUMBER_PATTERN = re.compile(r"(\d+)")
ACTION_SUFFIX = re.compile(r"(attack|idle|cast|death).*", re.IGNORECASE)


def name_clips(
    source: Path,
    frames: Sequence[FrameSlice],
    decision: ProcessingDecision,
    settings: ExtractionSettings,
) -> list[AnimationClip]:
    """Wrap a sheet's frames in a single named clip (none when there are no frames)."""

    if not frames:
        return []
    name = resolve_clip_name(Path(source).name, decision, settings)
    loop = "idle" in name.lower()
    return [AnimationClip(name=name, frames=tuple(frames), frame_duration=settings.frame_duration, loop=loop)]


def resolve_clip_name(file_name: str, decision: ProcessingDecision, settings: ExtractionSettings) -> str:
    override = first_match(file_name, [*BUILTIN_CLIP_OVERRIDES, *settings.clip_overrides])
    if override is not None:
        return override

    base = Path(file_name).stem.lower()
    if "death" in base:
        return "Death"
    if "idle" in base:
        return "Idle"
    if "attack" in base:
        match = NUMBER_PATTERN.search(base)
        return f"Attack{match.group(1)}" if match else "Attack"
    if "cast" in base or "spell" in base:
        return "CastSpell"
    if "hit" in base or "hurt" in base:
        return "Hit"
    if decision is ProcessingDecision.WHOLE:
        return "Whole"
    return "Idle"


def resolve_character(file_name: str, settings: ExtractionSettings) -> str:
    """Character name: override, else the file stem minus its action suffix, title-cased."""

    override = first_match(file_name, settings.character_overrides)
    if override is not None:
        return override

    stem = Path(file_name).stem
    base = ACTION_SUFFIX.sub("", stem)
    if not base.strip():
        base = stem
    parts = [part for part in re.split(r"[_-]", base) if part.strip()]
    if not parts:
        return "Unknown"
    return " ".join(part[0].upper() + part[1:] for part in parts)
