"""Manifest writing logic."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from . import ExtractionSettings, SheetResult
from ..utils import file_tools
from .naming import resolve_character

logger = logging.getLogger(__name__)


def write_manifest(result: SheetResult, output_dir: Path, settings: ExtractionSettings) -> list[Path]:
    """Write frame PNGs and a metadata.json per clip under ``output_dir/<character>/<clip>``."""

    character = resolve_character(result.source.name, settings)
    written: list[Path] = []
    for clip in result.clips:
        clip_dir = file_tools.ensure_directory(output_dir / character / clip.name)
        frames_payload = []
        for position, frame in enumerate(clip.frames):
            file_name = f"frame_{position:03d}.png"
            frame.image.save(clip_dir / file_name)
            frames_payload.append(
                {
                    "file": file_name,
                    "w": frame.width,
                    "h": frame.height,
                    "pivot": [round(frame.pivot_x, 4), round(frame.pivot_y, 4)],
                    "sourceRect": frame.rect.as_list(),
                }
            )

        manifest = {
            "character": character,
            "animation": clip.name,
            "source": str(result.source),
            "frames": frames_payload,
            "order": list(range(len(frames_payload))),
            "frameDuration": clip.frame_duration,
            "loop": clip.loop,
            "decision": result.decision.value,
            "stats": result.stats,
        }
        manifest_path = clip_dir / "metadata.json"
        manifest_path.write_text(json.dumps(manifest, indent=2), encoding="utf-8")
        logger.info("Wrote manifest to %s", manifest_path)
        written.append(manifest_path)
    return written
