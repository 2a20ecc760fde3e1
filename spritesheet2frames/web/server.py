"""FastAPI surface for sprite sheet decomposition."""

from __future__ import annotations

import base64
import io
import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel, Field, field_validator
from starlette.concurrency import run_in_threadpool

from ..core import ExtractionSettings, FrameSlice, ProcessingDecision, SheetResult, SpriteSheet
from ..core.classifier import CoreVsFxClassifier
from ..core.errors import InvalidSheetError, ProcessingError, ValidationError
from ..core.pipeline import SheetProcessor
from ..utils import validators

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 20 * 1024 * 1024  # 20MB guardrail
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("S2F_ALLOWED_ORIGINS", "http://localhost:8000").split(",")
    if origin.strip()
]


class ExtractionRequest(BaseModel):
    """Incoming settings payload for sheet decomposition."""

    alpha_threshold: int = Field(8, ge=0, le=255)
    padding: int = Field(2, ge=0, le=64)
    min_area: int = Field(40, ge=1)
    eps: float = Field(26.0, gt=0)
    min_samples: int = Field(3, ge=1)
    valley_window: int = Field(7, ge=1)
    whole_coverage: float = Field(0.90, ge=0, le=1)
    two_gap_iou_max: float = Field(0.05, ge=0, le=1)
    decision_overrides: list[tuple[str, ProcessingDecision]] = Field(default_factory=list)
    clip_overrides: list[tuple[str, str]] = Field(default_factory=list)
    character_name: Optional[str] = None
    include_images: bool = False

    @field_validator("decision_overrides", mode="before")
    @classmethod
    def _parse_decisions(cls, value):
        if value in (None, "", "null"):
            return []
        if isinstance(value, dict):
            value = [f"{pattern}={target}" for pattern, target in value.items()]
        if isinstance(value, str):
            value = [value]
        rules = []
        for item in value:
            if isinstance(item, str):
                rules.extend(validators.parse_decision_overrides([item]))
            else:
                pattern, target = item
                rules.append((pattern, ProcessingDecision.parse(target)))
        return rules

    @field_validator("clip_overrides", mode="before")
    @classmethod
    def _parse_clips(cls, value):
        if value in (None, "", "null"):
            return []
        if isinstance(value, dict):
            return list(value.items())
        if isinstance(value, str):
            value = [value]
        return [validators.parse_rule(item, "Clip override") if isinstance(item, str) else tuple(item) for item in value]

    def to_settings(self) -> ExtractionSettings:
        settings = ExtractionSettings(
            alpha_threshold=self.alpha_threshold,
            padding=self.padding,
            min_area=self.min_area,
            eps=self.eps,
            min_samples=self.min_samples,
            valley_window=self.valley_window,
            whole_coverage=self.whole_coverage,
            two_gap_iou_max=self.two_gap_iou_max,
            decision_overrides=list(self.decision_overrides),
            clip_overrides=list(self.clip_overrides),
            character_overrides=[("*", self.character_name)] if self.character_name else [],
        )
        return validators.validate_settings(settings)


class FrameResponse(BaseModel):
    index: int
    rect: list[int]
    pivot: tuple[float, float]
    image_png: Optional[str] = None


class ClipResponse(BaseModel):
    name: str
    frame_indices: list[int]
    frame_duration: float
    loop: bool


class ExtractionResponse(BaseModel):
    """Payload returned after a sheet has been decomposed."""

    source: str
    decision: ProcessingDecision
    frames: list[FrameResponse]
    clips: list[ClipResponse]
    stats: dict[str, Any]


def create_app(classifier: Optional[CoreVsFxClassifier] = None) -> FastAPI:
    app = FastAPI(title="Sheet2Frames Web", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.classifier = classifier if classifier is not None else CoreVsFxClassifier()

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/classifier")
    async def classifier_state() -> dict[str, Any]:
        return app.state.classifier.to_dict()

    @app.post("/api/extract", response_model=ExtractionResponse)
    async def extract(
        image: UploadFile = File(...),
        settings: str = Form("{}"),
    ) -> ExtractionResponse:
        try:
            payload = json.loads(settings) if settings else {}
        except json.JSONDecodeError as exc:
            raise HTTPException(status_code=400, detail=f"Invalid settings JSON: {exc}") from exc

        try:
            request_settings = ExtractionRequest.model_validate(payload)
            extraction_settings = request_settings.to_settings()
        except (ValueError, ValidationError) as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc

        content = await image.read()
        if len(content) > MAX_UPLOAD_BYTES:
            raise HTTPException(status_code=413, detail="Upload too large")
        source = Path(image.filename or "sheet.png")

        try:
            sheet = _decode_sheet(content, source)
            result = await run_in_threadpool(
                SheetProcessor(extraction_settings, app.state.classifier).process,
                sheet,
            )
        except (InvalidSheetError, ValidationError) as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except ProcessingError as exc:
            logger.exception("Processing failed for %s", source)
            raise HTTPException(status_code=500, detail=str(exc)) from exc

        return _to_response(result, request_settings.include_images)

    return app


def _decode_sheet(content: bytes, source: Path) -> SpriteSheet:
    try:
        with Image.open(io.BytesIO(content)) as image:
            return SpriteSheet.from_image(image, source)
    except (OSError, UnidentifiedImageError) as exc:
        raise InvalidSheetError(source, reason=f"Could not decode image: {exc}") from exc


def _encode_png(frame: FrameSlice) -> str:
    buffer = io.BytesIO()
    frame.image.save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")


def _to_response(result: SheetResult, include_images: bool) -> ExtractionResponse:
    frames = [
        FrameResponse(
            index=frame.index,
            rect=frame.rect.as_list(),
            pivot=(frame.pivot_x, frame.pivot_y),
            image_png=_encode_png(frame) if include_images else None,
        )
        for frame in result.frames
    ]
    clips = [
        ClipResponse(
            name=clip.name,
            frame_indices=[frame.index for frame in clip.frames],
            frame_duration=clip.frame_duration,
            loop=clip.loop,
        )
        for clip in result.clips
    ]
    return ExtractionResponse(
        source=result.source.name,
        decision=result.decision,
        frames=frames,
        clips=clips,
        stats=result.stats,
    )


app = create_app()
