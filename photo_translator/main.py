"""FastAPI server orchestrating OCR, block grouping, translation and overlays."""

from __future__ import annotations

import base64
import binascii
import logging
import os
from typing import Any, Dict, List, Optional

import requests
from fastapi import Depends, FastAPI, HTTPException, Request, Response
from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel, Field

from .logging_config import configure_logging
from .ocr import RecognitionError
from .pipeline import PipelineContext
from .render import encode_png, open_image, render_export, render_interactive
from .session_store import OverlaySession
from .style import OVERLAY_STYLES
from .translate import DEFAULT_TARGET_LANGUAGE, SUPPORTED_LANGUAGES, format_results_text

logger = logging.getLogger(__name__)

EXPORT_FILENAME = "translated-image.png"


class AnalyzeRequest(BaseModel):
    image_url: Optional[str] = None
    image_b64: Optional[str] = None

    def load_bytes(self) -> bytes:
        if self.image_b64:
            try:
                _, data = self.image_b64.split(",", 1)
            except ValueError:
                data = self.image_b64
            try:
                return base64.b64decode(data, validate=True)
            except (binascii.Error, ValueError) as exc:
                raise HTTPException(status_code=400, detail="image_b64 is not valid base64") from exc
        if self.image_url:
            logger.info("Fetching image from %s", self.image_url)
            try:
                response = requests.get(self.image_url, timeout=20)
            except requests.RequestException as exc:
                raise HTTPException(status_code=502, detail="Failed to fetch image URL") from exc
            if not response.ok:
                raise HTTPException(status_code=502, detail="Failed to fetch image URL")
            return response.content
        raise HTTPException(status_code=400, detail="Provide image_url or image_b64")


class TranslateRequest(BaseModel):
    target_language: str = Field(default=DEFAULT_TARGET_LANGUAGE, description="Target language code")


class OverlayRequest(BaseModel):
    style: Optional[str] = None
    visible: Optional[bool] = None


class RenderRequest(BaseModel):
    display_width: int = Field(..., ge=1)
    display_height: int = Field(..., ge=1)


def get_pipeline(request: Request) -> PipelineContext:
    return request.app.state.pipeline


def _session_or_404(pipeline: PipelineContext, session_id: str) -> OverlaySession:
    session = pipeline.store.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Unknown session")
    return session


def _session_payload(session: OverlaySession) -> Dict[str, Any]:
    processed = session.processed
    snapshot = session.snapshot()
    return {
        "session_id": session.session_id,
        "ocr_image_size": processed["image_size"],
        "detected_language": processed["detected_language"],
        "full_text": processed["full_text"],
        "words": processed["extracted_texts"],
        "target_language": snapshot.target_language,
        "style": snapshot.style,
        "visible": snapshot.visible,
        "records": list(snapshot.records),
    }


def create_app(pipeline: PipelineContext | None = None) -> FastAPI:
    app = FastAPI(title="Photo Translator API", version="0.1.0")
    app.state.pipeline = pipeline or PipelineContext()

    @app.get("/health")
    def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/languages")
    def languages() -> Dict[str, Any]:
        return {
            "languages": SUPPORTED_LANGUAGES,
            "overlay_styles": [{"id": key, "name": name} for key, name in OVERLAY_STYLES.items()],
        }

    @app.post("/sessions")
    def create_session(req: AnalyzeRequest, pipeline: PipelineContext = Depends(get_pipeline)) -> Dict[str, Any]:
        image_bytes = req.load_bytes()
        try:
            session = pipeline.open_session(image_bytes)
        except RecognitionError as exc:
            logger.error("Recognition failed: %s", exc)
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return _session_payload(session)

    @app.get("/sessions/{session_id}")
    def get_session(session_id: str, pipeline: PipelineContext = Depends(get_pipeline)) -> Dict[str, Any]:
        return _session_payload(_session_or_404(pipeline, session_id))

    @app.delete("/sessions/{session_id}")
    def delete_session(session_id: str, pipeline: PipelineContext = Depends(get_pipeline)) -> Dict[str, str]:
        if not pipeline.store.remove(session_id):
            raise HTTPException(status_code=404, detail="Unknown session")
        return {"status": "deleted"}

    @app.post("/sessions/{session_id}/translate")
    async def translate(
        session_id: str,
        req: TranslateRequest,
        pipeline: PipelineContext = Depends(get_pipeline),
    ) -> Dict[str, Any]:
        session = _session_or_404(pipeline, session_id)
        codes: List[str] = [language["code"] for language in SUPPORTED_LANGUAGES]
        if req.target_language not in codes:
            raise HTTPException(status_code=400, detail=f"Unsupported language '{req.target_language}'")
        result = await pipeline.run_translation_pass(session, req.target_language)
        if not result.committed:
            logger.info("Pass for %s superseded in session %s", req.target_language, session_id)
        return {
            "target_language": result.target_language,
            "records": result.records,
            "committed": result.committed,
        }

    @app.put("/sessions/{session_id}/overlay")
    def update_overlay(
        session_id: str,
        req: OverlayRequest,
        pipeline: PipelineContext = Depends(get_pipeline),
    ) -> Dict[str, Any]:
        session = _session_or_404(pipeline, session_id)
        try:
            session.set_overlay(style=req.style, visible=req.visible)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        snapshot = session.snapshot()
        return {"style": snapshot.style, "visible": snapshot.visible}

    @app.post("/sessions/{session_id}/render")
    def render(
        session_id: str,
        req: RenderRequest,
        pipeline: PipelineContext = Depends(get_pipeline),
    ) -> Response:
        session = _session_or_404(pipeline, session_id)
        snapshot = session.snapshot()
        image = _open_session_image(session)
        overlay = render_interactive(
            image,
            snapshot.records,
            snapshot.style,
            (req.display_width, req.display_height),
            visible=snapshot.visible,
        )
        return Response(content=encode_png(overlay), media_type="image/png")

    @app.get("/sessions/{session_id}/export")
    def export(
        session_id: str,
        match_interactive: bool = False,
        pipeline: PipelineContext = Depends(get_pipeline),
    ) -> Response:
        session = _session_or_404(pipeline, session_id)
        snapshot = session.snapshot()
        image = _open_session_image(session)
        exported = render_export(
            image,
            snapshot.records,
            style_id=snapshot.style,
            visible=snapshot.visible,
            match_interactive=match_interactive,
        )
        return Response(
            content=encode_png(exported),
            media_type="image/png",
            headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
        )

    @app.get("/sessions/{session_id}/text")
    def results_text(session_id: str, pipeline: PipelineContext = Depends(get_pipeline)) -> Dict[str, str]:
        session = _session_or_404(pipeline, session_id)
        return {"text": format_results_text(session.snapshot().records)}

    return app


def _open_session_image(session: OverlaySession) -> Image.Image:
    try:
        return open_image(session.processed["original_image"])
    except (UnidentifiedImageError, OSError) as exc:
        raise HTTPException(status_code=422, detail="Stored image can no longer be decoded") from exc


app: FastAPI = create_app()


def run() -> None:
    """Entry point for ``photo-translator``: configure logging and serve."""
    import uvicorn

    configure_logging()
    uvicorn.run(
        "photo_translator.main:app",
        host=os.getenv("PHOTO_TRANSLATOR_HOST", "127.0.0.1"),
        port=int(os.getenv("PHOTO_TRANSLATOR_PORT", "8000")),
        log_config=None,
    )


__all__ = ["app", "create_app", "run"]
