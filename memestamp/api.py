from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from memestamp import service
from memestamp.config import fetch_timeout, load_config
from memestamp.constants import DEFAULT_FONT_FAMILY
from memestamp.errors import MemeStampError
from memestamp.models import RenderResult
from memestamp.render.typography import configure_font_dirs

LOGGER = logging.getLogger(__name__)


class AddTextRequest(BaseModel):
    imageUrl: Optional[str] = None
    textLayers: Optional[List[Dict[str, Any]]] = None


class CaptionsRequest(BaseModel):
    image: Optional[str] = None
    captions: Optional[List[Dict[str, Any]]] = None


def _error_response(exc: Exception) -> JSONResponse:
    status = service.status_for_error(exc)
    if status == 400:
        return JSONResponse(status_code=400, content={"error": "Invalid request", "details": str(exc)})
    return JSONResponse(
        status_code=status,
        content={"error": "Failed to add text to image", "details": str(exc) or "An unknown error occurred"},
    )


def _run(render: Callable[[], RenderResult]) -> Any:
    try:
        result = render()
    except MemeStampError as exc:
        if service.status_for_error(exc) == 400:
            LOGGER.info("rejected request: %s", exc)
        else:
            LOGGER.error("render failed: %s", exc)
        return _error_response(exc)
    except Exception as exc:
        LOGGER.exception("unexpected render failure")
        return _error_response(exc)
    return result.to_dict()


def create_app(cfg: dict[str, Any] | None = None) -> FastAPI:
    cfg = cfg if cfg is not None else load_config()
    configure_font_dirs(cfg.get("font_dirs") or [])
    timeout = fetch_timeout(cfg)
    font_family = str(cfg.get("default_font_family") or DEFAULT_FONT_FAMILY)

    app = FastAPI(title="memestamp")

    @app.exception_handler(RequestValidationError)
    async def _invalid_body(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": "Invalid request", "details": str(exc)})

    @app.get("/healthz")
    def healthz() -> dict[str, str]:
        return {"status": "ok"}

    # Sync handlers run on the thread pool, so independent renders proceed concurrently.
    @app.post("/api/meme/add-text")
    def add_text(req: AddTextRequest):
        return _run(lambda: service.add_text_layers(req.model_dump(), timeout=timeout))

    @app.post("/api/meme/captions")
    def add_captions(req: CaptionsRequest):
        return _run(lambda: service.add_captions(req.model_dump(), font_family=font_family, timeout=timeout))

    return app
