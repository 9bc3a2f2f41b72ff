"""FastAPI surface for the essay workflow.

Run locally with:
    uvicorn storyloom.server:app --reload --port 8000
or:
    storyloom serve --port 8000
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional, Tuple

from fastapi import Body, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .errors import (
    CompletionTimeout,
    ConfigurationError,
    EmptyResultError,
    StoryloomError,
    UpstreamError,
    ValidationError,
)
from .pipeline import StageContext, StageRequest, run_stage, validate_request
from .schemas import EssayRequest
from .settings import StoryloomSettings

logger = logging.getLogger(__name__)

HEALTH_HINT = "POST with { stage: 'start' | 'followup' | 'draft' }"
ContextFactory = Callable[[], StageContext]


def default_context_factory() -> StageContext:
    """Fresh settings per request so a credential added at runtime is picked up."""
    return StageContext.from_settings(StoryloomSettings.from_env())


# (status, public error label) per failure kind; order matters for subclasses
_ERROR_STATUS: Tuple[Tuple[type, int, str], ...] = (
    (CompletionTimeout, 504, "Upstream timeout"),
    (UpstreamError, 500, "Server error"),
    (ConfigurationError, 500, "Configuration error"),
    (EmptyResultError, 502, "Empty result"),
)


def error_response(exc: StoryloomError) -> JSONResponse:
    if isinstance(exc, ValidationError):
        return JSONResponse(status_code=400, content={"error": exc.message})

    for error_cls, status, label in _ERROR_STATUS:
        if isinstance(exc, error_cls):
            return JSONResponse(status_code=status, content={"error": label, **exc.to_json()})

    return JSONResponse(status_code=500, content={"error": "Server error", "detail": exc.message})


def create_app(context_factory: Optional[ContextFactory] = None) -> FastAPI:
    make_context = context_factory or default_context_factory
    app = FastAPI(
        title="Storyloom",
        description="Answer a few focused questions, get a human sounding essay draft.",
    )

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request, exc: StarletteHTTPException):
        if exc.status_code == 405:
            return JSONResponse(
                status_code=405, content={"error": "Method not allowed"}, headers=exc.headers
            )
        return JSONResponse(
            status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers
        )

    @app.exception_handler(RequestValidationError)
    async def _body_error(request, exc: RequestValidationError):
        logger.info("Rejected request body at %s", [e.get("loc") for e in exc.errors()])
        return JSONResponse(status_code=400, content={"error": "Invalid request body."})

    @app.get("/essay")
    def essay_health() -> Dict[str, Any]:
        """Liveness probe. Never touches the completion service."""
        return {"ok": True, "route": "essay", "hint": HEALTH_HINT}

    # sync def: FastAPI runs it in a threadpool, the completion call blocks
    @app.post("/essay")
    def essay(body: Optional[EssayRequest] = Body(default=None)):
        payload = body or EssayRequest()
        try:
            request = StageRequest(
                stage=payload.stage,
                answers=tuple(payload.answers or ()),
                tone=payload.tone,
                max_words=payload.max_words,
            )
            validate_request(request)
            result = run_stage(request, make_context())
        except StoryloomError as exc:
            if isinstance(exc, ValidationError):
                logger.info("essay API rejected request: %s", exc.message)
            else:
                logger.error("essay API error (%s): %s", exc.kind, exc.message)
            return error_response(exc)
        except Exception as exc:
            logger.exception("essay API error")
            return JSONResponse(status_code=500, content={"error": "Server error", "detail": str(exc)})
        return result.to_json()

    return app


app = create_app()


__all__ = ["app", "create_app", "error_response", "default_context_factory", "HEALTH_HINT"]
