"""FastAPI application factory.

- Assistant API: /api/v1/assistant/*
- WebSocket:     /ws/assistant/{session_id}
- healthz/metrics/docs

Auth and device registry endpoints live in other services; this app only
serves the assistant to the desktop agent on the local machine.

Every error leaves the app as ``{"error": CODE, "message": text}``.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from golpac_ai.shared.errors import (
    AssistantError,
    ConfigError,
    NotFoundError,
    ValidationError,
)
from golpac_ai.shared.logging.error_handler import log_structured_error

if TYPE_CHECKING:
    from contextlib import AbstractAsyncContextManager

logger = logging.getLogger(__name__)

# Most specific class first
_STATUS_BY_ERROR: tuple[tuple[type[AssistantError], int], ...] = (
    (NotFoundError, 404),
    (ValidationError, 422),
)

_HTTP_CODES = {
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    422: "VALIDATION",
}


def _error_body(code: str, message: str) -> dict[str, str]:
    return {"error": code, "message": message}


def _origins_from_env() -> list[str]:
    return [o.strip() for o in os.environ.get("CORS_ORIGINS", "").split(",") if o.strip()]


def create_app(
    *,
    cors_origins: list[str] | None = None,
    lifespan: Callable[[FastAPI], AbstractAsyncContextManager[None]] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        cors_origins: Allowed CORS origins. Falls back to CORS_ORIGINS env var.
        lifespan: Async context manager factory for startup/shutdown lifecycle.

    Returns:
        Configured FastAPI application; routers are mounted by the caller.
    """
    app = FastAPI(
        title="Golpac AI Assistant",
        description="Rule-based troubleshooting assistant for the Golpac Support agent",
        version="0.1.0",
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    origins = cors_origins or _origins_from_env()
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "DELETE"],
            allow_headers=["Content-Type"],
        )

    @app.exception_handler(AssistantError)
    async def _assistant_error(request: Request, exc: AssistantError) -> JSONResponse:
        if isinstance(exc, ConfigError):
            # Config problems are operator-facing; the chat only learns that it failed.
            log_structured_error(logger, exc, context={"path": request.url.path})
            return JSONResponse(
                status_code=500,
                content=_error_body(exc.code, "Assistant configuration is invalid"),
            )
        status = next((s for cls, s in _STATUS_BY_ERROR if isinstance(exc, cls)), 500)
        return JSONResponse(status_code=status, content=_error_body(exc.code, str(exc)))

    @app.exception_handler(RequestValidationError)
    async def _request_validation(_: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        message = str(errors[0].get("msg", "Invalid request")) if errors else "Invalid request"
        return JSONResponse(status_code=422, content=_error_body("VALIDATION", message))

    @app.exception_handler(StarletteHTTPException)
    async def _http_exception(_: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(
                _HTTP_CODES.get(exc.status_code, "HTTP_ERROR"),
                exc.detail or f"HTTP {exc.status_code}",
            ),
        )

    @app.get("/healthz", tags=["system"])
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/metrics", tags=["system"], include_in_schema=False)
    async def metrics() -> Response:
        from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app
