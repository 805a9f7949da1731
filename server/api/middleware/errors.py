# exception handlers (error_id)
from __future__ import annotations

import uuid
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from server.api.logging_config import configure_logging
from server.api.services import metrics
from server.api.settings import Settings

ExceptionHandler = Callable[[Request, Exception], Awaitable[JSONResponse]]


def _error_response(request: Request, *, status_code: int, detail: str, error_id: str) -> JSONResponse:
    payload: dict[str, Any] = {"detail": detail, "error_id": error_id}
    req_id = getattr(request.state, "request_id", None)
    if isinstance(req_id, str) and req_id:
        payload["request_id"] = req_id
    return JSONResponse(status_code=status_code, content=payload)


def build_exception_handler(settings: Settings) -> ExceptionHandler:
    """
    500 genérico con error_id correlacionable en logs.

    El cuerpo nunca incluye el mensaje de la excepción (puede contener URLs
    internas o credenciales de fuentes).
    """
    logger = configure_logging(settings)

    async def handler(request: Request, exc: Exception) -> JSONResponse:
        error_id = uuid.uuid4().hex
        logger.exception(
            "unhandled_exception",
            extra={
                "error_id": error_id,
                "request_id": getattr(request.state, "request_id", None),
                "path": request.url.path,
            },
        )
        metrics.inc("http_errors_5xx_total", 1)
        return _error_response(request, status_code=500, detail="Internal Server Error", error_id=error_id)

    return handler


def build_configuration_error_handler(settings: Settings) -> ExceptionHandler:
    """ConfigurationError al construir el resolvedor en caliente -> 503."""
    logger = configure_logging(settings)

    async def handler(request: Request, exc: Exception) -> JSONResponse:
        error_id = uuid.uuid4().hex
        logger.error(
            "configuration_error: %s",
            exc,
            extra={"error_id": error_id, "path": request.url.path},
        )
        metrics.inc("http_errors_5xx_total", 1)
        return _error_response(request, status_code=503, detail="Service misconfigured", error_id=error_id)

    return handler

