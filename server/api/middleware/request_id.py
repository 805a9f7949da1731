from __future__ import annotations

"""
server/api/middleware/request_id.py

Middleware:
- Inyecta/propaga X-Request-ID (el del cliente solo si es razonable)
- Una línea de log estructurada por request (ruta, status, duración)
- Sondas (/health, /metrics) a nivel DEBUG para no tapar el tráfico de Stremio
- Contador http_requests_total
"""

import re
import time
import uuid
from collections.abc import Awaitable, Callable

from fastapi import Request, Response

from server.api.logging_config import configure_logging
from server.api.services import metrics
from server.api.settings import Settings

CallNext = Callable[[Request], Awaitable[Response]]
Middleware = Callable[[Request, CallNext], Awaitable[Response]]

_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._-]{1,128}$")
_PROBE_PATHS = frozenset({"/health", "/metrics"})


def _incoming_request_id(request: Request) -> str:
    raw = (request.headers.get("x-request-id") or "").strip()
    return raw if _REQUEST_ID_RE.match(raw) else uuid.uuid4().hex


def _route_label(path: str) -> str:
    if path == "/manifest.json":
        return "manifest"
    if path.startswith("/stream/"):
        return "stream"
    if path in _PROBE_PATHS:
        return "probe"
    return "other"


def build_request_id_middleware(settings: Settings) -> Middleware:
    logger = configure_logging(settings)

    async def middleware(request: Request, call_next: CallNext) -> Response:
        start = time.monotonic()
        req_id = _incoming_request_id(request)
        request.state.request_id = req_id
        path = request.url.path
        route = _route_label(path)

        metrics.inc("http_requests_total", 1)

        status_code = 500
        try:
            response = await call_next(request)
            status_code = int(response.status_code)
            response.headers["X-Request-ID"] = req_id
            return response
        finally:
            log = logger.debug if route == "probe" else logger.info
            log(
                "request",
                extra={
                    "request_id": req_id,
                    "route": route,
                    "method": request.method,
                    "path": path,
                    "status": status_code,
                    "duration_ms": int((time.monotonic() - start) * 1000),
                },
            )

    return middleware
