from __future__ import annotations

"""
backend/http_client.py

Cliente HTTP compartido por todas las fuentes (scrapers HTML y APIs JSON).

Principios:
- Una única requests.Session (lazy-init thread-safe) con pooling + Retry de urllib3.
  Los reintentos (429/5xx, errores de conexión) se hacen SOLO aquí.
- HttpHelper es la costura por fuente: lleva el nombre de la fuente (clave del
  circuit breaker y de las métricas) y su timeout.
- Errores normalizados:
    * TransportError: red/timeout/no-2xx/breaker abierto
    * SchemaError:    el cuerpo no es JSON válido (get_json)
- Métricas thread-safe por fuente: get_http_metrics_snapshot() / log_http_metrics_summary().

Los tests sustituyen HttpHelper por un doble con get_text/get_json.
"""

import threading
from collections.abc import Mapping

import requests
from requests.adapters import HTTPAdapter
from requests.exceptions import RequestException
from urllib3.util.retry import Retry

from backend import logger
from backend.config_base import HTTP_DEBUG
from backend.config_sources import (
    SCRAPER_CB_FAILURE_THRESHOLD,
    SCRAPER_CB_OPEN_SECONDS,
    SCRAPER_HTTP_RETRY_BACKOFF_FACTOR,
    SCRAPER_HTTP_RETRY_TOTAL,
    SCRAPER_HTTP_TIMEOUT_SECONDS,
    SCRAPER_HTTP_USER_AGENT,
)
from backend.errors import SchemaError, TransportError
from backend.resilience import CircuitBreaker

# ============================================================
# HTTP session + retry (lazy-init thread-safe)
# ============================================================

_SESSION: requests.Session | None = None
_SESSION_LOCK = threading.Lock()


def _get_session() -> requests.Session:
    """
    Singleton requests.Session con retries y pooling.

    - Retry de urllib3 gestiona 429/5xx y errores de conexión (best-effort).
    - raise_on_status=False: tras agotar retries devolvemos la respuesta y
      HttpHelper la convierte en TransportError con su status.
    """
    global _SESSION
    if _SESSION is not None:
        return _SESSION

    with _SESSION_LOCK:
        if _SESSION is not None:
            return _SESSION

        session = requests.Session()

        retries = Retry(
            total=int(SCRAPER_HTTP_RETRY_TOTAL),
            backoff_factor=float(SCRAPER_HTTP_RETRY_BACKOFF_FACTOR),
            status_forcelist=(429, 500, 502, 503, 504),
            allowed_methods=("GET",),
            raise_on_status=False,
            respect_retry_after_header=True,
        )
        adapter = HTTPAdapter(max_retries=retries, pool_connections=8, pool_maxsize=8)
        session.mount("https://", adapter)
        session.mount("http://", adapter)

        session.headers.update(
            {
                "User-Agent": str(SCRAPER_HTTP_USER_AGENT).strip() or "Stremio-AfterCredits-Scraper/1.0",
                "Accept": "text/html,application/json,text/plain,*/*",
            }
        )

        _SESSION = session
        return session


# ============================================================
# CIRCUIT BREAKER compartido (clave = nombre de fuente)
# ============================================================

_BREAKER = CircuitBreaker(
    failure_threshold=int(SCRAPER_CB_FAILURE_THRESHOLD),
    open_seconds=float(SCRAPER_CB_OPEN_SECONDS),
)


def get_breaker() -> CircuitBreaker:
    return _BREAKER


# ============================================================
# MÉTRICAS (por fuente, thread-safe)
# ============================================================

_METRICS_LOCK = threading.Lock()
_METRICS: dict[str, dict[str, int]] = {}

_METRIC_KEYS: tuple[str, ...] = (
    "requests",
    "ok",
    "http_errors",
    "transport_errors",
    "circuit_rejected",
    "schema_errors",
)


def _m_inc(source: str, key: str, delta: int = 1) -> None:
    with _METRICS_LOCK:
        bucket = _METRICS.setdefault(source, {k: 0 for k in _METRIC_KEYS})
        bucket[key] = int(bucket.get(key, 0)) + int(delta)


def get_http_metrics_snapshot() -> dict[str, dict[str, int]]:
    with _METRICS_LOCK:
        return {src: dict(bucket) for src, bucket in _METRICS.items()}


def reset_http_metrics() -> None:
    with _METRICS_LOCK:
        _METRICS.clear()


def log_http_metrics_summary(*, force: bool = False) -> None:
    """Resumen compacto por fuente (respeta SILENT/DEBUG salvo force=True)."""
    snap = get_http_metrics_snapshot()
    if not snap and not force:
        return
    if logger.is_silent_mode() and not logger.is_debug_mode() and not force:
        return

    lines = ["[HTTP][METRICS] summary"]
    if not snap:
        lines.append("  (no requests)")
    for source in sorted(snap):
        counters = ", ".join(f"{k}={v}" for k, v in snap[source].items() if v)
        lines.append(f"  {source.ljust(14)} : {counters or 'all zeros'}")

    for ln in lines:
        logger.info(ln, always=force)


# ============================================================
# HttpHelper
# ============================================================


class HttpHelper:
    """
    Acceso HTTP de una fuente concreta.

    Args:
        name: nombre de la fuente (breaker + métricas + logs).
        timeout: segundos por petición (por defecto SCRAPER_HTTP_TIMEOUT_SECONDS).
        headers: cabeceras fijas de la fuente (p.ej. Authorization de TMDB).
    """

    def __init__(
        self,
        name: str,
        *,
        timeout: float | None = None,
        headers: Mapping[str, str] | None = None,
        session: requests.Session | None = None,
        breaker: CircuitBreaker | None = None,
    ) -> None:
        self.name = name
        self.timeout = float(timeout if timeout is not None else SCRAPER_HTTP_TIMEOUT_SECONDS)
        self._headers = dict(headers or {})
        self._session = session
        self._breaker = breaker if breaker is not None else _BREAKER

    def _dbg(self, msg: str) -> None:
        if HTTP_DEBUG:
            logger.debug_ctx(f"HTTP:{self.name}", msg)

    def _get(
        self,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> requests.Response:
        allowed, reason = self._breaker.allow(self.name)
        if not allowed:
            _m_inc(self.name, "circuit_rejected")
            self._dbg(f"circuit {reason} -> skip {url}")
            raise TransportError(f"{self.name}: circuit breaker {reason}", url=url)

        merged = dict(self._headers)
        if headers:
            merged.update(headers)

        session = self._session or _get_session()
        _m_inc(self.name, "requests")
        self._dbg(f"GET {url}")

        try:
            resp = session.get(url, params=params, headers=merged or None, timeout=self.timeout)
        except RequestException as exc:
            _m_inc(self.name, "transport_errors")
            self._breaker.on_failure(self.name, error=repr(exc))
            raise TransportError(f"{self.name}: request failed: {exc!r}", url=url) from exc

        status = int(resp.status_code)
        if status == 429 or status >= 500:
            _m_inc(self.name, "http_errors")
            self._breaker.on_failure(self.name, error=f"status={status}")
            raise TransportError(f"{self.name}: HTTP {status}", url=url, status_code=status)

        # 4xx: el servidor responde, no cuenta para el breaker
        self._breaker.on_success(self.name)
        if not 200 <= status < 300:
            _m_inc(self.name, "http_errors")
            raise TransportError(f"{self.name}: HTTP {status}", url=url, status_code=status)

        _m_inc(self.name, "ok")
        self._dbg(f"<- {status} {url}")
        return resp

    def get_text(
        self,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> str:
        return self._get(url, params=params, headers=headers).text

    def get_json(
        self,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> object:
        resp = self._get(url, params=params, headers=headers)
        try:
            return resp.json()
        except ValueError as exc:
            _m_inc(self.name, "schema_errors")
            raise SchemaError(f"{self.name}: invalid JSON from {url}", source=self.name) from exc
