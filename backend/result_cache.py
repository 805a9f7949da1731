from __future__ import annotations

"""
backend/result_cache.py

Result Cache: clave-valor con TTL, un namespace por caché lógica.

Namespaces usados:
    - "results": imdb id -> ScrapeResult.to_dict()
    - "tmdb":    imdb id -> id interno de TMDB (int)

Contrato (ResultCache):
    get(key) -> valor JSON | None     (None = miss o expirado, indistinguibles)
    set(key, value, ttl=None)         (ttl por defecto = el del namespace)
    clear()                           (solo tests / CLI)

Backends intercambiables:
    - SqliteResultCache: fichero local, una tabla por namespace.
    - RedisResultCache:  redis-py, claves "<namespace>:<key>" con EX.
    - MemoryResultCache: dict + lock (tests / desarrollo).

Política de errores del backend: se loguean y se comportan como miss / no-op.
La caché nunca rompe el pipeline. La validación de configuración SÍ es fatal
(ConfigurationError en create_cache).
"""

import json
import re
import sqlite3
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Protocol

import redis

from backend import logger
from backend.config_cache import CACHE_BACKEND, CACHE_TTL_SECONDS, REDIS_URL, SQLITE_PATH
from backend.errors import ConfigurationError

JsonValue = object

_SUPPORTED_BACKENDS: tuple[str, ...] = ("sqlite", "redis", "memory")
_NAMESPACE_RE = re.compile(r"^[A-Za-z0-9_]+$")


class ResultCache(Protocol):
    namespace: str

    def get(self, key: str) -> JsonValue | None: ...

    def set(self, key: str, value: JsonValue, ttl: float | None = None) -> None: ...

    def clear(self) -> None: ...


# ============================================================
#                  MÉTRICAS (thread-safe)
# ============================================================

_METRICS_LOCK = threading.Lock()
_METRICS: dict[str, int] = {
    "hits": 0,
    "misses": 0,
    "expired": 0,
    "writes": 0,
    "errors": 0,
}


def _m_inc(key: str, delta: int = 1) -> None:
    with _METRICS_LOCK:
        _METRICS[key] = int(_METRICS.get(key, 0)) + int(delta)


def get_cache_metrics_snapshot() -> dict[str, int]:
    with _METRICS_LOCK:
        return dict(_METRICS)


def reset_cache_metrics() -> None:
    with _METRICS_LOCK:
        for k in list(_METRICS.keys()):
            _METRICS[k] = 0


def _validate_namespace(namespace: str) -> str:
    ns = (namespace or "").strip()
    if not _NAMESPACE_RE.match(ns):
        raise ConfigurationError(f"Invalid cache namespace: {namespace!r}")
    return ns


def _encode(value: JsonValue) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def _decode(namespace: str, key: str, payload: str) -> JsonValue | None:
    try:
        return json.loads(payload)
    except ValueError:
        _m_inc("errors")
        logger.warning(f"[CACHE:{namespace}] corrupt entry for {key!r}; treating as miss")
        return None


# ============================================================
# MEMORY
# ============================================================


class MemoryResultCache:
    def __init__(self, namespace: str, ttl: float, *, clock: Callable[[], float] = time.monotonic) -> None:
        self.namespace = _validate_namespace(namespace)
        self.ttl = float(ttl)
        self._clock = clock
        self._lock = threading.Lock()
        self._data: dict[str, tuple[str, float]] = {}

    def get(self, key: str) -> JsonValue | None:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                _m_inc("misses")
                return None
            payload, expires_at = entry
            if self._clock() >= expires_at:
                self._data.pop(key, None)
                _m_inc("expired")
                _m_inc("misses")
                return None
        _m_inc("hits")
        return _decode(self.namespace, key, payload)

    def set(self, key: str, value: JsonValue, ttl: float | None = None) -> None:
        expires_at = self._clock() + float(ttl if ttl is not None else self.ttl)
        with self._lock:
            self._data[key] = (_encode(value), expires_at)
        _m_inc("writes")

    def clear(self) -> None:
        with self._lock:
            self._data.clear()


# ============================================================
# SQLITE
# ============================================================


class SqliteResultCache:
    """
    Una tabla por namespace: (key TEXT PRIMARY KEY, value TEXT, expires_at REAL).

    - Conexión por llamada (segura entre hilos) + lock para serializar escrituras.
    - Las filas expiradas se ignoran en lectura y se borran de forma perezosa.
    """

    def __init__(
        self,
        path: Path | str,
        namespace: str,
        ttl: float,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.namespace = _validate_namespace(namespace)
        self.path = Path(path)
        self.ttl = float(ttl)
        self._clock = clock
        self._lock = threading.Lock()
        self._table = f"cache_{self.namespace}"
        self._init_schema()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(str(self.path), timeout=5.0)
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def _init_schema(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self._lock, self._connect() as conn:
                conn.execute(
                    f"CREATE TABLE IF NOT EXISTS {self._table} "
                    "(key TEXT PRIMARY KEY, value TEXT NOT NULL, expires_at REAL NOT NULL)"
                )
        except (OSError, sqlite3.Error) as exc:
            _m_inc("errors")
            logger.error(f"[CACHE:{self.namespace}] cannot initialise sqlite at {self.path}: {exc!r}")

    def get(self, key: str) -> JsonValue | None:
        now = self._clock()
        try:
            with self._lock, self._connect() as conn:
                row = conn.execute(f"SELECT value, expires_at FROM {self._table} WHERE key = ?", (key,)).fetchone()
                if row is not None and float(row[1]) <= now:
                    conn.execute(f"DELETE FROM {self._table} WHERE key = ?", (key,))
                    _m_inc("expired")
                    row = None
        except sqlite3.Error as exc:
            _m_inc("errors")
            logger.warning(f"[CACHE:{self.namespace}] read failed for {key!r}: {exc!r}")
            return None

        if row is None:
            _m_inc("misses")
            return None
        _m_inc("hits")
        return _decode(self.namespace, key, str(row[0]))

    def set(self, key: str, value: JsonValue, ttl: float | None = None) -> None:
        expires_at = self._clock() + float(ttl if ttl is not None else self.ttl)
        try:
            with self._lock, self._connect() as conn:
                conn.execute(
                    f"INSERT OR REPLACE INTO {self._table} (key, value, expires_at) VALUES (?, ?, ?)",
                    (key, _encode(value), expires_at),
                )
        except sqlite3.Error as exc:
            _m_inc("errors")
            logger.warning(f"[CACHE:{self.namespace}] write failed for {key!r}: {exc!r}")
            return
        _m_inc("writes")

    def clear(self) -> None:
        try:
            with self._lock, self._connect() as conn:
                conn.execute(f"DELETE FROM {self._table}")
        except sqlite3.Error as exc:
            _m_inc("errors")
            logger.warning(f"[CACHE:{self.namespace}] clear failed: {exc!r}")


# ============================================================
# REDIS
# ============================================================


class RedisResultCache:
    """Claves "<namespace>:<key>"; la expiración la aplica Redis (SET ... EX)."""

    def __init__(
        self,
        url: str | None,
        namespace: str,
        ttl: float,
        *,
        client: redis.Redis | None = None,
    ) -> None:
        self.namespace = _validate_namespace(namespace)
        self.ttl = float(ttl)
        if client is not None:
            self._client = client
        elif url:
            self._client = redis.Redis.from_url(url, decode_responses=True)
        else:
            raise ConfigurationError("Redis cache backend requires REDIS_URL")

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def get(self, key: str) -> JsonValue | None:
        try:
            payload = self._client.get(self._key(key))
        except redis.RedisError as exc:
            _m_inc("errors")
            logger.warning(f"[CACHE:{self.namespace}] redis read failed for {key!r}: {exc!r}")
            return None

        if payload is None:
            _m_inc("misses")
            return None
        _m_inc("hits")
        return _decode(self.namespace, key, str(payload))

    def set(self, key: str, value: JsonValue, ttl: float | None = None) -> None:
        seconds = max(1, int(ttl if ttl is not None else self.ttl))
        try:
            self._client.set(self._key(key), _encode(value), ex=seconds)
        except redis.RedisError as exc:
            _m_inc("errors")
            logger.warning(f"[CACHE:{self.namespace}] redis write failed for {key!r}: {exc!r}")
            return
        _m_inc("writes")

    def clear(self) -> None:
        try:
            cursor = 0
            pattern = f"{self.namespace}:*"
            while True:
                cursor, keys = self._client.scan(cursor=cursor, match=pattern)
                if keys:
                    self._client.delete(*keys)
                if cursor == 0:
                    break
        except redis.RedisError as exc:
            _m_inc("errors")
            logger.warning(f"[CACHE:{self.namespace}] redis clear failed: {exc!r}")


# ============================================================
# FACTORY
# ============================================================


def create_cache(
    namespace: str,
    ttl: float | None = None,
    *,
    backend: str | None = None,
    sqlite_path: Path | str | None = None,
    redis_url: str | None = None,
) -> ResultCache:
    """
    Crea la caché del backend configurado (DATABASE_TYPE).

    Raises:
        ConfigurationError: backend desconocido o redis sin URL.
    """
    kind = (backend or CACHE_BACKEND or "").strip().lower()
    effective_ttl = float(ttl if ttl is not None else CACHE_TTL_SECONDS)

    if kind not in _SUPPORTED_BACKENDS:
        raise ConfigurationError(
            f"Unknown cache backend {kind!r} (expected one of: {', '.join(_SUPPORTED_BACKENDS)})"
        )

    logger.debug_ctx("CACHE", f"create_cache namespace={namespace} backend={kind} ttl={effective_ttl:.0f}s")

    if kind == "memory":
        return MemoryResultCache(namespace, effective_ttl)
    if kind == "redis":
        return RedisResultCache(redis_url or REDIS_URL, namespace, effective_ttl)
    return SqliteResultCache(sqlite_path or SQLITE_PATH, namespace, effective_ttl)
