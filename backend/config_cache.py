from __future__ import annotations

from pathlib import Path
from typing import Final

from backend.config_base import (
    DATA_DIR,
    PROJECT_DIR,
    _cap_int,
    _get_env_int,
    _get_env_str,
    _resolve_path,
)

# ============================================================
# RESULT CACHE (backend + conexión + TTL)
# ============================================================
# La validación fatal (backend desconocido, redis sin URL) ocurre en
# backend.result_cache.create_cache() para poder lanzar ConfigurationError.

CACHE_BACKEND: str = (_get_env_str("DATABASE_TYPE", "sqlite") or "sqlite").strip().lower()

SQLITE_PATH: Final[Path] = _resolve_path(
    _get_env_str("SQLITE_PATH", str(DATA_DIR / "cache.sqlite")) or str(DATA_DIR / "cache.sqlite"),
    base=PROJECT_DIR,
)

REDIS_URL: str | None = _get_env_str("REDIS_URL", None)

CACHE_TTL_SECONDS: int = _cap_int(
    "CACHE_TTL_SECONDS",
    _get_env_int("CACHE_TTL_SECONDS", 60 * 60 * 24),
    min_v=60,
    max_v=60 * 60 * 24 * 365,
)

CACHE_NAMESPACE_RESULTS: Final[str] = "results"
CACHE_NAMESPACE_TMDB_IDS: Final[str] = "tmdb"
