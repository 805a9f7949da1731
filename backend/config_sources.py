from __future__ import annotations

from typing import Final

from backend.config_base import (
    _cap_float,
    _cap_int,
    _get_env_float,
    _get_env_int,
    _get_env_str,
    _get_env_url,
    _parse_env_csv_tokens,
)

# ============================================================
# FUENTES (orden de prioridad + credenciales)
# ============================================================

_DEFAULT_SOURCE_ORDER: Final[str] = "aftercredits,wikipedia,mediastinger,tmdb"

SOURCE_ORDER: list[str] = _parse_env_csv_tokens(
    _get_env_str("SOURCE_ORDER", _DEFAULT_SOURCE_ORDER) or _DEFAULT_SOURCE_ORDER
)

# Opcional: sin API key la fuente TMDB es un no-op.
TMDB_API_KEY: str | None = _get_env_str("TMDB_APIKEY", None) or _get_env_str("TMDB_API_KEY", None)


# ============================================================
# SCRAPER HTTP (timeouts + retries de transporte + UA)
# ============================================================

SCRAPER_HTTP_TIMEOUT_SECONDS: float = _cap_float(
    "SCRAPER_HTTP_TIMEOUT_SECONDS",
    _get_env_float("SCRAPER_HTTP_TIMEOUT_SECONDS", 5.0),
    min_v=0.5,
    max_v=60.0,
)

# Retries SOLO a nivel urllib3 (429/5xx). El resolvedor nunca reintenta una fuente.
SCRAPER_HTTP_RETRY_TOTAL: int = _cap_int(
    "SCRAPER_HTTP_RETRY_TOTAL",
    _get_env_int("SCRAPER_HTTP_RETRY_TOTAL", 3),
    min_v=0,
    max_v=10,
)
SCRAPER_HTTP_RETRY_BACKOFF_FACTOR: float = _cap_float(
    "SCRAPER_HTTP_RETRY_BACKOFF_FACTOR",
    _get_env_float("SCRAPER_HTTP_RETRY_BACKOFF_FACTOR", 0.3),
    min_v=0.0,
)

SCRAPER_HTTP_USER_AGENT: str = (
    _get_env_str("SCRAPER_HTTP_USER_AGENT", "Stremio-AfterCredits-Scraper/1.0") or "Stremio-AfterCredits-Scraper/1.0"
)

SCRAPER_CB_FAILURE_THRESHOLD: int = _cap_int(
    "SCRAPER_CB_FAILURE_THRESHOLD",
    _get_env_int("SCRAPER_CB_FAILURE_THRESHOLD", 5),
    min_v=1,
    max_v=50,
)
SCRAPER_CB_OPEN_SECONDS: float = _cap_float(
    "SCRAPER_CB_OPEN_SECONDS",
    _get_env_float("SCRAPER_CB_OPEN_SECONDS", 30.0),
    min_v=0.1,
    max_v=3600.0,
)


# ============================================================
# ENDPOINTS (validados: http(s) + host, sin "/" final)
# ============================================================

AFTERCREDITS_BASE_URL: str = _get_env_url("AFTERCREDITS_BASE_URL", "https://aftercredits.com")
MEDIASTINGER_BASE_URL: str = _get_env_url("MEDIASTINGER_BASE_URL", "http://www.mediastinger.com")

WIKIPEDIA_BASE_URL: str = _get_env_url("WIKIPEDIA_BASE_URL", "https://en.wikipedia.org")
WIKIPEDIA_LIST_URL: str = _get_env_url(
    "WIKIPEDIA_LIST_URL",
    f"{WIKIPEDIA_BASE_URL}/wiki/List_of_films_with_post-credits_scenes",
)

TMDB_API_BASE_URL: str = _get_env_url("TMDB_API_BASE_URL", "https://api.themoviedb.org/3")
TMDB_WEB_BASE_URL: str = _get_env_url("TMDB_WEB_BASE_URL", "https://www.themoviedb.org")

CINEMETA_BASE_URL: str = _get_env_url("CINEMETA_BASE_URL", "https://cinemeta-live.strem.io")


# ============================================================
# WIKIPEDIA (caché interna de la página completa)
# ============================================================

WIKIPEDIA_PAGE_TTL_SECONDS: int = _cap_int(
    "WIKIPEDIA_PAGE_TTL_SECONDS",
    _get_env_int("WIKIPEDIA_PAGE_TTL_SECONDS", 60 * 60 * 24),
    min_v=60,
    max_v=60 * 60 * 24 * 30,
)
