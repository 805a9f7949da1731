# lectura de env vars + defaults
from __future__ import annotations

import os
from dataclasses import dataclass

_TRUE_SET = {"1", "true", "t", "yes", "y", "on"}


def _env_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    val = raw.strip()
    return val if val else default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    val = raw.strip().lower()
    if not val:
        return default
    return val in _TRUE_SET


@dataclass(frozen=True)
class Settings:
    """
    Settings centralizados del servidor del add-on (env vars).

    Notas importantes:
    - CORS: los clientes Stremio llaman cross-origin; por defecto "*".
      Si CORS_ORIGINS="*" -> allow_credentials=False para compatibilidad browser.
    - PORT tiene prioridad sobre API_PORT (PaaS que inyectan PORT).
    - API_RELOAD: default "0" (seguro para producción).
    """

    log_level: str

    cors_origins_raw: str
    cors_allow_credentials: bool

    gzip_min_size: int

    host: str = "0.0.0.0"
    port: int = 3000
    reload: bool = False

    addon_id: str = "community.aftercredits"
    addon_version: str = "1.0.0"
    addon_name: str = "AfterCredits"
    addon_description: str = "Are there mid-credits or after-credits scenes? Checks fan sites, Wikipedia and TMDB."

    def cors_allow_origins(self) -> list[str]:
        raw = self.cors_origins_raw.strip()
        if raw == "*":
            return ["*"]
        parts = [p.strip() for p in raw.split(",")]
        return [p for p in parts if p]

    @staticmethod
    def from_env() -> "Settings":
        cors_raw = _env_str("CORS_ORIGINS", "*")
        allow_origins = ["*"] if cors_raw.strip() == "*" else [p.strip() for p in cors_raw.split(",") if p.strip()]

        # Regla browser: "*" + credentials=True no es válido
        cors_allow_credentials = allow_origins != ["*"]

        return Settings(
            log_level=_env_str("LOG_LEVEL", "INFO").upper(),
            cors_origins_raw=cors_raw,
            cors_allow_credentials=cors_allow_credentials,
            gzip_min_size=_env_int("GZIP_MIN_SIZE", 800),
            host=_env_str("API_HOST", "0.0.0.0"),
            port=_env_int("PORT", _env_int("API_PORT", 3000)),
            reload=_env_bool("API_RELOAD", False),
            addon_id=_env_str("ADDON_ID", "community.aftercredits"),
            addon_version=_env_str("ADDON_VERSION", "1.0.0"),
            addon_name=_env_str("ADDON_NAME", "AfterCredits"),
        )
