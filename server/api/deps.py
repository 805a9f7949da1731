from __future__ import annotations

import threading

from backend.resolver import StingerResolver, build_default_resolver
from server.api.settings import Settings

_SETTINGS = Settings.from_env()

_RESOLVER: StingerResolver | None = None
_RESOLVER_LOCK = threading.Lock()


def get_settings() -> Settings:
    return _SETTINGS


def get_resolver() -> StingerResolver:
    """
    Resolvedor compartido del proceso (lazy-init thread-safe).

    Raises:
        ConfigurationError: SOURCE_ORDER o backend de caché inválidos.
    """
    global _RESOLVER
    if _RESOLVER is not None:
        return _RESOLVER

    with _RESOLVER_LOCK:
        if _RESOLVER is None:
            _RESOLVER = build_default_resolver()
        return _RESOLVER
