from __future__ import annotations

"""
backend/scraper_registry.py

Tabla cerrada nombre -> fábrica de fuente. SOURCE_ORDER se valida aquí al
arrancar: un nombre desconocido es ConfigurationError (fatal antes de servir).
"""

from collections.abc import Callable, Iterable, Sequence
from enum import Enum

from backend import logger
from backend.aftercredits_scraper import AfterCreditsScraper
from backend.config_cache import CACHE_NAMESPACE_TMDB_IDS
from backend.errors import ConfigurationError
from backend.mediastinger_scraper import MediaStingerScraper
from backend.result_cache import ResultCache, create_cache
from backend.scraper_base import SourceAdapter
from backend.tmdb_scraper import TmdbScraper
from backend.wikipedia_scraper import WikipediaScraper


class SourceName(str, Enum):
    AFTERCREDITS = "aftercredits"
    WIKIPEDIA = "wikipedia"
    MEDIASTINGER = "mediastinger"
    TMDB = "tmdb"


CacheFactory = Callable[[str], ResultCache]


def parse_source_order(tokens: Iterable[str]) -> list[SourceName]:
    """
    ["aftercredits", "tmdb"] -> [SourceName.AFTERCREDITS, SourceName.TMDB]

    Duplicados se ignoran (se mantiene la primera aparición). Lista vacía o
    nombre desconocido -> ConfigurationError.
    """
    out: list[SourceName] = []
    unknown: list[str] = []
    for raw in tokens:
        token = str(raw).strip().lower()
        if not token:
            continue
        try:
            name = SourceName(token)
        except ValueError:
            unknown.append(token)
            continue
        if name not in out:
            out.append(name)

    if unknown:
        valid = ", ".join(s.value for s in SourceName)
        raise ConfigurationError(f"Unknown source(s) in SOURCE_ORDER: {', '.join(unknown)} (valid: {valid})")
    if not out:
        raise ConfigurationError("SOURCE_ORDER is empty")
    return out


def build_sources(
    order: Sequence[SourceName],
    *,
    cache_factory: CacheFactory = create_cache,
    tmdb_api_key: str | None = None,
) -> list[SourceAdapter]:
    factories: dict[SourceName, Callable[[], SourceAdapter]] = {
        SourceName.AFTERCREDITS: AfterCreditsScraper,
        SourceName.WIKIPEDIA: WikipediaScraper,
        SourceName.MEDIASTINGER: MediaStingerScraper,
        SourceName.TMDB: lambda: TmdbScraper(
            api_key=tmdb_api_key,
            id_cache=cache_factory(CACHE_NAMESPACE_TMDB_IDS),
        ),
    }

    sources = [factories[name]() for name in order]
    logger.info(f"[SOURCES] order: {' -> '.join(s.name for s in sources)}")
    return sources
