from __future__ import annotations

"""
backend/resolver.py

Pipeline de resolución (cache-aside + fan-out secuencial).

resolve(canonical_id):
    1) Result Cache: hit -> se devuelve tal cual (sin lookup ni fuentes).
    2) Miss -> Metadata Lookup; None -> no encontrado.
    3) Fuentes en SOURCE_ORDER, de una en una:
         Answered(result)  -> se escribe en caché (una vez) y se devuelve
         NoAnswer / Failed -> siguiente fuente (Failed se loguea con fuente + query)
    4) Ninguna responde -> None (NO se cachea: "aún no se sabe").

Un resultado con stingers vacío es una respuesta válida ("comprobado, no hay")
y se cachea como cualquier otra.

Nunca hay fan-out concurrente ni reintentos aquí: como mucho un intento por
fuente y resolución. Los reintentos de red viven en backend/http_client.py.
"""

import threading
from collections.abc import Callable, Sequence
from typing import Optional

from backend import logger
from backend.config_cache import CACHE_NAMESPACE_RESULTS
from backend.config_sources import SOURCE_ORDER, TMDB_API_KEY
from backend.errors import SchemaError
from backend.metadata_lookup import MetadataLookup, clean_canonical_id
from backend.models import Answered, Failed, NoAnswer, ScrapeResult, SearchQuery, SourceOutcome
from backend.result_cache import ResultCache, create_cache
from backend.scraper_base import SourceAdapter
from backend.scraper_registry import build_sources, parse_source_order

LookupFn = Callable[[str], Optional[SearchQuery]]


# ============================================================
#                  MÉTRICAS (thread-safe)
# ============================================================

_METRICS_LOCK = threading.Lock()
_METRICS: dict[str, int] = {
    "resolutions": 0,
    "cache_hits": 0,
    "cache_misses": 0,
    "lookup_failures": 0,
    "not_found": 0,
}


def _m_inc(key: str, delta: int = 1) -> None:
    with _METRICS_LOCK:
        _METRICS[key] = int(_METRICS.get(key, 0)) + int(delta)


def get_resolver_metrics_snapshot() -> dict[str, int]:
    with _METRICS_LOCK:
        return dict(_METRICS)


def reset_resolver_metrics() -> None:
    with _METRICS_LOCK:
        for k in list(_METRICS.keys()):
            if k.startswith(("answered_", "failed_", "no_answer_")):
                del _METRICS[k]
            else:
                _METRICS[k] = 0


def log_resolver_metrics_summary(*, force: bool = False) -> None:
    snap = get_resolver_metrics_snapshot()
    if not force and not any(v for v in snap.values()):
        return
    if logger.is_silent_mode() and not logger.is_debug_mode() and not force:
        return

    items = sorted(((k, v) for k, v in snap.items() if v), key=lambda kv: (-kv[1], kv[0]))
    lines = ["[RESOLVER][METRICS] summary"]
    if not items:
        lines.append("  (all zeros)")
    else:
        width = max(len(k) for k, _ in items)
        lines.extend(f"  {k.ljust(width)} : {v}" for k, v in items)

    for ln in lines:
        logger.info(ln, always=force)


# ============================================================
#                  RESOLVER
# ============================================================


def attempt_source(source: SourceAdapter, query: SearchQuery) -> SourceOutcome:
    """Ejecuta una fuente y clasifica el resultado; nunca propaga su excepción."""
    try:
        result = source.scrape(query)
    except Exception as exc:  # noqa: BLE001
        return Failed(exc)

    if result is None:
        return NoAnswer()
    return Answered(result)


class StingerResolver:
    def __init__(
        self,
        sources: Sequence[SourceAdapter],
        result_cache: ResultCache,
        lookup: LookupFn,
    ) -> None:
        self.sources = list(sources)
        self.result_cache = result_cache
        self.lookup = lookup

    @property
    def source_names(self) -> list[str]:
        return [s.name for s in self.sources]

    def _cached(self, key: str) -> ScrapeResult | None:
        payload = self.result_cache.get(key)
        if payload is None:
            return None
        try:
            return ScrapeResult.from_dict(payload)
        except SchemaError as exc:
            logger.warning(f"[RESOLVER] ignoring malformed cache entry for {key}: {exc}")
            return None

    def resolve(self, canonical_id: str, *, use_cache: bool = True) -> ScrapeResult | None:
        """
        Resuelve un imdb id a ScrapeResult o None ("no encontrado").

        use_cache=False ignora la lectura de caché (la escritura del resultado
        nuevo se mantiene).
        """
        key = clean_canonical_id(canonical_id)
        _m_inc("resolutions")

        if use_cache:
            cached = self._cached(key)
            if cached is not None:
                _m_inc("cache_hits")
                logger.debug_ctx("RESOLVER", f"cache hit {key}")
                return cached
        _m_inc("cache_misses")

        query = self.lookup(key)
        if query is None:
            _m_inc("lookup_failures")
            logger.info(f"[RESOLVER] metadata lookup failed for {key}")
            return None

        for source in self.sources:
            outcome = attempt_source(source, query)

            if isinstance(outcome, Answered):
                _m_inc(f"answered_{source.name}")
                result = outcome.result
                self.result_cache.set(key, result.to_dict())
                logger.info(
                    f"[RESOLVER] {key} answered by {source.name}: "
                    f"{len(result.stingers)} stinger(s) for {query.query!r}"
                )
                return result

            if isinstance(outcome, Failed):
                _m_inc(f"failed_{source.name}")
                logger.warning(
                    f"[RESOLVER] source {source.name} failed for {query.query!r} ({key}): "
                    f"{type(outcome.error).__name__}: {outcome.error}"
                )
                continue

            _m_inc(f"no_answer_{source.name}")
            logger.debug_ctx("RESOLVER", f"{source.name} has no answer for {query.query!r}")

        _m_inc("not_found")
        logger.info(f"[RESOLVER] no source answered for {query.query!r} ({key})")
        return None


def build_default_resolver(
    *,
    source_order: Sequence[str] | None = None,
    cache_factory: Callable[[str], ResultCache] = create_cache,
    tmdb_api_key: str | None = None,
    lookup: LookupFn | None = None,
) -> StingerResolver:
    """
    Cablea configuración -> registro de fuentes -> cachés.

    Raises:
        ConfigurationError: fuente desconocida o backend de caché inválido.
    """
    order = parse_source_order(source_order if source_order is not None else SOURCE_ORDER)
    sources = build_sources(
        order,
        cache_factory=cache_factory,
        tmdb_api_key=tmdb_api_key if tmdb_api_key is not None else TMDB_API_KEY,
    )
    return StingerResolver(
        sources=sources,
        result_cache=cache_factory(CACHE_NAMESPACE_RESULTS),
        lookup=lookup if lookup is not None else MetadataLookup(),
    )
