from __future__ import annotations

"""
backend/tmdb_scraper.py

Fuente "base de datos externa" (TMDB API v3).

- Requiere TMDB_APIKEY (token v4 "Bearer"). Sin credencial: None inmediato, sin HTTP.
- imdb "tt..." -> id TMDB vía /find (external_source=imdb_id). La traducción se
  guarda en el namespace "tmdb" del Result Cache (mismo TTL).
- /movie/<id>?append_to_response=keywords:
      "duringcreditsstinger" -> mid-credit
      "aftercreditsstinger"  -> post-credit
      resto                  -> ignorado
  Cero keywords relevantes => resultado DEFINIDO con stingers vacío: para esta
  fuente "sin etiqueta" es un negativo confirmado.

Respuestas con forma inesperada -> SchemaError.
"""

from collections.abc import Mapping
from typing import Final

from backend import logger
from backend.config_sources import TMDB_API_BASE_URL, TMDB_API_KEY, TMDB_WEB_BASE_URL
from backend.errors import SchemaError
from backend.http_client import HttpHelper
from backend.models import ScrapeResult, SearchQuery, Stinger, StingerType
from backend.result_cache import ResultCache
from backend.scraper_base import build_url

FIND_PATH: Final[str] = "/find/{imdb_id}?external_source=imdb_id&language=en-US"
MOVIE_PATH: Final[str] = "/movie/{tmdb_id}?append_to_response=keywords"

KEYWORD_STINGERS: Final[dict[str, StingerType]] = {
    "duringcreditsstinger": StingerType.MID_CREDIT,
    "aftercreditsstinger": StingerType.POST_CREDIT,
}


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _dbg(msg: object) -> None:
    logger.debug_ctx("TMDB", msg)


def parse_find_response(data: object) -> int | None:
    """Primer movie_results[].id o None si la lista está vacía."""
    if not isinstance(data, Mapping):
        raise SchemaError("find response must be an object", source="tmdb")
    results = data.get("movie_results")
    if not isinstance(results, list):
        raise SchemaError("find response missing movie_results", source="tmdb")
    if not results:
        return None
    first = results[0]
    if not isinstance(first, Mapping) or not _is_int(first.get("id")):
        raise SchemaError("movie_results[0].id must be an integer", source="tmdb")
    return int(first["id"])


def parse_movie_response(data: object, *, web_base_url: str) -> ScrapeResult:
    if not isinstance(data, Mapping):
        raise SchemaError("movie response must be an object", source="tmdb")

    movie_id = data.get("id")
    title = data.get("title")
    keywords_block = data.get("keywords")
    if not _is_int(movie_id) or not isinstance(title, str) or not isinstance(keywords_block, Mapping):
        raise SchemaError("movie response missing id/title/keywords", source="tmdb")

    keywords = keywords_block.get("keywords")
    if not isinstance(keywords, list):
        raise SchemaError("keywords.keywords must be a list", source="tmdb")

    stingers: list[Stinger] = []
    for kw in keywords:
        if not isinstance(kw, Mapping) or not _is_int(kw.get("id")) or not isinstance(kw.get("name"), str):
            raise SchemaError(f"invalid keyword entry: {kw!r}", source="tmdb")
        kind = KEYWORD_STINGERS.get(kw["name"])
        if kind is not None:
            stingers.append(Stinger(type=kind))

    return ScrapeResult(
        title=title,
        link=f"{web_base_url.rstrip('/')}/movie/{movie_id}",
        stingers=tuple(stingers),
    )


class TmdbScraper:
    name = "tmdb"

    def __init__(
        self,
        http: HttpHelper | None = None,
        *,
        api_key: str | None = None,
        id_cache: ResultCache | None = None,
        api_base_url: str | None = None,
        web_base_url: str | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else TMDB_API_KEY
        self.http = http if http is not None else HttpHelper(self.name)
        self.id_cache = id_cache
        self.api_base_url = api_base_url or TMDB_API_BASE_URL
        self.web_base_url = web_base_url or TMDB_WEB_BASE_URL

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}", "accept": "application/json"}

    def _resolve_tmdb_id(self, imdb_id: str) -> int | None:
        if self.id_cache is not None:
            cached = self.id_cache.get(imdb_id)
            if _is_int(cached):
                _dbg(f"id cache hit {imdb_id} -> {cached}")
                return int(cached)  # type: ignore[arg-type]

        _dbg(f"no tmdb id cached for {imdb_id}, calling /find")
        url = build_url(self.api_base_url, FIND_PATH, imdb_id=imdb_id)
        tmdb_id = parse_find_response(self.http.get_json(url, headers=self._headers()))
        if tmdb_id is None:
            return None

        if self.id_cache is not None:
            self.id_cache.set(imdb_id, tmdb_id)
        return tmdb_id

    def scrape(self, query: SearchQuery) -> ScrapeResult | None:
        if not self.api_key:
            _dbg("no TMDB api key configured; source disabled")
            return None

        tmdb_id = self._resolve_tmdb_id(query.canonical_id)
        if tmdb_id is None:
            logger.info(f"[TMDB] no movie found for {query.canonical_id}")
            return None

        url = build_url(self.api_base_url, MOVIE_PATH, tmdb_id=tmdb_id)
        result = parse_movie_response(self.http.get_json(url, headers=self._headers()), web_base_url=self.web_base_url)
        logger.info(f"[TMDB] {len(result.stingers)} stinger keyword(s) for {result.title!r}")
        return result
