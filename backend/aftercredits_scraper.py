from __future__ import annotations

"""
backend/aftercredits_scraper.py

Fuente "fan-site" (aftercredits.com): la más precisa y la única que aporta notas.

Flujo:
1) Búsqueda /?s=<query>. Entradas h3.entry-title.
2) Convención del sitio: el título termina en "*" si la película tiene stinger.
   Sin entradas marcadas -> None.
3) Primera entrada marcada cuyo título normalizado contiene la consulta
   normalizada sin año (comillas tipográficas, puntuación y mayúsculas no cuentan):
     - sin href -> None
     - título limpio = texto sin marcador final
   Ninguna entrada marcada casa -> resultado sin stingers para la primera
   entrada marcada, sin fetch de detalle (búsqueda no relacionada).
4) Detalle: un Stinger por .spoiler-wrap
     - .spoiler-head contiene "during the credits" -> mid-credit; resto post-credit
     - .spoiler-body no vacío -> note

Fallo de la búsqueda: se loguea y devuelve None.
Fallo del detalle: TransportError (el resolvedor lo aísla y sigue).
"""

from typing import Final

from backend import logger
from backend.config_sources import AFTERCREDITS_BASE_URL
from backend.errors import TransportError
from backend.http_client import HttpHelper
from backend.models import ScrapeResult, SearchQuery, Stinger, StingerType
from backend.scraper_base import absolute_link, build_url, node_href, node_text, parse_html
from backend.title_utils import (
    clean_marker_title,
    ends_with_marker,
    normalize_query_for_compare,
    normalize_title_for_compare,
)

SEARCH_PATH: Final[str] = "/?s={query}"
STINGER_MARKER: Final[str] = "*"
MID_CREDIT_HEADING: Final[str] = "during the credits"


def _dbg(msg: object) -> None:
    logger.debug_ctx("AFTERCREDITS", msg)


def _title_contains(raw_title: str, wanted: str) -> bool:
    if not wanted:
        return False
    return wanted in normalize_title_for_compare(clean_marker_title(raw_title))


class AfterCreditsScraper:
    name = "aftercredits"

    def __init__(self, http: HttpHelper | None = None, *, base_url: str | None = None) -> None:
        self.http = http if http is not None else HttpHelper(self.name)
        self.base_url = base_url or AFTERCREDITS_BASE_URL

    def scrape(self, query: SearchQuery) -> ScrapeResult | None:
        search_url = build_url(self.base_url, SEARCH_PATH, query=query.query)

        try:
            html = self.http.get_text(search_url)
        except TransportError as exc:
            logger.warning(f"[AFTERCREDITS] search failed for {query.query!r}: {exc}")
            return None

        _dbg(f"search {search_url} -> {len(html)} chars")

        soup = parse_html(html)
        entries = [h3 for h3 in soup.select("h3.entry-title") if ends_with_marker(node_text(h3), STINGER_MARKER)]
        if not entries:
            logger.info(f"[AFTERCREDITS] no marked results for {query.query!r}")
            return None

        wanted = normalize_query_for_compare(query.query)
        match = next((h3 for h3 in entries if _title_contains(node_text(h3), wanted)), None)
        entry = match if match is not None else entries[0]

        href = node_href(entry.find("a"))
        if not href:
            logger.info(f"[AFTERCREDITS] selected result has no link for {query.query!r}")
            return None
        href = absolute_link(self.base_url, href)

        title = clean_marker_title(node_text(entry))
        if match is None:
            _dbg(f"no marked result matches {wanted!r}; skipping detail fetch")
            return ScrapeResult(title=title, link=href)

        # Un fallo aquí se propaga: el resolvedor lo registra como Failed
        detail_html = self.http.get_text(href)
        stingers = tuple(self._parse_spoilers(detail_html))
        logger.info(f"[AFTERCREDITS] {len(stingers)} stinger(s) for {title!r}")

        return ScrapeResult(title=title, link=href, stingers=stingers)

    @staticmethod
    def _parse_spoilers(html: str) -> list[Stinger]:
        out: list[Stinger] = []
        for block in parse_html(html).select(".spoiler-wrap"):
            heading = node_text(block.select_one(".spoiler-head")).lower()
            kind = StingerType.MID_CREDIT if MID_CREDIT_HEADING in heading else StingerType.POST_CREDIT
            body = node_text(block.select_one(".spoiler-body"))
            out.append(Stinger(type=kind, note=body or None))
        return out
