from __future__ import annotations

"""
backend/wikipedia_scraper.py

Fuente "tabla wiki": "List of films with post-credits scenes" (en.wikipedia.org).

- La página completa se descarga una vez y se guarda en un holder propio del
  adaptador ({html, fetched_at}); se refresca si falta o tiene más de
  WIKIPEDIA_PAGE_TTL_SECONDS. El refresco va bajo lock (single-flight): los
  hilos que llegan mientras otro refresca esperan y reutilizan su resultado.
- Si el refresco falla se conserva la página anterior (si la hay).
- Tablas table.wikitable cuya primera fila empieza por "Year"; filas con >=2 <td>.
- Primera celda normalizada vs consulta normalizada (sin año): igualdad o prefijo.
- La fuente solo lista post-credits: un match implica exactamente un POST_CREDIT.
- Primera tabla con match gana; la primera fila que casa detiene el escaneo.

Esta caché de página es independiente del Result Cache.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Final

from bs4 import BeautifulSoup
from bs4.element import Tag

from backend import logger
from backend.config_sources import WIKIPEDIA_BASE_URL, WIKIPEDIA_LIST_URL, WIKIPEDIA_PAGE_TTL_SECONDS
from backend.errors import TransportError
from backend.http_client import HttpHelper
from backend.models import ScrapeResult, SearchQuery, Stinger, StingerType
from backend.scraper_base import absolute_link, node_href, node_text, parse_html
from backend.title_utils import normalize_query_for_compare, normalize_title_for_compare, title_matches_prefix

TABLE_HEADER_PREFIX: Final[str] = "Year"


@dataclass
class _PageCache:
    html: str | None = None
    fetched_at: float = 0.0


def _dbg(msg: object) -> None:
    logger.debug_ctx("WIKIPEDIA", msg)


class WikipediaScraper:
    name = "wikipedia"

    def __init__(
        self,
        http: HttpHelper | None = None,
        *,
        list_url: str | None = None,
        base_url: str | None = None,
        page_ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.http = http if http is not None else HttpHelper(self.name)
        self.list_url = list_url or WIKIPEDIA_LIST_URL
        self.base_url = base_url or WIKIPEDIA_BASE_URL
        self.page_ttl_seconds = float(page_ttl_seconds if page_ttl_seconds is not None else WIKIPEDIA_PAGE_TTL_SECONDS)
        self._clock = clock
        self._page = _PageCache()
        self._refresh_lock = threading.Lock()

    # ---------------------------------------------------------------
    # Caché de página
    # ---------------------------------------------------------------

    def _is_fresh(self) -> bool:
        return self._page.html is not None and (self._clock() - self._page.fetched_at) < self.page_ttl_seconds

    def _get_page(self) -> str | None:
        if self._is_fresh():
            return self._page.html

        with self._refresh_lock:
            # Otro hilo pudo refrescar mientras esperábamos
            if self._is_fresh():
                return self._page.html

            logger.info(f"[WIKIPEDIA] page cache stale, fetching {self.list_url}")
            try:
                html = self.http.get_text(self.list_url)
            except TransportError as exc:
                logger.error(f"[WIKIPEDIA] page refresh failed: {exc}")
                return self._page.html

            self._page = _PageCache(html=html, fetched_at=self._clock())
            _dbg(f"page cached ({len(html)} chars)")
            return html

    # ---------------------------------------------------------------
    # Scrape
    # ---------------------------------------------------------------

    @staticmethod
    def _year_tables(soup: BeautifulSoup) -> list[Tag]:
        tables: list[Tag] = []
        for table in soup.select("table.wikitable"):
            first_row = table.find("tr")
            if node_text(first_row).startswith(TABLE_HEADER_PREFIX):
                tables.append(table)
        return tables

    def scrape(self, query: SearchQuery) -> ScrapeResult | None:
        html = self._get_page()
        if not html:
            logger.error("[WIKIPEDIA] no cached page available")
            return None

        wanted = normalize_query_for_compare(query.query)
        _dbg(f"normalized query: {wanted!r}")

        for table in self._year_tables(parse_html(html)):
            for row in table.find_all("tr"):
                cells = row.find_all("td")
                if len(cells) < 2:
                    continue

                title_cell = cells[0]
                candidate = normalize_title_for_compare(node_text(title_cell))
                if not title_matches_prefix(candidate, wanted):
                    continue

                href = node_href(title_cell.find("a"))
                link = absolute_link(self.base_url, href) if href else ""
                logger.info(f"[WIKIPEDIA] matched row {candidate!r} for {query.query!r}")
                return ScrapeResult(
                    title=candidate,
                    link=link,
                    stingers=(Stinger(type=StingerType.POST_CREDIT),),
                )

        logger.info(f"[WIKIPEDIA] no results for {query.query!r}")
        return None
