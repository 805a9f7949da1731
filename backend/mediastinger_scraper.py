from __future__ import annotations

"""
backend/mediastinger_scraper.py

Fuente "agregador" (mediastinger.com).

Solo mira la primera entrada del listado de búsqueda (ul.highlights li):
    - link     = primer <a href>
    - title    = .title
    - subtitle = .subtitle  (p.ej. "Stinger during and after the credits")

Regla de decisión sobre el subtítulo (case-fold):
    - palabra negativa (no/none/nothing/not/nope) -> sin escenas (stingers vacío)
    - "during"                                     -> mid-credit
    - "after"                                      -> post-credit
  (ambos pueden aplicar: hasta dos Stinger, en ese orden)

Las palabras negativas se buscan completas: "know" o "another" no cuentan.
"""

from typing import Final

from backend import logger
from backend.config_sources import MEDIASTINGER_BASE_URL
from backend.errors import TransportError
from backend.http_client import HttpHelper
from backend.models import ScrapeResult, SearchQuery, Stinger, StingerType
from backend.scraper_base import absolute_link, build_url, node_href, node_text, parse_html
from backend.title_utils import is_negative_answer

SEARCH_PATH: Final[str] = "/?tab=MOVIES&s={query}"


def classify_subtitle(subtitle: str) -> tuple[Stinger, ...]:
    text = (subtitle or "").strip().lower()
    if is_negative_answer(text):
        return ()

    out: list[Stinger] = []
    if "during" in text:
        out.append(Stinger(type=StingerType.MID_CREDIT))
    if "after" in text:
        out.append(Stinger(type=StingerType.POST_CREDIT))
    return tuple(out)


class MediaStingerScraper:
    name = "mediastinger"

    def __init__(self, http: HttpHelper | None = None, *, base_url: str | None = None) -> None:
        self.http = http if http is not None else HttpHelper(self.name)
        self.base_url = base_url or MEDIASTINGER_BASE_URL

    def scrape(self, query: SearchQuery) -> ScrapeResult | None:
        search_url = build_url(self.base_url, SEARCH_PATH, query=query.query)

        try:
            html = self.http.get_text(search_url)
        except TransportError as exc:
            logger.warning(f"[MEDIASTINGER] search failed for {query.query!r}: {exc}")
            return None

        entry = parse_html(html).select_one("ul.highlights li")
        if entry is None:
            logger.info(f"[MEDIASTINGER] no results for {query.query!r}")
            return None

        href = node_href(entry.find("a"))
        link = absolute_link(self.base_url, href) if href else ""
        title = node_text(entry.select_one(".title"))
        subtitle = node_text(entry.select_one(".subtitle"))

        stingers = classify_subtitle(subtitle)
        logger.debug_ctx("MEDIASTINGER", f"{title!r} subtitle={subtitle!r} -> {len(stingers)} stinger(s)")

        return ScrapeResult(title=title, link=link, stingers=stingers)
