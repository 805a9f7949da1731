from __future__ import annotations

"""
backend/scraper_base.py

Contrato común de las fuentes de stingers + helpers HTML.

Contrato de SourceAdapter.scrape(query):
    - ScrapeResult con stingers       -> la fuente sabe que hay escenas
    - ScrapeResult con stingers vacío -> la fuente sabe que NO hay escenas
    - None                            -> la fuente no sabe nada de esta película
    - TransportError / SchemaError    -> fallo; el resolvedor lo aísla
"""

from typing import Protocol
from urllib.parse import quote

from bs4 import BeautifulSoup
from bs4.element import Tag

from backend.models import ScrapeResult, SearchQuery

# Caracteres que encodeURIComponent deja sin escapar
_URI_COMPONENT_SAFE = "-_.!~*'()"


class SourceAdapter(Protocol):
    name: str

    def scrape(self, query: SearchQuery) -> ScrapeResult | None: ...


def encode_component(value: str) -> str:
    return quote(value, safe=_URI_COMPONENT_SAFE)


def build_url(base_url: str, path_template: str, **params: object) -> str:
    """
    base + plantilla con placeholders {nombre} (cada valor escapado como componente de URL).

    >>> build_url("https://aftercredits.com", "/?s={query}", query="Dune 2021")
    'https://aftercredits.com/?s=Dune%202021'
    """
    encoded = {k: encode_component(str(v)) for k, v in params.items()}
    return base_url.rstrip("/") + path_template.format(**encoded)


def absolute_link(base_url: str, href: str) -> str:
    if href.startswith(("http://", "https://")):
        return href
    return base_url.rstrip("/") + "/" + href.lstrip("/")


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")


def node_text(node: Tag | None) -> str:
    """Texto visible de un nodo (vacío si no existe), con espacios colapsados en bordes."""
    if node is None:
        return ""
    return node.get_text(" ", strip=True)


def node_href(node: Tag | None) -> str | None:
    if node is None:
        return None
    href = node.get("href")
    if isinstance(href, list):
        href = href[0] if href else None
    href = (href or "").strip()
    return href or None
