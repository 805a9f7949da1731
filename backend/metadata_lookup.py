from __future__ import annotations

"""
backend/metadata_lookup.py

Metadata Lookup (Cinemeta): imdb id -> SearchQuery (título + año).

Cualquier fallo de transporte o respuesta con forma inesperada -> None (logueado);
el resolvedor entonces devuelve "no encontrado" sin consultar fuentes.
"""

import re
from collections.abc import Mapping

from backend import logger
from backend.config_sources import CINEMETA_BASE_URL
from backend.errors import SchemaError, TransportError
from backend.http_client import HttpHelper
from backend.models import SearchQuery
from backend.scraper_base import encode_component

_JSON_SUFFIX_RE = re.compile(r"\.json$")


def clean_canonical_id(raw: str) -> str:
    return _JSON_SUFFIX_RE.sub("", (raw or "").strip())


def build_search_query(canonical_id: str, name: str, release_info: str | None) -> SearchQuery:
    year = (release_info or "").strip()
    query = f"{name} {year}".strip()
    return SearchQuery(query=query, title=name.strip(), year=year, canonical_id=canonical_id)


def _parse_meta(data: object) -> tuple[str, str, str | None]:
    if not isinstance(data, Mapping):
        raise SchemaError("cinemeta response must be an object", source="cinemeta")
    meta = data.get("meta")
    if not isinstance(meta, Mapping):
        raise SchemaError("cinemeta response missing 'meta'", source="cinemeta")

    meta_id = meta.get("id")
    name = meta.get("name")
    if not isinstance(meta_id, str) or not isinstance(name, str):
        raise SchemaError("cinemeta meta requires string id and name", source="cinemeta")

    release = meta.get("releaseInfo")
    # releaseInfo puede venir como número: se coacciona a texto
    release_info = None if release is None else str(release)
    return meta_id, name, release_info


class MetadataLookup:
    def __init__(self, http: HttpHelper | None = None, *, base_url: str | None = None) -> None:
        self.http = http if http is not None else HttpHelper("cinemeta")
        self.base_url = (base_url or CINEMETA_BASE_URL).rstrip("/")

    def __call__(self, canonical_id: str) -> SearchQuery | None:
        return self.lookup(canonical_id)

    def lookup(self, canonical_id: str) -> SearchQuery | None:
        clean_id = clean_canonical_id(canonical_id)
        if not clean_id:
            return None

        url = f"{self.base_url}/meta/movie/{encode_component(clean_id)}.json"
        try:
            _, name, release_info = _parse_meta(self.http.get_json(url))
        except (TransportError, SchemaError) as exc:
            logger.error(f"[CINEMETA] failed to resolve {clean_id}: {exc}")
            return None

        query = build_search_query(clean_id, name, release_info)
        logger.debug_ctx("CINEMETA", f"{clean_id} -> {query.query!r}")
        return query
