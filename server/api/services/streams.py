from __future__ import annotations

from typing import Any

from backend.models import ScrapeResult
from server.api.settings import Settings


def build_manifest(settings: Settings) -> dict[str, Any]:
    return {
        "id": settings.addon_id,
        "version": settings.addon_version,
        "name": settings.addon_name,
        "description": settings.addon_description,
        "resources": ["stream"],
        "types": ["movie"],
        "catalogs": [],
        "idPrefixes": ["tt"],
    }


def build_streams(result: ScrapeResult | None) -> list[dict[str, str]]:
    """
    Un "stream" informativo por escena:
        title       = "mid credit scene" / "post credit scene" (+ " (nota)")
        externalUrl = enlace de la fuente que respondió
    """
    if result is None:
        return []

    streams: list[dict[str, str]] = []
    for stinger in result.stingers:
        title = stinger.type.label
        if stinger.note:
            title = f"{title} ({stinger.note})"
        streams.append({"title": title, "externalUrl": result.link})
    return streams
