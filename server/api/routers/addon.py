# /manifest.json + /stream/movie/{id}
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from backend.metadata_lookup import clean_canonical_id
from backend.resolver import StingerResolver
from server.api.deps import get_resolver, get_settings
from server.api.services import metrics
from server.api.services.streams import build_manifest, build_streams
from server.api.settings import Settings

router = APIRouter()


@router.get("/manifest.json")
def manifest(settings: Settings = Depends(get_settings)) -> dict[str, Any]:
    metrics.inc("manifest_requests_total", 1)
    return build_manifest(settings)


@router.get("/stream/movie/{video_id}")
def stream_movie(video_id: str, resolver: StingerResolver = Depends(get_resolver)) -> dict[str, Any]:
    """
    Stremio pide /stream/movie/tt0848228.json: el sufijo .json se descarta.
    Sin datos (o sin escenas) -> {"streams": []}.
    """
    metrics.inc("stream_requests_total", 1)

    result = resolver.resolve(clean_canonical_id(video_id))
    if result is None:
        metrics.inc("stream_not_found_total", 1)
        return {"streams": []}

    metrics.inc("stream_found_total", 1)
    return {"streams": build_streams(result)}
