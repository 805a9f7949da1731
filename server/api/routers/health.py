from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, Response

from backend.http_client import get_breaker
from backend.resolver import StingerResolver, get_resolver_metrics_snapshot
from backend.result_cache import get_cache_metrics_snapshot
from server.api.deps import get_resolver
from server.api.services import metrics

router = APIRouter()


@router.get("/health")
def health(resolver: StingerResolver = Depends(get_resolver)) -> dict[str, Any]:
    return {
        "ok": True,
        "ts": datetime.now(timezone.utc).isoformat(),
        "sources": resolver.source_names,
        "circuits": get_breaker().snapshot(),
    }


@router.get("/metrics")
def metrics_endpoint() -> Response:
    body = metrics.render_prometheus(
        {
            "stinger_resolver": get_resolver_metrics_snapshot(),
            "stinger_cache": get_cache_metrics_snapshot(),
        }
    )
    return Response(content=body, media_type="text/plain; version=0.0.4")
