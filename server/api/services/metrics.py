from __future__ import annotations

from collections.abc import Mapping
from threading import RLock

_LOCK = RLock()
_METRICS: dict[str, int] = {
    "http_requests_total": 0,
    "http_errors_5xx_total": 0,
    "stream_requests_total": 0,
    "stream_found_total": 0,
    "stream_not_found_total": 0,
    "manifest_requests_total": 0,
}


def inc(name: str, value: int = 1) -> None:
    with _LOCK:
        _METRICS[name] = _METRICS.get(name, 0) + value


def snapshot() -> dict[str, int]:
    with _LOCK:
        return dict(_METRICS)


def _metric_name(prefix: str, key: str) -> str:
    safe = "".join(ch if ch.isalnum() else "_" for ch in key.lower())
    return f"{prefix}_{safe}_total"


def render_prometheus(extra: Mapping[str, Mapping[str, int]] | None = None) -> str:
    """
    Contadores del servidor + snapshots externos con prefijo.

    extra: {"stinger_resolver": {"cache_hits": 3, ...}, ...}
    """
    with _LOCK:
        counters = dict(_METRICS)

    for prefix, values in (extra or {}).items():
        for key, value in values.items():
            counters[_metric_name(prefix, key)] = int(value)

    lines: list[str] = []
    for k, v in sorted(counters.items()):
        lines.append(f"# TYPE {k} counter")
        lines.append(f"{k} {v}")
    return "\n".join(lines) + "\n"
