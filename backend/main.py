from __future__ import annotations

"""
backend/main.py

CLI de consulta puntual: stingers-lookup tt0848228 [--json] [--no-cache]

Reglas de consola (alineado con backend/logger.py)
-------------------------------------------------
- Resumen humano: SIEMPRE visible -> logger.info(..., always=True)
- --json: el payload va a stdout (sin decoración) para poder encadenarlo.
- Estado global (inicio / fin): logger.progress(...)
- CTRL+C: salida limpia, sin stacktrace.

Códigos de salida:
    0 -> alguna fuente respondió (aunque sea "sin escenas")
    1 -> no encontrado
    2 -> error de configuración
"""

import argparse
import json
import sys
from collections.abc import Sequence

from backend import logger as logger
from backend.config_base import DEBUG_MODE, SILENT_MODE
from backend.errors import ConfigurationError
from backend.http_client import log_http_metrics_summary
from backend.models import ScrapeResult
from backend.resolver import build_default_resolver, log_resolver_metrics_summary

EXIT_OK = 0
EXIT_NOT_FOUND = 1
EXIT_CONFIG_ERROR = 2


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="stingers-lookup",
        description="Mid/post-credits scenes lookup for an IMDb id",
    )
    parser.add_argument("imdb_id", help="IMDb id (tt...)")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    parser.add_argument("--no-cache", action="store_true", help="Skip the result cache read")
    return parser.parse_args(argv)


def _format_summary(imdb_id: str, result: ScrapeResult) -> str:
    lines = [f"{imdb_id}: {result.title}", f"  source: {result.link or '-'}"]
    if not result.stingers:
        lines.append("  no mid/post-credits scenes")
    for stinger in result.stingers:
        note = f" ({logger.truncate_line(stinger.note, 160)})" if stinger.note else ""
        lines.append(f"  - {stinger.type.label}{note}")
    return "\n".join(lines)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    if SILENT_MODE:
        logger.progress("[Stingers] SILENT_MODE=True" + (" DEBUG_MODE=True" if DEBUG_MODE else ""))

    try:
        resolver = build_default_resolver()
    except ConfigurationError as exc:
        logger.error(f"[Stingers] Configuration error: {exc}")
        return EXIT_CONFIG_ERROR

    try:
        result = resolver.resolve(args.imdb_id, use_cache=not args.no_cache)
    finally:
        log_resolver_metrics_summary()
        log_http_metrics_summary()

    if args.json:
        payload = None if result is None else result.to_dict()
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    elif result is None:
        logger.info(f"{args.imdb_id}: no data available", always=True)
    else:
        logger.info(_format_summary(args.imdb_id, result), always=True)

    return EXIT_OK if result is not None else EXIT_NOT_FOUND


def start() -> None:
    """Entry-point (console_scripts)."""
    try:
        code = main()
    except KeyboardInterrupt:
        logger.info("\n[Stingers] Interrumpido por el usuario (Ctrl+C).", always=True)
        code = 130
    sys.exit(code)


if __name__ == "__main__":
    start()
