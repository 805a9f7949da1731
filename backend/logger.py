from __future__ import annotations

"""
backend/logger.py

Fachada de logging del add-on (sobre `logging`).

API estable
-----------
- debug / info / warning / error
- progress (siempre visible, sin timestamps; lo usa la CLI)
- debug_ctx(tag, msg) (debug contextual: SCRAPER, TMDB, CACHE, RESOLVER...)
- truncate_line(text) (evita volcar HTML/JSON enteros en los logs)

Política
--------
- SILENT_MODE=True: suprime debug/info/warning (salvo always=True). `error()` siempre emite.
- DEBUG_MODE=True: habilita `debug_ctx`.
- El logging nunca debe romper la resolución de stingers.

Config
------
No importamos `backend.config_base` directamente (evitamos ciclos): se lee desde
`sys.modules` si ya está importado. Variables consumidas:

- SILENT_MODE / DEBUG_MODE / LOG_LEVEL / HTTP_DEBUG
- LOGGER_FILE_ENABLED / LOGGER_FILE_PATH (ENV LOGGER_FILE_PATH tiene prioridad)
"""

import logging
import os
import sys
from types import ModuleType
from typing import Final, Mapping, TypedDict

from typing_extensions import Unpack


class LogKwargs(TypedDict, total=False):
    """Subconjunto de kwargs de logging.Logger.* que reenviamos."""

    exc_info: bool | BaseException | None
    stack_info: bool
    stacklevel: int
    extra: Mapping[str, object] | None


LOGGER_NAME: Final[str] = "aftercredits"

_LOGGER: logging.Logger | None = None
_CONFIGURED: bool = False

_FILE_HANDLER_TAG: Final[str] = "_aftercredits_file_handler"
_LOG_FORMAT: Final[str] = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_DEFAULT_LOG_LINE_MAX_CHARS: Final[int] = 500

_LEVELS: Final[dict[str, int]] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

_NOISY_LOGGERS: Final[tuple[str, ...]] = (
    "urllib3",
    "urllib3.connectionpool",
    "requests",
    "charset_normalizer",
)


# ============================================================================
# Flags desde config (sin import directo)
# ============================================================================


def _safe_get_cfg() -> ModuleType | None:
    mod = sys.modules.get("backend.config_base")
    return mod if isinstance(mod, ModuleType) else None


def _cfg_value(name: str, default: object) -> object:
    cfg = _safe_get_cfg()
    if cfg is None:
        return default
    return getattr(cfg, name, default)


def _cfg_bool(name: str, default: bool = False) -> bool:
    try:
        return bool(_cfg_value(name, default))
    except Exception:
        return default


def is_silent_mode() -> bool:
    return _cfg_bool("SILENT_MODE", False)


def is_debug_mode() -> bool:
    return _cfg_bool("DEBUG_MODE", False)


def _resolve_level() -> int:
    """LOG_LEVEL explícito > DEBUG_MODE > INFO."""
    raw = _cfg_value("LOG_LEVEL", None)
    if isinstance(raw, str) and raw.strip():
        mapped = _LEVELS.get(raw.strip().upper())
        if mapped is not None:
            return mapped
    if is_debug_mode():
        return logging.DEBUG
    return logging.INFO


def _quiet_external_loggers() -> None:
    if _cfg_bool("HTTP_DEBUG", False):
        return
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


# ============================================================================
# Fichero opcional
# ============================================================================


def _file_logging_path() -> str | None:
    env_p = (os.getenv("LOGGER_FILE_PATH") or "").strip()
    if env_p:
        return env_p
    p = _cfg_value("LOGGER_FILE_PATH", None)
    if p is None:
        return None
    s = str(p).strip()
    return s or None


def _ensure_file_handler(root: logging.Logger, *, level: int) -> None:
    if not _cfg_bool("LOGGER_FILE_ENABLED", False):
        return
    path = _file_logging_path()
    if not path:
        return

    for h in root.handlers:
        if getattr(h, _FILE_HANDLER_TAG, False):
            h.setLevel(level)
            return

    try:
        dir_name = os.path.dirname(path)
        if dir_name:
            os.makedirs(dir_name, exist_ok=True)
        fh = logging.FileHandler(path, mode="a", encoding="utf-8", delay=True)
        fh.setLevel(level)
        fh.setFormatter(logging.Formatter(_LOG_FORMAT))
        setattr(fh, _FILE_HANDLER_TAG, True)
        root.addHandler(fh)
    except OSError:
        # Best-effort: seguimos solo con consola.
        return


# ============================================================================
# Inicialización
# ============================================================================


def _ensure_configured() -> logging.Logger:
    """Inicializa logging de forma idempotente y devuelve el logger principal."""
    global _LOGGER, _CONFIGURED

    level = _resolve_level()
    root = logging.getLogger()

    try:
        if not _CONFIGURED and not root.handlers:
            logging.basicConfig(level=level, format=_LOG_FORMAT)
        else:
            root.setLevel(level)
        _quiet_external_loggers()
        _ensure_file_handler(root, level=level)
    except Exception:
        pass

    if _LOGGER is None:
        _LOGGER = logging.getLogger(LOGGER_NAME)
    _CONFIGURED = True
    return _LOGGER


def _should_log(*, always: bool = False) -> bool:
    if always:
        return True
    return not is_silent_mode()


# ============================================================================
# API pública
# ============================================================================


def progress(message: str) -> None:
    """Línea siempre visible (ignora SILENT_MODE)."""
    try:
        sys.stdout.write(f"{message}\n")
        sys.stdout.flush()
    except Exception:
        pass


def debug(msg: str, *args: object, always: bool = False, **kwargs: Unpack[LogKwargs]) -> None:
    if not _should_log(always=always):
        return
    try:
        _ensure_configured().debug(msg, *args, **kwargs)
    except Exception:
        pass


def info(msg: str, *args: object, always: bool = False, **kwargs: Unpack[LogKwargs]) -> None:
    if not _should_log(always=always):
        return
    try:
        _ensure_configured().info(msg, *args, **kwargs)
    except Exception:
        pass


def warning(msg: str, *args: object, always: bool = False, **kwargs: Unpack[LogKwargs]) -> None:
    if not _should_log(always=always):
        return
    try:
        _ensure_configured().warning(msg, *args, **kwargs)
    except Exception:
        pass


def error(msg: str, *args: object, always: bool = True, **kwargs: Unpack[LogKwargs]) -> None:
    """ERROR siempre se emite (ignora SILENT_MODE)."""
    try:
        _ensure_configured().error(msg, *args, **kwargs)
    except Exception:
        try:
            print(msg)
        except Exception:
            pass


def truncate_line(text: str, max_chars: int | None = None) -> str:
    limit = max_chars if isinstance(max_chars, int) and max_chars > 0 else _DEFAULT_LOG_LINE_MAX_CHARS
    if len(text) <= limit:
        return text
    return text[: max(0, limit - 12)] + " …(truncated)"


def debug_ctx(tag: str, msg: object) -> None:
    """
    Debug contextual con tag.

    - DEBUG_MODE=False -> no-op
    - DEBUG_MODE=True:
        * SILENT_MODE=True  -> progress("[TAG][DEBUG] ...")
        * SILENT_MODE=False -> info("[TAG][DEBUG] ...")
    """
    if not is_debug_mode():
        return

    t = (tag or "DEBUG").strip().upper()
    text = truncate_line(str(msg))
    if is_silent_mode():
        progress(f"[{t}][DEBUG] {text}")
    else:
        info(f"[{t}][DEBUG] {text}")
