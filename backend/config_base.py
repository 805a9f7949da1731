"""
backend/config_base.py

- Carga .env UNA vez
- Define PATHS base (BASE_DIR/PROJECT_DIR/DATA_DIR) temprano
- Helpers defensivos (_get_env_*, _cap_*, parsers CSV)
- Flags globales (DEBUG_MODE/SILENT_MODE/LOG_LEVEL/HTTP_DEBUG)
- LOGGER_FILE_* + congelado de LOGGER_FILE_PATH

Este módulo NO debe importar config_*.py para evitar ciclos.
"""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from typing import Final
from urllib.parse import urlsplit

from dotenv import load_dotenv

# En producción no sobre-escribimos env vars ya definidas.
load_dotenv(override=False)

from backend import logger as _logger  # noqa: E402


# ============================================================
# Paths base
# ============================================================

BASE_DIR: Final[Path] = Path(__file__).resolve().parent
PROJECT_DIR: Final[Path] = BASE_DIR.parent

_DATA_DIR_RAW: Final[str] = (os.getenv("DATA_DIR") or "data").strip() or "data"
_DATA_DIR_CANDIDATE = Path(_DATA_DIR_RAW)
DATA_DIR: Final[Path] = (
    _DATA_DIR_CANDIDATE if _DATA_DIR_CANDIDATE.is_absolute() else (PROJECT_DIR / _DATA_DIR_CANDIDATE)
)


# ============================================================
# Helpers: parseo defensivo de env vars
# ============================================================

_TRUE_SET: Final[set[str]] = {"1", "true", "t", "yes", "y", "on"}
_FALSE_SET: Final[set[str]] = {"0", "false", "f", "no", "n", "off"}


def _clean_env_raw(v: object | None) -> str | None:
    if v is None:
        return None
    s = str(v).strip()
    if not s:
        return None
    if len(s) >= 2 and (s[0] == s[-1]) and s[0] in ("'", '"'):
        s = s[1:-1].strip()
    return s or None


def _get_env_str(name: str, default: str | None = None) -> str | None:
    v = _clean_env_raw(os.getenv(name))
    return default if v is None else v


def _get_env_int(name: str, default: int) -> int:
    v = _clean_env_raw(os.getenv(name))
    if v is None:
        return default
    try:
        return int(v)
    except ValueError:
        _logger.warning(f"Invalid int for {name!r}: {v!r}, using default {default}", always=True)
        return default


def _get_env_float(name: str, default: float) -> float:
    v = _clean_env_raw(os.getenv(name))
    if v is None:
        return default
    try:
        return float(v)
    except ValueError:
        _logger.warning(f"Invalid float for {name!r}: {v!r}, using default {default}", always=True)
        return default


def _get_env_bool(name: str, default: bool) -> bool:
    v = _clean_env_raw(os.getenv(name))
    if v is None:
        return default
    s = v.lower()
    if s in _TRUE_SET:
        return True
    if s in _FALSE_SET:
        return False
    _logger.warning(f"Invalid bool for {name!r}: {v!r}, using default {default}", always=True)
    return default


def _cap_int(name: str, value: int, *, min_v: int, max_v: int) -> int:
    if value < min_v:
        _logger.warning(f"{name} < {min_v}; forcing to {min_v}", always=True)
        return min_v
    if value > max_v:
        _logger.warning(f"{name} too high; capping to {max_v}", always=True)
        return max_v
    return value


def _cap_float(name: str, value: float, *, min_v: float, max_v: float | None = None) -> float:
    if value < min_v:
        _logger.warning(f"{name} < {min_v}; forcing to {min_v}", always=True)
        return min_v
    if max_v is not None and value > max_v:
        _logger.warning(f"{name} too high; capping to {max_v}", always=True)
        return max_v
    return value


def _get_env_url(name: str, default: str) -> str:
    """
    URL base de una fuente: exige esquema http(s) y host; sin "/" final.
    Valor inválido -> warning + default.
    """
    v = _clean_env_raw(os.getenv(name))
    if v is None:
        return default.rstrip("/")
    parsed = urlsplit(v)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        _logger.warning(f"Invalid URL for {name!r}: {v!r}, using default {default}", always=True)
        return default.rstrip("/")
    return v.rstrip("/")


def _parse_env_csv_tokens(raw: str) -> list[str]:
    """
    "a, B ,a,,c" -> ["a", "b", "c"]

    - lower-case
    - sin espacios internos (" after credits " -> "aftercredits")
    - sin duplicados, conservando el orden
    """
    cleaned = (raw or "").strip().strip('"').strip("'").strip()
    if not cleaned:
        return []

    parts = ["".join(p.split()).lower() for p in cleaned.split(",")]

    seen: set[str] = set()
    out: list[str] = []
    for p in parts:
        if not p or p in seen:
            continue
        seen.add(p)
        out.append(p)
    return out


def _resolve_path(raw: str, *, base: Path) -> Path:
    p = Path(raw).expanduser()
    return p if p.is_absolute() else (base / p)


# ============================================================
# MODO DE EJECUCIÓN
# ============================================================

DEBUG_MODE: bool = _get_env_bool("DEBUG_MODE", False)
SILENT_MODE: bool = _get_env_bool("SILENT_MODE", False)

HTTP_DEBUG: bool = _get_env_bool("HTTP_DEBUG", False)
LOG_LEVEL: str | None = _get_env_str("LOG_LEVEL", None)


# ============================================================
# LOGGER (persistencia opcional a fichero por ejecución)
# ============================================================

LOGGER_FILE_ENABLED: bool = _get_env_bool("LOGGER_FILE_ENABLED", False)

LOGGER_FILE_DIR: Final[Path] = _resolve_path(_get_env_str("LOGGER_FILE_DIR", "logs") or "logs", base=PROJECT_DIR)
LOGGER_FILE_PREFIX: Final[str] = _get_env_str("LOGGER_FILE_PREFIX", "run") or "run"
LOGGER_FILE_INCLUDE_PID: bool = _get_env_bool("LOGGER_FILE_INCLUDE_PID", True)


def _sanitize_filename_component(s: str) -> str:
    out_chars = [ch if (ch.isalnum() or ch in ("-", "_", ".")) else "_" for ch in (s or "")]
    cleaned = "".join(out_chars).strip("._-")
    return cleaned or "run"


def _build_logger_file_path() -> Path | None:
    """
    Calcula el path UNA vez y lo congela en os.environ["LOGGER_FILE_PATH"] para que
    workers de uvicorn (que heredan el entorno) escriban en el mismo fichero.
    """
    if not LOGGER_FILE_ENABLED:
        return None

    env_path = _clean_env_raw(os.getenv("LOGGER_FILE_PATH"))
    if env_path:
        resolved = _resolve_path(env_path, base=PROJECT_DIR).resolve()
        os.environ["LOGGER_FILE_PATH"] = str(resolved)
        return resolved

    ts = _sanitize_filename_component(datetime.now().strftime("%Y-%m-%d_%H-%M-%S"))
    prefix = _sanitize_filename_component(LOGGER_FILE_PREFIX)
    pid_part = f"_{os.getpid()}" if LOGGER_FILE_INCLUDE_PID else ""

    resolved = (LOGGER_FILE_DIR / f"{prefix}_{ts}{pid_part}.log").resolve()
    os.environ["LOGGER_FILE_PATH"] = str(resolved)
    return resolved


LOGGER_FILE_PATH: Path | None = _build_logger_file_path()
