"""
backend/title_utils.py

Utilidades puras de normalización de títulos para las fuentes de stingers.

- strip_trailing_year: "Dune 2021" -> "Dune"
- clean_marker_title: "Dune *" -> "Dune" (convención de marcador del fan-site)
- normalize_title_for_compare: "Dune (2021 film)" -> "dune"
- is_negative_answer: "Nothing after the credits" -> True, "You know..." -> False

No hace logging ni IO (módulo core/utility).
"""

from __future__ import annotations

import re
from typing import Final

# Año de 4 dígitos al final de la consulta (la consulta es "<title> <year>")
_TRAILING_YEAR_RE: Final[re.Pattern[str]] = re.compile(r"[0-9]{4}$")

# Marcadores de cierre en los títulos de búsqueda del fan-site
_TRAILING_MARKER_RE: Final[re.Pattern[str]] = re.compile(r"[*|?]$")

# Texto entre paréntesis: "(2021 film)", "(segment)"
_PARENTHETICAL_RE: Final[re.Pattern[str]] = re.compile(r"\s*\(.*?\)\s*")

# Para compare: latin básico + dígitos + espacio
_COMPARE_NON_ALNUM_RE: Final[re.Pattern[str]] = re.compile(r"[^a-zA-Z0-9 ]")

_WS_RE: Final[re.Pattern[str]] = re.compile(r"\s+")

# Respuesta negativa del agregador: "No stinger", "Nothing after the credits"...
_NEGATIVE_ANSWER_RE: Final[re.Pattern[str]] = re.compile(r"\bno(?:ne|thing|t|pe)?\b")


def collapse_whitespace(text: str) -> str:
    return _WS_RE.sub(" ", text or "").strip()


def strip_trailing_year(text: str) -> str:
    s = (text or "").strip()
    return _TRAILING_YEAR_RE.sub("", s).strip()


def ends_with_marker(text: str, marker: str = "*") -> bool:
    return (text or "").strip().endswith(marker)


def clean_marker_title(text: str) -> str:
    s = (text or "").strip()
    return _TRAILING_MARKER_RE.sub("", s).strip()


def normalize_title_for_compare(text: str) -> str:
    """
    Normalización agresiva y estable para comparar filas de tablas con la consulta:

    1) elimina paréntesis y su contenido
    2) elimina todo lo que no sea [a-zA-Z0-9 ]
    3) colapsa espacios, trim, lower
    """
    s = _PARENTHETICAL_RE.sub(" ", text or "")
    s = _COMPARE_NON_ALNUM_RE.sub("", s)
    return collapse_whitespace(s).lower()


def normalize_query_for_compare(query: str) -> str:
    """Consulta "<title> <year>" -> título normalizado sin año."""
    return normalize_title_for_compare(strip_trailing_year(query))


def title_matches_prefix(candidate: str, wanted: str) -> bool:
    """Igualdad o prefijo sobre textos ya normalizados (wanted vacío nunca casa)."""
    if not wanted:
        return False
    return candidate == wanted or candidate.startswith(wanted)


def is_negative_answer(text: str) -> bool:
    """
    True si el texto declara que no hay escenas: "no", "none", "nothing",
    "not" o "nope" como palabra completa ("know" o "another" no cuentan).
    """
    if not text:
        return False
    return _NEGATIVE_ANSWER_RE.search(text.lower()) is not None
