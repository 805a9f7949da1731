from __future__ import annotations

"""
backend/models.py

Modelos inmutables compartidos por fuentes, caché y resolvedor.

- SearchQuery: consulta normalizada (se construye una vez por petición).
- Stinger / ScrapeResult: respuesta estructurada de una fuente.
    * stingers vacío  -> "comprobado, no hay escenas" (cacheable)
    * None            -> "esta fuente no sabe" (no cacheable)
- SourceOutcome: Answered / NoAnswer / Failed (resultado de intentar una fuente).
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from backend.errors import SchemaError
from backend.title_utils import strip_trailing_year


class StingerType(str, Enum):
    MID_CREDIT = "mid-credit-scene"
    POST_CREDIT = "post-credit-scene"

    @property
    def label(self) -> str:
        return self.value.replace("-", " ")


@dataclass(frozen=True)
class SearchQuery:
    query: str
    title: str
    year: str
    canonical_id: str

    @property
    def query_without_year(self) -> str:
        return strip_trailing_year(self.query)


@dataclass(frozen=True)
class Stinger:
    type: StingerType
    note: str | None = None

    def to_dict(self) -> dict[str, str]:
        out = {"type": self.type.value}
        if self.note:
            out["note"] = self.note
        return out


@dataclass(frozen=True)
class ScrapeResult:
    title: str
    link: str
    stingers: tuple[Stinger, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, object]:
        return {
            "title": self.title,
            "link": self.link,
            "stingers": [s.to_dict() for s in self.stingers],
        }

    @classmethod
    def from_dict(cls, data: object) -> "ScrapeResult":
        """Inverso de to_dict. Lanza SchemaError si el payload no encaja."""
        if not isinstance(data, Mapping):
            raise SchemaError(f"ScrapeResult payload must be an object, got {type(data).__name__}")

        title = data.get("title")
        link = data.get("link")
        raw_stingers = data.get("stingers")
        if not isinstance(title, str) or not isinstance(link, str) or not isinstance(raw_stingers, list):
            raise SchemaError("ScrapeResult payload missing title/link/stingers")

        stingers: list[Stinger] = []
        for raw in raw_stingers:
            if not isinstance(raw, Mapping):
                raise SchemaError("stinger entry must be an object")
            try:
                kind = StingerType(raw.get("type"))
            except ValueError as exc:
                raise SchemaError(f"unknown stinger type: {raw.get('type')!r}") from exc
            note = raw.get("note")
            stingers.append(Stinger(type=kind, note=note if isinstance(note, str) and note else None))

        return cls(title=title, link=link, stingers=tuple(stingers))


# ============================================================================
# Resultado de intentar una fuente
# ============================================================================


@dataclass(frozen=True)
class Answered:
    result: ScrapeResult


@dataclass(frozen=True)
class NoAnswer:
    pass


@dataclass(frozen=True)
class Failed:
    error: BaseException


SourceOutcome = Union[Answered, NoAnswer, Failed]
