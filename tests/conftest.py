from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

import pytest

from backend.errors import TransportError
from backend.models import SearchQuery


@dataclass(slots=True)
class HttpCall:
    url: str
    kind: str
    headers: Mapping[str, str] | None


@dataclass
class FakeHttp:
    """
    Doble de HttpHelper con routing programable.

    routes: url -> str (HTML) | object (JSON) | BaseException (se lanza).
    Una URL sin ruta lanza TransportError (como un 404).
    """

    routes: dict[str, object] = field(default_factory=dict)
    name: str = "fake"
    calls: list[HttpCall] = field(default_factory=list)

    def _respond(self, url: str, kind: str, headers: Mapping[str, str] | None) -> object:
        self.calls.append(HttpCall(url=url, kind=kind, headers=headers))
        if url not in self.routes:
            raise TransportError(f"no route for {url}", url=url, status_code=404)
        payload = self.routes[url]
        if isinstance(payload, BaseException):
            raise payload
        return payload

    def get_text(self, url: str, *, params=None, headers=None) -> str:
        return str(self._respond(url, "text", headers))

    def get_json(self, url: str, *, params=None, headers=None) -> object:
        return self._respond(url, "json", headers)

    @property
    def urls(self) -> list[str]:
        return [c.url for c in self.calls]


@pytest.fixture()
def fake_http() -> Callable[..., FakeHttp]:
    def _make(routes: dict[str, object] | None = None) -> FakeHttp:
        return FakeHttp(routes=dict(routes or {}))

    return _make


@pytest.fixture()
def make_query() -> Callable[..., SearchQuery]:
    def _make(title: str = "Title Name", year: str = "2021", canonical_id: str = "tt0000001") -> SearchQuery:
        return SearchQuery(
            query=f"{title} {year}".strip(),
            title=title,
            year=year,
            canonical_id=canonical_id,
        )

    return _make
