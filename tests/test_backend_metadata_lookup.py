import pytest

from backend.errors import TransportError
from backend.metadata_lookup import MetadataLookup, build_search_query, clean_canonical_id

BASE = "https://cinemeta.test"
META_URL = f"{BASE}/meta/movie/tt0000001.json"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("tt0000001", "tt0000001"), ("tt0000001.json", "tt0000001"), (" tt1.json ", "tt1"), ("", "")],
)
def test_clean_canonical_id(raw, expected):
    assert clean_canonical_id(raw) == expected


def test_build_search_query_without_year():
    q = build_search_query("tt1", "Title Name", None)
    assert q.query == "Title Name"
    assert q.year == ""


def test_lookup_builds_query_from_meta(fake_http):
    http = fake_http({META_URL: {"meta": {"id": "tt0000001", "name": "Title Name", "releaseInfo": "2021"}}})

    query = MetadataLookup(http, base_url=BASE).lookup("tt0000001.json")

    assert query is not None
    assert query.query == "Title Name 2021"
    assert query.title == "Title Name"
    assert query.year == "2021"
    assert query.canonical_id == "tt0000001"
    assert http.urls == [META_URL]


def test_numeric_release_info_is_coerced(fake_http):
    http = fake_http({META_URL: {"meta": {"id": "tt0000001", "name": "Title Name", "releaseInfo": 2021}}})

    query = MetadataLookup(http, base_url=BASE)("tt0000001")

    assert query is not None
    assert query.query == "Title Name 2021"


@pytest.mark.parametrize(
    "payload",
    [
        TransportError("down", status_code=503),
        {"meta": None},
        {"meta": {"id": "tt0000001"}},
        {"meta": {"id": 1, "name": "X"}},
        [],
    ],
)
def test_failures_resolve_to_none(fake_http, payload):
    http = fake_http({META_URL: payload})

    assert MetadataLookup(http, base_url=BASE).lookup("tt0000001") is None


def test_empty_id_does_not_call_network(fake_http):
    http = fake_http()

    assert MetadataLookup(http, base_url=BASE).lookup(".json") is None
    assert http.calls == []
