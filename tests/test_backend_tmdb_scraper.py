import pytest

from backend.errors import SchemaError
from backend.models import StingerType
from backend.result_cache import MemoryResultCache
from backend.tmdb_scraper import TmdbScraper, parse_find_response, parse_movie_response

API = "https://api.tmdb.test/3"
WEB = "https://tmdb.test"
FIND_URL = f"{API}/find/tt0000001?external_source=imdb_id&language=en-US"
MOVIE_URL = f"{API}/movie/42?append_to_response=keywords"


def _movie(*keywords: str) -> dict:
    return {
        "id": 42,
        "title": "Title Name",
        "keywords": {"keywords": [{"id": i, "name": name} for i, name in enumerate(keywords, start=1)]},
    }


def _scraper(http, **kwargs):
    kwargs.setdefault("api_key", "token")
    return TmdbScraper(http, api_base_url=API, web_base_url=WEB, **kwargs)


def test_without_api_key_source_is_disabled(fake_http, make_query):
    http = fake_http({FIND_URL: {"movie_results": [{"id": 42}]}})

    assert _scraper(http, api_key="").scrape(make_query()) is None
    assert http.calls == []


def test_keywords_map_to_stingers(fake_http, make_query):
    http = fake_http(
        {
            FIND_URL: {"movie_results": [{"id": 42}]},
            MOVIE_URL: _movie("superhero", "duringcreditsstinger", "aftercreditsstinger"),
        }
    )

    result = _scraper(http).scrape(make_query())

    assert result is not None
    assert result.title == "Title Name"
    assert result.link == "https://tmdb.test/movie/42"
    assert [s.type for s in result.stingers] == [StingerType.MID_CREDIT, StingerType.POST_CREDIT]
    assert http.urls == [FIND_URL, MOVIE_URL]
    assert all(c.headers and c.headers["Authorization"] == "Bearer token" for c in http.calls)


def test_no_relevant_keywords_is_a_definite_empty_result(fake_http, make_query):
    http = fake_http({FIND_URL: {"movie_results": [{"id": 42}]}, MOVIE_URL: _movie("drama")})

    result = _scraper(http).scrape(make_query())

    assert result is not None
    assert result.stingers == ()


def test_unknown_imdb_id_is_no_answer(fake_http, make_query):
    http = fake_http({FIND_URL: {"movie_results": []}})

    assert _scraper(http).scrape(make_query()) is None
    assert http.urls == [FIND_URL]


def test_id_cache_skips_find_on_second_lookup(fake_http, make_query):
    http = fake_http({FIND_URL: {"movie_results": [{"id": 42}]}, MOVIE_URL: _movie()})
    id_cache = MemoryResultCache("tmdb", 60)
    scraper = _scraper(http, id_cache=id_cache)

    scraper.scrape(make_query())
    scraper.scrape(make_query())

    assert id_cache.get("tt0000001") == 42
    assert http.urls == [FIND_URL, MOVIE_URL, MOVIE_URL]


def test_unexpected_movie_shape_raises_schema_error(fake_http, make_query):
    http = fake_http({FIND_URL: {"movie_results": [{"id": 42}]}, MOVIE_URL: {"id": 42, "title": "X"}})

    with pytest.raises(SchemaError):
        _scraper(http).scrape(make_query())


@pytest.mark.parametrize(
    "payload",
    [[], {"movie_results": None}, {"movie_results": [{"id": "42"}]}, {"movie_results": [{"id": True}]}],
)
def test_parse_find_response_rejects_bad_shapes(payload):
    with pytest.raises(SchemaError):
        parse_find_response(payload)


def test_parse_movie_response_rejects_bad_keyword_entry():
    data = {"id": 1, "title": "X", "keywords": {"keywords": [{"id": 1}]}}
    with pytest.raises(SchemaError):
        parse_movie_response(data, web_base_url=WEB)
