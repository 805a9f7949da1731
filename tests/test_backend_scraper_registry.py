import pytest

from backend.aftercredits_scraper import AfterCreditsScraper
from backend.errors import ConfigurationError
from backend.mediastinger_scraper import MediaStingerScraper
from backend.result_cache import MemoryResultCache
from backend.scraper_registry import SourceName, build_sources, parse_source_order
from backend.tmdb_scraper import TmdbScraper
from backend.wikipedia_scraper import WikipediaScraper


def test_parse_source_order_keeps_first_occurrence():
    order = parse_source_order(["TMDB", " aftercredits", "tmdb", ""])
    assert order == [SourceName.TMDB, SourceName.AFTERCREDITS]


@pytest.mark.parametrize("tokens", [[], [""], ["aftercredits", "imdb"]])
def test_parse_source_order_rejects_empty_or_unknown(tokens):
    with pytest.raises(ConfigurationError):
        parse_source_order(tokens)


def test_build_sources_respects_order_and_wires_tmdb_id_cache():
    namespaces: list[str] = []

    def factory(ns: str) -> MemoryResultCache:
        namespaces.append(ns)
        return MemoryResultCache(ns, 60)

    sources = build_sources(
        [SourceName.TMDB, SourceName.MEDIASTINGER, SourceName.WIKIPEDIA, SourceName.AFTERCREDITS],
        cache_factory=factory,
        tmdb_api_key="key",
    )

    assert [type(s) for s in sources] == [TmdbScraper, MediaStingerScraper, WikipediaScraper, AfterCreditsScraper]
    assert [s.name for s in sources] == ["tmdb", "mediastinger", "wikipedia", "aftercredits"]
    assert namespaces == ["tmdb"]
    assert sources[0].api_key == "key"
    assert sources[0].id_cache is not None


def test_build_sources_without_tmdb_creates_no_id_cache():
    calls: list[str] = []
    build_sources([SourceName.AFTERCREDITS], cache_factory=lambda ns: calls.append(ns))
    assert calls == []
