from pathlib import Path

import backend.config_base as cfg


def test_clean_env_raw():
    assert cfg._clean_env_raw(None) is None
    assert cfg._clean_env_raw("  ") is None
    assert cfg._clean_env_raw("'value'") == "value"
    assert cfg._clean_env_raw('"value"') == "value"
    assert cfg._clean_env_raw("  value ") == "value"


def test_get_env_parsers(monkeypatch):
    monkeypatch.delenv("TEST_STR", raising=False)
    assert cfg._get_env_str("TEST_STR", "default") == "default"

    monkeypatch.setenv("TEST_STR", "  hello ")
    assert cfg._get_env_str("TEST_STR", "default") == "hello"

    monkeypatch.setenv("TEST_INT", "10")
    assert cfg._get_env_int("TEST_INT", 1) == 10
    monkeypatch.setenv("TEST_INT", "bad")
    assert cfg._get_env_int("TEST_INT", 1) == 1

    monkeypatch.setenv("TEST_FLOAT", "3.5")
    assert cfg._get_env_float("TEST_FLOAT", 1.0) == 3.5
    monkeypatch.setenv("TEST_FLOAT", "bad")
    assert cfg._get_env_float("TEST_FLOAT", 1.0) == 1.0

    monkeypatch.setenv("TEST_BOOL", "yes")
    assert cfg._get_env_bool("TEST_BOOL", False) is True
    monkeypatch.setenv("TEST_BOOL", "no")
    assert cfg._get_env_bool("TEST_BOOL", True) is False
    monkeypatch.setenv("TEST_BOOL", "maybe")
    assert cfg._get_env_bool("TEST_BOOL", True) is True


def test_caps():
    assert cfg._cap_int("CAP", 1, min_v=3, max_v=5) == 3
    assert cfg._cap_int("CAP", 10, min_v=3, max_v=5) == 5
    assert cfg._cap_int("CAP", 4, min_v=3, max_v=5) == 4

    assert cfg._cap_float("CAPF", 0.1, min_v=0.5) == 0.5
    assert cfg._cap_float("CAPF", 0.6, min_v=0.5) == 0.6
    assert cfg._cap_float("CAPF", 99.0, min_v=0.5, max_v=60.0) == 60.0


def test_get_env_url(monkeypatch):
    monkeypatch.delenv("TEST_URL", raising=False)
    assert cfg._get_env_url("TEST_URL", "https://aftercredits.com/") == "https://aftercredits.com"

    monkeypatch.setenv("TEST_URL", "http://localhost:8080/mirror/")
    assert cfg._get_env_url("TEST_URL", "https://x.org") == "http://localhost:8080/mirror"

    for bad in ("aftercredits.com", "ftp://x.org", "https://"):
        monkeypatch.setenv("TEST_URL", bad)
        assert cfg._get_env_url("TEST_URL", "https://x.org") == "https://x.org"


def test_parse_env_csv_tokens_normalizes_and_dedups():
    assert cfg._parse_env_csv_tokens("AfterCredits, wikipedia ,,tmdb,aftercredits") == [
        "aftercredits",
        "wikipedia",
        "tmdb",
    ]
    assert cfg._parse_env_csv_tokens("'media stinger'") == ["mediastinger"]
    assert cfg._parse_env_csv_tokens("   ") == []


def test_resolve_path_relative_and_absolute(tmp_path):
    base = tmp_path / "base"
    assert cfg._resolve_path(str(tmp_path), base=base) == tmp_path
    assert cfg._resolve_path("data/cache.sqlite", base=base) == base / "data" / "cache.sqlite"


def test_sanitize_filename_component():
    assert cfg._sanitize_filename_component(" run 1 ") == "run_1"
    assert isinstance(cfg.PROJECT_DIR, Path)
