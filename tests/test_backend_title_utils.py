from backend.title_utils import (
    clean_marker_title,
    collapse_whitespace,
    ends_with_marker,
    is_negative_answer,
    normalize_query_for_compare,
    normalize_title_for_compare,
    strip_trailing_year,
    title_matches_prefix,
)


def test_strip_trailing_year():
    assert strip_trailing_year("Title Name 2021") == "Title Name"
    assert strip_trailing_year("  Blade Runner 2049 ") == "Blade Runner"
    assert strip_trailing_year("2001: A Space Odyssey") == "2001: A Space Odyssey"
    assert strip_trailing_year("") == ""


def test_marker_helpers():
    assert ends_with_marker("Dune *  ") is True
    assert ends_with_marker("Dune") is False
    assert clean_marker_title(" Dune * ") == "Dune"
    assert clean_marker_title("Dune ?") == "Dune"
    assert clean_marker_title("Dune") == "Dune"


def test_normalize_title_for_compare():
    assert normalize_title_for_compare("Title Name (2021 film)") == "title name"
    assert normalize_title_for_compare("Spider-Man: No Way Home") == "spiderman no way home"
    assert normalize_title_for_compare("  A   B  ") == "a b"
    assert collapse_whitespace(" a \n b ") == "a b"


def test_normalize_query_strips_year_before_compare():
    assert normalize_query_for_compare("Title Name 2021") == "title name"
    assert normalize_query_for_compare("Title Name (2021 film)") == normalize_title_for_compare("Title Name (2021 film)")


def test_title_matches_prefix():
    assert title_matches_prefix("title name", "title name") is True
    assert title_matches_prefix("title name 2", "title name") is True
    assert title_matches_prefix("other", "title name") is False
    assert title_matches_prefix("anything", "") is False


def test_is_negative_answer_matches_whole_words():
    assert is_negative_answer("No stinger") is True
    assert is_negative_answer("Nothing after the credits") is True
    assert is_negative_answer("None") is True
    assert is_negative_answer("Nope, nothing") is True
    assert is_negative_answer("Did you know?") is False
    assert is_negative_answer("Another scene after the credits") is False
    assert is_negative_answer("") is False
