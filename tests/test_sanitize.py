"""
Tests for vista.utils.sanitize - external input cleaning.
"""

import pytest

from vista.utils.sanitize import (
    esc_url,
    filter_query_string,
    is_valid_url,
    prepare_field_value,
    sanitize_text,
    split_param_value,
    to_int,
)


class TestSanitizeText:

    def test_strips_tags(self):
        assert sanitize_text("<b>Houston</b>") == "Houston"

    def test_collapses_whitespace(self):
        assert sanitize_text("  North\n\tHouston  ") == "North Houston"

    def test_none_is_empty(self):
        assert sanitize_text(None) == ""

    def test_non_string_converted(self):
        assert sanitize_text(20) == "20"

    def test_script_removed(self):
        assert "<script>" not in sanitize_text("<script>alert(1)</script>Dallas")


class TestSplitParamValue:
    """Multi-value separators: '%2C+', ', ' and '+'."""

    @pytest.mark.parametrize("raw, expected", [
        ("Houston, Dallas", ["Houston", "Dallas"]),
        ("Houston+Dallas", ["Houston", "Dallas"]),
        ("Houston%2C+Dallas", ["Houston", "Dallas"]),
        ("Houston, Dallas+Austin", ["Houston", "Dallas", "Austin"]),
    ])
    def test_separators(self, raw, expected):
        assert split_param_value(raw) == expected

    def test_single_value_stays_scalar(self):
        assert split_param_value("Houston") == "Houston"

    def test_plain_comma_is_not_a_separator(self):
        assert split_param_value("Houston,Dallas") == "Houston,Dallas"

    def test_untrimmed_by_default(self):
        assert split_param_value("Houston , Dallas") == ["Houston ", "Dallas"]

    def test_trim(self):
        assert split_param_value("Houston , Dallas", trim=True) == ["Houston", "Dallas"]


class TestPrepareFieldValue:

    def test_plain_commas_split(self):
        assert prepare_field_value("98877034,98870614, 98886014") == ["98877034", "98870614", "98886014"]

    def test_empty_tokens_dropped(self):
        assert prepare_field_value("a,,b,") == ["a", "b"]

    def test_empty_value(self):
        assert prepare_field_value("") == []
        assert prepare_field_value(None) == []


class TestToInt:

    @pytest.mark.parametrize("raw, expected", [
        ("20", 20),
        ("20abc", 20),
        ("abc", 0),
        (" 40", 40),
        (15, 15),
    ])
    def test_lenient_parsing(self, raw, expected):
        assert to_int(raw, default=99) == expected

    def test_missing_uses_default(self):
        assert to_int(None, default=20) == 20
        assert to_int("", default=20) == 20


class TestQueryString:

    def test_filter_drops_disallowed_characters(self):
        assert filter_query_string("cities=Houston&x=<script>") == "cities=Houston&x=script"

    def test_filter_keeps_allowed(self):
        assert filter_query_string("a=1, 2&b=%2C+c?") == "a=1, 2&b=%2C+c?"

    def test_filter_empty(self):
        assert filter_query_string(None) == ""


class TestUrls:

    def test_valid_url(self):
        assert is_valid_url("https://tours.test/1")
        assert not is_valid_url("tours.test/1")
        assert not is_valid_url("javascript:alert(1)")
        assert not is_valid_url(None)

    def test_esc_url_rejects_other_schemes(self):
        assert esc_url("javascript:alert(1)") == ""

    def test_esc_url_escapes_quotes_and_spaces(self):
        escaped = esc_url("https://cdn.test/a b'.jpg")
        assert " " not in escaped
        assert "'" not in escaped
