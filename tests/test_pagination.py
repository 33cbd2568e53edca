"""
Tests for the Pagination Controller and template rendering helpers.
"""

import pytest
from urllib.parse import parse_qsl, urlsplit

from vista.display.pagination import Direction, build_link, passthrough_pairs
from vista.display.template import NO_PAGE_PARAM, replace_placeholders, url_querystring


def link_params(link):
    return dict(parse_qsl(urlsplit(link.url).query))


class FakeRecord:
    def __init__(self, **fields):
        self.fields = {name.lower(): value for name, value in fields.items()}

    def get_field(self, name):
        return self.fields.get(name.lower(), "Field not found")


# =============================================================================
# build_link
# =============================================================================

class TestForward:

    def test_partial_last_page(self):
        link = build_link(Direction.FORWARD, 20, 20, 45, {}, base_url="/listings/", default_limit=20)
        assert (link.offset, link.limit, link.disabled) == (40, 5, False)
        assert link.url == "/listings/?offset=40&limit=5"

    def test_full_next_page(self):
        link = build_link(Direction.FORWARD, 0, 20, 45, {}, default_limit=20)
        assert (link.offset, link.limit, link.disabled) == (20, 20, False)

    def test_disabled_on_last_page(self):
        link = build_link(Direction.FORWARD, 40, 20, 45, {}, default_limit=20)
        assert link.disabled

    def test_disabled_when_exactly_consumed(self):
        link = build_link(Direction.FORWARD, 20, 20, 40, {}, default_limit=20)
        assert link.disabled

    def test_disabled_with_no_results(self):
        assert build_link(Direction.FORWARD, 0, 20, 0, {}, default_limit=20).disabled


class TestBackward:

    def test_disabled_on_first_page(self):
        link = build_link(Direction.BACKWARD, 0, 20, 45, {}, default_limit=20)
        assert link.disabled
        assert link.offset == 0

    def test_previous_page_uses_default_limit(self):
        link = build_link(Direction.BACKWARD, 40, 5, 45, {}, default_limit=20)
        assert (link.offset, link.limit, link.disabled) == (35, 20, False)

    def test_offset_floored_at_zero(self):
        link = build_link(Direction.BACKWARD, 10, 20, 45, {}, default_limit=20)
        assert link.offset == 0
        assert not link.disabled

    def test_accepts_string_direction(self):
        assert build_link("backward", 20, 20, 45, {}, default_limit=20).offset == 0


class TestPassthrough:

    def test_other_params_carried_in_order(self):
        link = build_link(
            Direction.FORWARD, 0, 20, 45,
            {"cities": "Houston", "offset": "0", "limit": "20", "minprice": "300000"},
            base_url="/listings/", default_limit=20,
        )
        assert link.url == "/listings/?offset=20&limit=20&cities=Houston&minprice=300000"

    def test_prefixed_pagination_params_skipped(self):
        pairs = list(passthrough_pairs({"vista-offset": "20", "vista-limit": "5", "q": "x"}))
        assert pairs == [("q", "x")]

    def test_values_sanitized_and_encoded(self):
        link = build_link(Direction.FORWARD, 0, 20, 45, {"q": "<b>Main St</b>"}, default_limit=20)
        assert "<" not in link.url
        assert link_params(link)["q"] == "Main St"

    def test_list_values_repeated(self):
        pairs = list(passthrough_pairs({"cities": ["Houston", "Dallas"]}))
        assert pairs == [("cities", "Houston"), ("cities", "Dallas")]

    def test_base_url_with_query(self):
        link = build_link(Direction.FORWARD, 0, 20, 45, {}, base_url="/?page_id=7", default_limit=20)
        assert link.url == "/?page_id=7&offset=20&limit=20"


class TestDirection:

    @pytest.mark.parametrize("raw, expected", [
        ("forward", Direction.FORWARD),
        ("backward", Direction.BACKWARD),
        ("back", Direction.BACKWARD),
        ("FORWARD", Direction.FORWARD),
        ("sideways", None),
        (None, None),
    ])
    def test_parse(self, raw, expected):
        assert Direction.parse(raw) is expected


# =============================================================================
# Templates
# =============================================================================

class TestReplacePlaceholders:

    def test_fields_substituted(self):
        record = FakeRecord(listPrice="300,000", address="123 Main St")
        html = replace_placeholders("<b>[listPrice]</b> at [ADDRESS]", record)
        assert html == "<b>300,000</b> at 123 Main St"

    def test_unknown_field(self):
        assert replace_placeholders("[nope]", FakeRecord()) == "Field not found"

    def test_extra_bracket_reported(self):
        record = FakeRecord(**{"b ": "B"})
        assert replace_placeholders("a [b [c] d", record) == "a BERROR: Extra [ before c d"

    def test_entities_decoded_first(self):
        record = FakeRecord(city="Houston")
        assert replace_placeholders("&#91;city&#93; &amp; more", record) == "Houston & more"

    def test_plain_text_untouched(self):
        assert replace_placeholders("no fields here", FakeRecord()) == "no fields here"


class TestUrlQuerystring:

    def test_link_with_filtered_query(self):
        html = url_querystring({"page": "/search/"}, "cities=Houston&x=<script>", "Search")
        assert html == "<a href='/search/?cities=Houston&x=script'>Search</a>"

    def test_no_query(self):
        assert url_querystring({"page": "/search/"}, "", "Go") == "<a href='/search/'>Go</a>"

    def test_page_required(self):
        assert url_querystring({}, "a=1", "Go") == NO_PAGE_PARAM
        assert url_querystring(None, "a=1", "Go") == NO_PAGE_PARAM
