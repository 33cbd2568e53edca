"""
Tests for vista.services.param_collector - visitor params to API params.
"""

import pytest

from vista.services.param_collector import (
    ANALYTICS_PARAMS,
    LISTING_PARAMS,
    OPENHOUSE_PARAMS,
    ParamCollector,
    ParameterSet,
    listing_param_names,
)


# =============================================================================
# ParameterSet
# =============================================================================

class TestParameterSetMerge:
    """Merging N values for one name yields N elements in arrival order."""

    def test_single_scalar(self):
        params = ParameterSet()
        params.merge("cities", "Houston")
        assert params["cities"] == "Houston"

    def test_scalar_then_scalar(self):
        params = ParameterSet()
        params.merge("cities", "Houston")
        params.merge("cities", "Dallas")
        assert params["cities"] == ["Houston", "Dallas"]

    def test_scalar_then_list_keeps_scalar_first(self):
        params = ParameterSet()
        params.merge("cities", "Houston")
        params.merge("cities", ["Dallas", "Austin"])
        assert params["cities"] == ["Houston", "Dallas", "Austin"]

    def test_list_then_scalar(self):
        params = ParameterSet()
        params.merge("cities", ["Houston", "Dallas"])
        params.merge("cities", "Austin")
        assert params["cities"] == ["Houston", "Dallas", "Austin"]

    def test_list_then_list(self):
        params = ParameterSet()
        params.merge("cities", ["a", "b"])
        params.merge("cities", ["c"])
        assert params["cities"] == ["a", "b", "c"]

    @pytest.mark.parametrize("count", [1, 2, 3, 7])
    def test_n_merges_give_n_values(self, count):
        params = ParameterSet()
        for i in range(count):
            params.merge("q", str(i))
        values = params["q"] if count > 1 else [params["q"]]
        assert values == [str(i) for i in range(count)]

    @pytest.mark.parametrize("inputs, expected", [
        (["a", ["b", "c"], "d"], ["a", "b", "c", "d"]),
        ([["a", "b"], "c"], ["a", "b", "c"]),
        ([["a"], "b", ["c", "d"]], ["a", "b", "c", "d"]),
        (["a", ["b"], ["c", "d"], "e", "f"], ["a", "b", "c", "d", "e", "f"]),
        ([["a", "b", "c"]], ["a", "b", "c"]),
    ])
    def test_mixed_scalar_and_list_merges_keep_every_value(self, inputs, expected):
        params = ParameterSet()
        for value in inputs:
            params.merge("q", value)
        assert params["q"] == expected
        assert [value for name, value in params.pairs() if name == "q"] == expected

    def test_values_stringified(self):
        params = ParameterSet()
        params.merge("limit", 20)
        params.merge("count", True)
        assert params["limit"] == "20"
        assert params["count"] == "true"

    def test_empty_list_ignored(self):
        params = ParameterSet()
        params.merge("cities", [])
        assert "cities" not in params

    def test_pairs_expand_lists_in_order(self):
        params = ParameterSet()
        params.merge("cities", ["Houston", "Dallas"])
        params.merge("limit", "5")
        assert list(params.pairs()) == [("cities", "Houston"), ("cities", "Dallas"), ("limit", "5")]

    def test_first(self):
        params = ParameterSet({"cities": ["Houston", "Dallas"], "limit": "5"})
        assert params.first("cities") == "Houston"
        assert params.first("limit") == "5"
        assert params.first("missing", "x") == "x"

    def test_equality_with_dict(self):
        assert ParameterSet({"a": "1"}) == {"a": "1"}


# =============================================================================
# ParamCollector
# =============================================================================

class TestParamCollector:

    def test_absent_and_empty_skipped(self):
        params = LISTING_PARAMS.collect({"cities": "", "minprice": None, "maxprice": []})
        assert len(params) == 0

    def test_unknown_keys_ignored(self):
        params = LISTING_PARAMS.collect({"utm_source": "mail", "cities": "Houston"})
        assert params == {"cities": "Houston"}

    def test_string_value_split(self):
        params = LISTING_PARAMS.collect({"cities": "Houston, Dallas"})
        assert params["cities"] == ["Houston", "Dallas"]

    def test_list_value_sanitized_per_item(self):
        params = LISTING_PARAMS.collect({"cities": ["<b>Houston</b>", "Dallas"]})
        assert params["cities"] == ["Houston", "Dallas"]

    def test_markup_stripped(self):
        params = LISTING_PARAMS.collect({"q": "<script>x</script>Main"})
        assert "<" not in params["q"]

    def test_prefixed_name_maps_to_api_name(self):
        params = LISTING_PARAMS.collect({"vista-minprice": "300000"})
        assert params == {"minprice": "300000"}

    def test_prefixed_and_bare_both_present_merge_prefixed_first(self):
        params = LISTING_PARAMS.collect({"cities": "Dallas", "vista-cities": "Houston"})
        assert params["cities"] == ["Houston", "Dallas"]

    def test_trim_tokens_option(self):
        collector = ParamCollector({"cities": "cities"}, trim_tokens=True)
        assert collector.collect({"cities": "Houston , Dallas"})["cities"] == ["Houston", "Dallas"]

    def test_trim_tokens_override(self):
        collector = ParamCollector({"cities": "cities"})
        params = collector.collect({"cities": "Houston , Dallas"}, trim_tokens=True)
        assert params["cities"] == ["Houston", "Dallas"]

    def test_never_raises_on_odd_values(self):
        params = LISTING_PARAMS.collect({"limit": 5, "offset": 0.5})
        assert params == {"limit": "5", "offset": "0.5"}

    def test_api_names_distinct(self):
        names = OPENHOUSE_PARAMS.api_names()
        assert len(names) == len(set(names))
        assert "startdate" in names


class TestMappingTables:

    def test_listing_names_include_prefixed_and_bare(self):
        names = listing_param_names()
        assert "vista-cities" in names
        assert "cities" in names
        assert names.index("vista-cities") < names.index("cities")

    def test_analytics_supports_query_filters(self):
        assert "minprice" in ANALYTICS_PARAMS.api_names()
        assert "listing_ids" not in ANALYTICS_PARAMS.api_names()
