import pytest

from rrfsearch.filters import canonicalize, is_filter_applied

STATUS = {"field": "status", "operator": "eq", "value": "published"}
LANG_GROUP = {"or": [{"field": "lang", "operator": "eq", "value": "en"}, {"field": "lang", "operator": "eq", "value": "de"}]}


class TestCanonicalize:
    @pytest.mark.parametrize("expr", [None, {}, "", 0, []])
    def test_empty_becomes_empty_filter(self, expr):
        assert canonicalize(expr) == {}

    def test_current_shape(self):
        assert canonicalize({"filters": [STATUS, LANG_GROUP]}) == {"filters": [STATUS, LANG_GROUP]}

    def test_extra_keys_are_dropped(self):
        assert canonicalize({"filters": [STATUS], "note": "x"}) == {"filters": [STATUS]}

    def test_legacy_shape_matches_current_shape(self):
        legacy = canonicalize({"filter": {"filters": [STATUS]}})
        current = canonicalize({"filters": [STATUS]})
        assert legacy == current == {"filters": [STATUS]}

    def test_legacy_path_wins_when_both_present(self):
        expr = {"filter": {"filters": [LANG_GROUP]}, "filters": [STATUS]}
        assert canonicalize(expr) == {"filters": [LANG_GROUP]}

    def test_shape_without_filters_passes_through(self):
        expr = {"status": "published"}
        assert canonicalize(expr) is expr

    def test_non_sequence_filters_passes_through(self):
        expr = {"filters": "status = published"}
        assert canonicalize(expr) is expr

    def test_empty_filter_list_is_kept(self):
        assert canonicalize({"filters": []}) == {"filters": []}

    def test_does_not_mutate_input(self):
        filters = [STATUS]
        expr = {"filter": {"filters": filters}}
        result = canonicalize(expr)
        result["filters"].append(LANG_GROUP)
        assert expr == {"filter": {"filters": [STATUS]}}

    @pytest.mark.parametrize(
        "expr",
        [
            None,
            {},
            {"filters": [STATUS]},
            {"filter": {"filters": [STATUS, LANG_GROUP]}},
            {"filter": {"filters": [LANG_GROUP]}, "filters": [STATUS]},
            {"filters": "raw"},
            {"status": "published"},
        ],
    )
    def test_is_idempotent(self, expr):
        once = canonicalize(expr)
        assert canonicalize(once) == once


class TestIsFilterApplied:
    def test_empty(self):
        assert is_filter_applied({}) is False
        assert is_filter_applied({"filters": []}) is False

    def test_non_empty(self):
        assert is_filter_applied({"filters": [STATUS]}) is True

    def test_pass_through_shape_counts_as_applied(self):
        assert is_filter_applied({"status": "published"}) is True
