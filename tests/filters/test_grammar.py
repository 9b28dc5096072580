import pytest
from pydantic import ValidationError

from rrfsearch.constants import FILTER_OPERATORS
from rrfsearch.errors import InvalidFilter
from rrfsearch.filters import (
    Combinator,
    FilterCondition,
    FilterExpression,
    FilterGroup,
    Operator,
    check_values,
    parse_filter,
    validate,
)


class TestValidateNoFilter:
    @pytest.mark.parametrize("expr", [None, {}, "status=published", 42, [], True])
    def test_absent_or_non_object_is_valid(self, expr):
        assert validate(expr) is True

    def test_expression_without_filters_is_valid(self):
        assert validate({"something": "else"}) is True

    def test_non_sequence_filters_is_valid(self):
        assert validate({"filters": "status"}) is True

    def test_empty_filter_list_is_valid(self):
        assert validate({"filters": []}) is True


class TestValidateConditions:
    @pytest.mark.parametrize("operator", FILTER_OPERATORS)
    def test_every_operator_is_accepted(self, operator):
        expr = {"filters": [{"field": "status", "operator": operator, "value": "x"}]}
        assert validate(expr) is True

    def test_unknown_operator_is_rejected(self):
        expr = {"filters": [{"field": "status", "operator": "bogus", "value": "x"}]}
        assert validate(expr) is False

    def test_operator_is_case_sensitive(self):
        expr = {"filters": [{"field": "status", "operator": "EQ", "value": "x"}]}
        assert validate(expr) is False

    def test_value_shape_is_not_checked(self):
        expr = {"filters": [{"field": "tags", "operator": "in", "value": "not-a-list"}]}
        assert validate(expr) is True

    def test_missing_operator_is_rejected(self):
        assert validate({"filters": [{"field": "status", "value": "x"}]}) is False

    def test_missing_field_is_rejected(self):
        assert validate({"filters": [{"operator": "eq", "value": "x"}]}) is False

    def test_blank_field_is_rejected(self):
        assert validate({"filters": [{"field": "  ", "operator": "eq", "value": "x"}]}) is False

    def test_non_object_member_is_rejected(self):
        assert validate({"filters": ["status = 1"]}) is False

    def test_one_bad_member_fails_whole_expression(self):
        expr = {
            "filters": [
                {"field": "status", "operator": "eq", "value": "published"},
                {"field": "views", "operator": "between", "value": [1, 2]},
            ]
        }
        assert validate(expr) is False


class TestValidateGroups:
    def test_and_group(self):
        expr = {
            "filters": [
                {
                    "and": [
                        {"field": "status", "operator": "eq", "value": "published"},
                        {"field": "views", "operator": "gt", "value": 10},
                    ]
                }
            ]
        }
        assert validate(expr) is True

    def test_or_group(self):
        expr = {"filters": [{"or": [{"field": "lang", "operator": "eq", "value": "en"}]}]}
        assert validate(expr) is True

    def test_group_with_both_combinators_is_rejected(self):
        expr = {
            "filters": [
                {
                    "and": [{"field": "a", "operator": "eq", "value": 1}],
                    "or": [{"field": "b", "operator": "eq", "value": 2}],
                }
            ]
        }
        assert validate(expr) is False

    def test_group_member_missing_field_is_rejected(self):
        expr = {"filters": [{"and": [{"operator": "eq", "value": 1}]}]}
        assert validate(expr) is False

    def test_group_member_with_bad_operator_is_rejected(self):
        expr = {"filters": [{"or": [{"field": "a", "operator": "nope", "value": 1}]}]}
        assert validate(expr) is False

    def test_group_value_must_be_sequence(self):
        assert validate({"filters": [{"and": {"field": "a", "operator": "eq"}}]}) is False

    def test_nested_group_is_rejected(self):
        expr = {"filters": [{"and": [{"or": [{"field": "a", "operator": "eq", "value": 1}]}]}]}
        assert validate(expr) is False

    def test_null_combinator_beside_other_is_rejected(self):
        # Exactly one combinator key, even when the other holds null
        expr = {"filters": [{"and": None, "or": [{"field": "a", "operator": "eq", "value": 1}]}]}
        assert validate(expr) is False


class TestValidateLegacyShape:
    def test_valid_legacy_filters(self):
        expr = {"filter": {"filters": [{"field": "status", "operator": "eq", "value": "x"}]}}
        assert validate(expr) is True

    def test_invalid_legacy_filters(self):
        expr = {"filter": {"filters": [{"field": "status", "operator": "bogus", "value": "x"}]}}
        assert validate(expr) is False


class TestParseFilter:
    def test_decodes_conditions_and_groups(self):
        expr = parse_filter(
            {
                "filters": [
                    {"field": "status", "operator": "eq", "value": "published"},
                    {"or": [{"field": "lang", "operator": "eq", "value": "en"}]},
                ]
            }
        )

        assert expr.filters[0] == FilterCondition(field="status", operator=Operator.EQ, value="published")
        group = expr.filters[1]
        assert isinstance(group, FilterGroup)
        assert group.combinator is Combinator.OR
        assert group.members[0].field == "lang"

    def test_invalid_raises(self):
        with pytest.raises(InvalidFilter):
            parse_filter({"filters": [{"field": "a", "operator": "bogus"}]})

    def test_empty(self):
        assert parse_filter(None).is_empty
        assert parse_filter({}).is_empty

    def test_round_trips_to_canonical_dict(self):
        raw = {"filters": [{"and": [{"field": "a", "operator": "gt", "value": 3}]}]}
        assert parse_filter(raw).to_dict() == raw

    def test_models_are_frozen(self):
        condition = FilterCondition(field="a", operator=Operator.EQ, value=1)
        with pytest.raises(ValidationError):
            condition.field = "b"


def _expression(operator: str, value) -> FilterExpression:
    return parse_filter({"filters": [{"field": "f", "operator": operator, "value": value}]})


class TestCheckValues:
    @pytest.mark.parametrize(
        ("operator", "value"),
        [
            ("eq", "published"),
            ("eq", None),
            ("neq", 3),
            ("gt", 10),
            ("lte", "2024-01-01"),
            ("like", "%draft%"),
            ("fts", "pricing & plans"),
            ("in", ["a", "b"]),
            ("contains", {"tags": ["x"]}),
            ("contains", ["x"]),
            ("is", None),
            ("is", "null"),
            ("is", True),
            ("not", {"anything": "goes"}),
        ],
    )
    def test_accepts_fitting_values(self, operator, value):
        check_values(_expression(operator, value))

    @pytest.mark.parametrize(
        ("operator", "value"),
        [
            ("eq", ["a"]),
            ("gt", True),
            ("gte", None),
            ("ilike", ""),
            ("match", 5),
            ("in", "a"),
            ("in", []),
            ("contains", None),
            ("is", "maybe"),
        ],
    )
    def test_rejects_mismatched_values(self, operator, value):
        with pytest.raises(InvalidFilter):
            check_values(_expression(operator, value))

    def test_checks_group_members(self):
        expr = parse_filter({"filters": [{"and": [{"field": "tags", "operator": "in", "value": "x"}]}]})
        with pytest.raises(InvalidFilter, match="tags"):
            check_values(expr)
