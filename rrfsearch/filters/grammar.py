from collections.abc import Callable, Mapping
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from rrfsearch.constants import FILTER_OPERATORS, IS_LITERALS
from rrfsearch.errors import InvalidFilter


class Operator(StrEnum):
    EQ = "eq"
    NEQ = "neq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    LIKE = "like"
    ILIKE = "ilike"
    IN = "in"
    CONTAINS = "contains"
    IS = "is"
    NOT = "not"
    FTS = "fts"
    MATCH = "match"


class Combinator(StrEnum):
    AND = "and"
    OR = "or"


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class FilterCondition(_FrozenModel):
    field: str = Field(..., min_length=1)
    operator: Operator
    value: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {"field": self.field, "operator": self.operator.value, "value": self.value}


class FilterGroup(_FrozenModel):
    combinator: Combinator
    members: tuple[FilterCondition, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {self.combinator.value: [m.to_dict() for m in self.members]}


type FilterMember = FilterCondition | FilterGroup


class FilterExpression(_FrozenModel):
    """Root of a metadata filter; top-level members are AND-combined."""

    filters: tuple[FilterMember, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.filters

    def conditions(self) -> list[FilterCondition]:
        out: list[FilterCondition] = []
        for member in self.filters:
            if isinstance(member, FilterGroup):
                out.extend(member.members)
            else:
                out.append(member)
        return out

    def to_dict(self) -> dict[str, Any]:
        return {"filters": [m.to_dict() for m in self.filters]}


# --- Syntactic validation ---


def is_sequence(value: Any) -> bool:
    return isinstance(value, list | tuple)


def _is_operator(value: Any) -> bool:
    return isinstance(value, str) and value in FILTER_OPERATORS


def _has_field(item: Mapping) -> bool:
    field = item.get("field")
    return isinstance(field, str) and bool(field.strip())


def _is_condition(item: Any) -> bool:
    return isinstance(item, Mapping) and _has_field(item) and _is_operator(item.get("operator"))


def _group_members(item: Mapping) -> tuple[Combinator, Any] | None:
    has_and = Combinator.AND.value in item
    has_or = Combinator.OR.value in item
    if has_and == has_or:
        return None
    combinator = Combinator.AND if has_and else Combinator.OR
    return combinator, item[combinator.value]


def _is_valid_member(item: Any) -> bool:
    if not isinstance(item, Mapping):
        return False

    if _has_field(item) and item.get("operator"):
        return _is_operator(item["operator"])

    group = _group_members(item)
    if group is None:
        return False
    _, members = group
    if not is_sequence(members):
        return False
    return all(_is_condition(m) for m in members)


def filter_sequences(expr: Mapping) -> list[Any]:
    """Every filter sequence an expression carries, legacy nesting included."""
    found = []
    legacy = expr.get("filter")
    if isinstance(legacy, Mapping) and legacy.get("filters") is not None:
        found.append(legacy["filters"])
    if expr.get("filters") is not None:
        found.append(expr["filters"])
    return found


def validate(expr: Any) -> bool:
    """Syntactic check of a raw filter expression.

    Anything that is not a non-empty mapping means "no filter" and is valid.
    Values are not checked against their operator here, see `check_values`.
    """
    if not isinstance(expr, Mapping) or not expr:
        return True

    for sequence in filter_sequences(expr):
        if not is_sequence(sequence):
            continue
        if not all(_is_valid_member(item) for item in sequence):
            return False
    return True


# --- Typed decode ---


def decode_member(item: Mapping) -> FilterMember:
    if _has_field(item) and item.get("operator"):
        return FilterCondition(field=item["field"], operator=item["operator"], value=item.get("value"))

    combinator, members = _group_members(item)  # type: ignore[misc]
    return FilterGroup(
        combinator=combinator,
        members=tuple(
            FilterCondition(field=m["field"], operator=m["operator"], value=m.get("value")) for m in members
        ),
    )


# --- Operator-specific value checks ---


def _is_scalar(value: Any) -> bool:
    return value is None or isinstance(value, str | int | float | bool)


def _is_comparable(value: Any) -> bool:
    return isinstance(value, str | int | float) and not isinstance(value, bool)


def _is_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _is_scalar_list(value: Any) -> bool:
    return is_sequence(value) and len(value) > 0 and all(_is_scalar(v) and v is not None for v in value)


def _is_containable(value: Any) -> bool:
    return value is not None and (is_sequence(value) or isinstance(value, Mapping) or _is_scalar(value))


def _is_is_literal(value: Any) -> bool:
    if value is None or isinstance(value, bool):
        return True
    return isinstance(value, str) and value.lower() in IS_LITERALS


_VALUE_CHECKS: dict[Operator, tuple[Callable[[Any], bool], str]] = {
    Operator.EQ: (_is_scalar, "a scalar"),
    Operator.NEQ: (_is_scalar, "a scalar"),
    Operator.GT: (_is_comparable, "a number or string"),
    Operator.GTE: (_is_comparable, "a number or string"),
    Operator.LT: (_is_comparable, "a number or string"),
    Operator.LTE: (_is_comparable, "a number or string"),
    Operator.LIKE: (_is_text, "a non-empty string"),
    Operator.ILIKE: (_is_text, "a non-empty string"),
    Operator.FTS: (_is_text, "a non-empty string"),
    Operator.MATCH: (_is_text, "a non-empty string"),
    Operator.IN: (_is_scalar_list, "a non-empty list of scalars"),
    Operator.CONTAINS: (_is_containable, "a list, object or scalar"),
    Operator.IS: (_is_is_literal, "null, true, false or 'unknown'"),
    Operator.NOT: (lambda _: True, "any value"),
}


def check_values(expression: FilterExpression) -> None:
    """Raise InvalidFilter when a condition's value does not fit its operator."""
    for condition in expression.conditions():
        check, expected = _VALUE_CHECKS[condition.operator]
        if not check(condition.value):
            raise InvalidFilter(
                f"Operator '{condition.operator.value}' on field '{condition.field}' expects {expected}."
            )
