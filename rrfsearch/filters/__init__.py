from rrfsearch.filters.canonical import canonicalize, is_filter_applied, parse_filter
from rrfsearch.filters.grammar import (
    Combinator,
    FilterCondition,
    FilterExpression,
    FilterGroup,
    Operator,
    check_values,
    validate,
)

__all__ = [
    "Combinator",
    "FilterCondition",
    "FilterExpression",
    "FilterGroup",
    "Operator",
    "canonicalize",
    "check_values",
    "is_filter_applied",
    "parse_filter",
    "validate",
]
