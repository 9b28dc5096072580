"""Normalization of accepted filter expressions.

Clients may send the current shape ``{"filters": [...]}`` or the legacy,
doubly-nested ``{"filter": {"filters": [...]}}``. Both resolve here to the one
canonical shape the query engine consumes, so legacy knowledge stays in this
module.
"""

from collections.abc import Mapping
from typing import Any

from rrfsearch.errors import InvalidFilter
from rrfsearch.filters.grammar import FilterExpression, decode_member, is_sequence, validate


def _extract_filters(expr: Mapping) -> Any:
    legacy = expr.get("filter")
    if isinstance(legacy, Mapping) and legacy.get("filters") is not None:
        return legacy["filters"]
    return expr.get("filters")


def canonicalize(expr: Any) -> Any:
    """Rewrite a validated filter expression into ``{"filters": [...]}``.

    Never fails. Empty or non-mapping input yields ``{}``; shapes that carry no
    filter sequence are passed through unchanged.
    """
    if not isinstance(expr, Mapping) or not expr:
        return {}

    filters = _extract_filters(expr)
    if filters is None or not is_sequence(filters):
        return expr

    return {"filters": list(filters)}


def is_filter_applied(canonical: Any) -> bool:
    if not isinstance(canonical, Mapping) or not canonical:
        return False
    if "filters" in canonical and is_sequence(canonical["filters"]):
        return len(canonical["filters"]) > 0
    return True


def parse_filter(expr: Any) -> FilterExpression:
    """Validate and decode a raw filter into the typed model.

    Pass-through shapes without a filter sequence decode to an empty expression.
    """
    if not validate(expr):
        raise InvalidFilter()

    canonical = canonicalize(expr)
    filters = canonical.get("filters") if isinstance(canonical, Mapping) else None
    if not is_sequence(filters):
        return FilterExpression()
    return FilterExpression(filters=tuple(decode_member(item) for item in filters))
