"""
In-memory evaluation of metadata filters.

Filter semantics belong to each backend: remote stores translate a
``MetadataFilters`` descriptor into their own query language. This module is
the interpretation used by the in-memory reference store, applied to the
candidate set before any scoring happens.

Usage:
    from vectorstores.vector_store.filters import matches_filters

    filters = MetadataFilters(
        filters=[
            MetadataFilter(key="year", value=2023, operator=">="),
            MetadataFilter(key="tags", value=["pets"], operator="any"),
        ],
    )
    keep = [node for node in nodes if matches_filters(node.metadata, filters)]
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from vectorstores.vector_store.types import (
    FilterCondition,
    FilterOperator,
    MetadataFilter,
    MetadataFilters,
    MetadataFilterValue,
)

# =============================================================================
# Value Parsing
# =============================================================================


def parse_primitive_value(value: MetadataFilterValue | None) -> str | int | float:
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise ValueError("Value must be a string or number")
    return value


def parse_array_value(value: MetadataFilterValue | None) -> list[str | int | float]:
    if not isinstance(value, list) or not all(
        isinstance(v, (str, int, float)) and not isinstance(v, bool) for v in value
    ):
        raise ValueError("Value must be an array of strings or numbers")
    return value


def parse_number_value(value: MetadataFilterValue | None) -> int | float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("Value must be a number")
    return value


# =============================================================================
# Evaluation
# =============================================================================


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


def _compare(actual: Any, expected: int | float, operator: FilterOperator) -> bool:
    if isinstance(actual, bool) or not isinstance(actual, (int, float)):
        return False
    match operator:
        case FilterOperator.GT:
            return actual > expected
        case FilterOperator.LT:
            return actual < expected
        case FilterOperator.GTE:
            return actual >= expected
        case FilterOperator.LTE:
            return actual <= expected
    raise ValueError(f"Not a comparison operator: {operator}")


def matches_filter(metadata: Mapping[str, Any], metadata_filter: MetadataFilter) -> bool:
    """
    Evaluate one predicate against a node's metadata.

    A missing key never matches, except for ``!=``, ``nin`` and ``is_empty``.

    Raises:
        ValueError: If the filter value has the wrong type for its operator.
    """
    operator = metadata_filter.operator
    value = metadata_filter.value
    actual = metadata.get(metadata_filter.key)

    match operator:
        case FilterOperator.EQ:
            return actual == parse_primitive_value(value)
        case FilterOperator.NE:
            return actual != parse_primitive_value(value)
        case FilterOperator.GT | FilterOperator.LT | FilterOperator.GTE | FilterOperator.LTE:
            return _compare(actual, parse_number_value(value), operator)
        case FilterOperator.IN:
            return actual in parse_array_value(value)
        case FilterOperator.NIN:
            return actual not in parse_array_value(value)
        case FilterOperator.ANY:
            present = _as_list(actual)
            return any(v in present for v in parse_array_value(value))
        case FilterOperator.ALL:
            present = _as_list(actual)
            return all(v in present for v in parse_array_value(value))
        case FilterOperator.CONTAINS:
            return parse_primitive_value(value) in _as_list(actual)
        case FilterOperator.TEXT_MATCH:
            needle = parse_primitive_value(value)
            return isinstance(actual, str) and str(needle) in actual
        case FilterOperator.IS_EMPTY:
            return actual is None or actual == [] or actual == ""
    raise ValueError(f"Unsupported filter operator: {operator}")


def matches_filters(
    metadata: Mapping[str, Any], filters: MetadataFilters | None
) -> bool:
    """
    Evaluate a filter set; no filters (or an empty set) matches everything.
    """
    if filters is None or not filters.filters:
        return True
    results = (matches_filter(metadata, f) for f in filters.filters)
    if filters.condition == FilterCondition.OR:
        return any(results)
    return all(results)


__all__ = [
    "parse_primitive_value",
    "parse_array_value",
    "parse_number_value",
    "matches_filter",
    "matches_filters",
]
