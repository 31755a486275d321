import pytest

from vectorstores.vector_store.filters import matches_filter, matches_filters
from vectorstores.vector_store.types import (
    FilterCondition,
    FilterOperator,
    MetadataFilter,
    MetadataFilters,
)

METADATA = {
    "category": "pets",
    "year": 2023,
    "tags": ["cat", "indoor"],
    "title": "The cat is on the mat",
    "notes": "",
}


@pytest.mark.parametrize(
    ("key", "operator", "value", "expected"),
    [
        ("category", "==", "pets", True),
        ("category", "==", "wild", False),
        ("category", "!=", "wild", True),
        ("year", ">", 2020, True),
        ("year", "<", 2020, False),
        ("year", ">=", 2023, True),
        ("year", "<=", 2022, False),
        ("category", "in", ["pets", "farm"], True),
        ("category", "nin", ["pets", "farm"], False),
        ("tags", "any", ["dog", "cat"], True),
        ("tags", "all", ["cat", "indoor"], True),
        ("tags", "all", ["cat", "outdoor"], False),
        ("tags", "contains", "indoor", True),
        ("title", "text_match", "on the", True),
        ("title", "text_match", "dog", False),
        ("notes", "is_empty", None, True),
        ("category", "is_empty", None, False),
    ],
)
def test_operators(key: str, operator: str, value: object, expected: bool) -> None:
    """Each operator evaluates against the node metadata."""

    metadata_filter = MetadataFilter(key=key, value=value, operator=operator)

    assert matches_filter(METADATA, metadata_filter) is expected


def test_missing_key() -> None:
    """A missing key only satisfies negative and emptiness operators."""

    assert not matches_filter(METADATA, MetadataFilter(key="missing", value="x"))
    assert not matches_filter(
        METADATA, MetadataFilter(key="missing", value=1, operator=FilterOperator.GT)
    )
    assert matches_filter(
        METADATA, MetadataFilter(key="missing", value="x", operator=FilterOperator.NE)
    )
    assert matches_filter(
        METADATA, MetadataFilter(key="missing", value=["x"], operator=FilterOperator.NIN)
    )
    assert matches_filter(
        METADATA, MetadataFilter(key="missing", operator=FilterOperator.IS_EMPTY)
    )


def test_invalid_values_raise() -> None:
    """Operators reject values of the wrong shape."""

    with pytest.raises(ValueError, match="array"):
        matches_filter(METADATA, MetadataFilter(key="category", value="pets", operator="in"))
    with pytest.raises(ValueError, match="number"):
        matches_filter(METADATA, MetadataFilter(key="year", value="2020", operator=">"))
    with pytest.raises(ValueError, match="string or number"):
        matches_filter(METADATA, MetadataFilter(key="category", value=["pets"]))


def test_conditions() -> None:
    """Filters combine with AND by default, or OR when requested."""

    filters = [
        MetadataFilter(key="category", value="pets"),
        MetadataFilter(key="year", value=1999),
    ]

    assert not matches_filters(METADATA, MetadataFilters(filters=filters))
    assert matches_filters(
        METADATA, MetadataFilters(filters=filters, condition=FilterCondition.OR)
    )


def test_no_filters_match_everything() -> None:
    """None and an empty filter set impose no constraint."""

    assert matches_filters(METADATA, None)
    assert matches_filters({}, MetadataFilters())
