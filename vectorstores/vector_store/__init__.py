"""
Vector store query interface and metadata filters.

- types: Query descriptor, result, modes, filters and backend interfaces
- filters: In-memory evaluation of metadata filters
- simple: In-memory reference store (import from ``vectorstores.vector_store.simple``)

Usage:
    from vectorstores.vector_store import VectorStoreQuery, VectorStoreQueryMode

    query = VectorStoreQuery(
        mode=VectorStoreQueryMode.HYBRID,
        query_str="cat",
        query_embedding=[1.0, 0.0],
        similarity_top_k=2,
    )
    result = await store.query(query)
"""

from vectorstores.vector_store.types import (
    DEFAULT_HYBRID_ALPHA,
    DEFAULT_HYBRID_PREFETCH_MULTIPLIER,
    BaseVectorStore,
    CorpusProvider,
    FilterCondition,
    FilterOperator,
    MetadataFilter,
    MetadataFilters,
    MetadataFilterValue,
    QueryPreconditionError,
    VectorStoreError,
    VectorStoreQuery,
    VectorStoreQueryMode,
    VectorStoreQueryResult,
)

from vectorstores.vector_store.filters import (
    matches_filter,
    matches_filters,
)

__all__ = [
    # Types
    "DEFAULT_HYBRID_ALPHA",
    "DEFAULT_HYBRID_PREFETCH_MULTIPLIER",
    "BaseVectorStore",
    "CorpusProvider",
    "FilterCondition",
    "FilterOperator",
    "MetadataFilter",
    "MetadataFilters",
    "MetadataFilterValue",
    "QueryPreconditionError",
    "VectorStoreError",
    "VectorStoreQuery",
    "VectorStoreQueryMode",
    "VectorStoreQueryResult",
    # Filters
    "matches_filter",
    "matches_filters",
]
