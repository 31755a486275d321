"""
Query descriptor, result and collaborator interfaces of the retrieval core.

Every backend answers the same ``VectorStoreQuery`` with the same
``VectorStoreQueryResult`` shape, whatever the mode, so callers never branch
on mode. Backends own their storage and expose it to the core through the
read-only ``CorpusProvider`` protocol.

Query modes:

    | mode      | requires                    | scorers                      |
    |-----------|-----------------------------|------------------------------|
    | default   | query_embedding             | vector                       |
    | bm25      | query_str                   | lexical (BM25)               |
    | hybrid    | query_str + query_embedding | vector + lexical, RRF fusion |
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from vectorstores.schema import CorpusSnapshot, Node

# =============================================================================
# Constants
# =============================================================================

# Each hybrid sub-search fetches multiplier × similarity_top_k candidates.
DEFAULT_HYBRID_PREFETCH_MULTIPLIER = 5

DEFAULT_HYBRID_ALPHA = 0.5


# =============================================================================
# Custom Exceptions
# =============================================================================


class VectorStoreError(Exception):
    """Base exception for vector store and query operations."""

    pass


class QueryPreconditionError(VectorStoreError, ValueError):
    """A query is missing an input its mode requires, or names no valid mode."""

    pass


# =============================================================================
# Query Modes and Filters
# =============================================================================


class VectorStoreQueryMode(StrEnum):
    """Selects which scorer(s) answer a query."""

    DEFAULT = "default"
    BM25 = "bm25"
    HYBRID = "hybrid"


class FilterOperator(StrEnum):
    """Metadata filter operators. Each backend evaluates them natively."""

    EQ = "=="  # default operator (string, number)
    IN = "in"  # value in array (string or number)
    GT = ">"  # number
    LT = "<"  # number
    NE = "!="  # string, number
    GTE = ">="  # number
    LTE = "<="  # number
    NIN = "nin"  # value not in array (string or number)
    ANY = "any"  # metadata array contains any of the values
    ALL = "all"  # metadata array contains all of the values
    TEXT_MATCH = "text_match"  # substring match within a text field
    CONTAINS = "contains"  # metadata array contains the value
    IS_EMPTY = "is_empty"  # field missing, None or empty array


class FilterCondition(StrEnum):
    AND = "and"
    OR = "or"


MetadataFilterValue = str | int | float | list[str] | list[int] | list[float]


class MetadataFilter(BaseModel):
    """A single ``metadata[key] <operator> value`` predicate."""

    model_config = ConfigDict(frozen=True)

    key: str
    value: MetadataFilterValue | None = None
    operator: FilterOperator = FilterOperator.EQ


class MetadataFilters(BaseModel):
    """Predicates combined with one condition (``and`` unless specified)."""

    model_config = ConfigDict(frozen=True)

    filters: list[MetadataFilter] = Field(default_factory=list)
    condition: FilterCondition = FilterCondition.AND


# =============================================================================
# Query Descriptor and Result
# =============================================================================


class VectorStoreQuery(BaseModel):
    """
    A single retrieval request.

    Attributes:
        mode: Which scorer(s) to run.
        similarity_top_k: Number of results returned.
        query_str: Query text, required by ``bm25`` and ``hybrid``.
        query_embedding: Query vector, required by ``default`` and ``hybrid``.
        alpha: Vector weight in hybrid fusion (0 = pure BM25, 1 = pure vector).
        hybrid_prefetch: Candidates fetched from each hybrid sub-search
            before fusion. Defaults to multiplier × similarity_top_k and is
            never lower than similarity_top_k.
        filters: Metadata filters applied to the candidate set before scoring.
        doc_ids: Restrict the candidate set to these node ids.
    """

    model_config = ConfigDict(frozen=True)

    similarity_top_k: int = Field(ge=1)
    mode: VectorStoreQueryMode = VectorStoreQueryMode.DEFAULT
    query_str: str | None = None
    query_embedding: list[float] | None = None
    alpha: float | None = Field(default=None, ge=0.0, le=1.0)
    hybrid_prefetch: int | None = Field(default=None, ge=1)
    filters: MetadataFilters | None = None
    doc_ids: list[str] | None = None


@dataclass
class VectorStoreQueryResult:
    """
    Ranked query output, identical in shape for every mode.

    ``ids``, ``similarities`` and ``nodes`` are parallel lists. Similarities
    are only comparable within one result: cosine for ``default``, raw BM25
    for ``bm25`` and fused RRF scores for ``hybrid``.
    """

    ids: list[str] = field(default_factory=list)
    similarities: list[float] = field(default_factory=list)
    nodes: list[Node | None] | None = None

    def __len__(self) -> int:
        return len(self.ids)


# =============================================================================
# Collaborator Interfaces
# =============================================================================


@runtime_checkable
class CorpusProvider(Protocol):
    """
    Read-only access to a backend's corpus for the in-memory scorers.

    Snapshots are already narrowed by ``filters`` and ``doc_ids``.
    """

    async def text_snapshot(
        self,
        filters: MetadataFilters | None = None,
        doc_ids: Sequence[str] | None = None,
    ) -> CorpusSnapshot: ...

    async def embedding_snapshot(
        self,
        filters: MetadataFilters | None = None,
        doc_ids: Sequence[str] | None = None,
    ) -> list[tuple[str, list[float]]]: ...

    async def get_nodes(self, ids: Sequence[str]) -> list[Node | None]: ...


class BaseVectorStore(ABC):
    """
    Storage backend exposing the single query interface.

    Attributes:
        stores_text: Whether the backend keeps node text, which ``bm25`` and
            ``hybrid`` queries need.
    """

    stores_text: bool = False

    @abstractmethod
    async def add(self, nodes: Sequence[Node]) -> list[str]:
        """Store embedded nodes and return their ids."""

    @abstractmethod
    async def delete(self, ref_doc_id: str) -> None:
        """Remove every node derived from ``ref_doc_id``."""

    @abstractmethod
    async def exists(self, ref_doc_id: str) -> bool:
        """Check whether any node derived from ``ref_doc_id`` is stored."""

    @abstractmethod
    async def query(self, query: VectorStoreQuery) -> VectorStoreQueryResult:
        """Answer ``query``."""


__all__ = [
    "DEFAULT_HYBRID_PREFETCH_MULTIPLIER",
    "DEFAULT_HYBRID_ALPHA",
    "VectorStoreError",
    "QueryPreconditionError",
    "VectorStoreQueryMode",
    "FilterOperator",
    "FilterCondition",
    "MetadataFilterValue",
    "MetadataFilter",
    "MetadataFilters",
    "VectorStoreQuery",
    "VectorStoreQueryResult",
    "CorpusProvider",
    "BaseVectorStore",
]
