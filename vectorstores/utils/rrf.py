"""
Reciprocal Rank Fusion (RRF) for merging ranked result lists.

This module merges independently ranked lists (vector similarity, BM25) into
one ranking. RRF is score-agnostic: only the rank position of a document in
each list matters, never its raw score. Cosine similarities in [-1, 1] and
unbounded BM25 scores can therefore be fused without normalization.

Algorithm:
    For each document d:
        score(d) = Σ weight_i / (k + rank(d, list_i)) for all lists containing d

    Ranks are 1-indexed. A list that does not contain d contributes nothing.
    k = 60 dampens the dominance of the literal top rank while still
    rewarding it:

        rank 1:  1/61 ≈ 0.0164
        rank 2:  1/62 ≈ 0.0161
        rank 10: 1/70 ≈ 0.0143

Hybrid search uses the two-list, alpha-weighted form:

    combined(d) = alpha · rrf(vectorRank) + (1 - alpha) · rrf(bm25Rank)

A document ranked in both lists accumulates both terms, so it outranks an
otherwise-equal document found by only one scorer.

Usage:
    from vectorstores.utils.rrf import combine_results

    fused = combine_results(vector_result, bm25_result, alpha=0.5, similarity_top_k=10)

Reference:
    - Paper: "Reciprocal Rank Fusion outperforms Condorcet and individual
      Rank Learning Methods" (Cormack et al., 2009)
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TypedDict

import structlog

from vectorstores.schema import Node
from vectorstores.vector_store.types import VectorStoreQueryResult

# Configure structured logger
logger = structlog.get_logger(__name__)


# =============================================================================
# Type Definitions
# =============================================================================


class RRFResult(TypedDict):
    """Result from RRF fusion."""

    id: str
    rrf_score: float
    sources: list[str]


# =============================================================================
# Constants
# =============================================================================

# Value used by Elasticsearch, Weaviate, MongoDB Atlas and others.
RRF_K = 60

VECTOR_SOURCE = "vector"
BM25_SOURCE = "bm25"


# =============================================================================
# RRF Implementation
# =============================================================================


def rrf_score(rank: int, k: int = RRF_K) -> float:
    """
    RRF contribution of a 1-indexed rank position.

    Example:
        >>> round(rrf_score(1), 6)
        0.016393

    Raises:
        ValueError: If rank < 1.
    """
    if rank < 1:
        raise ValueError(f"rank is 1-indexed, got {rank}")
    return 1.0 / (k + rank)


def rrf_fusion(
    ranked_ids: Sequence[Sequence[str]],
    weights: Sequence[float] | None = None,
    source_labels: Sequence[str] | None = None,
    k: int = RRF_K,
) -> list[RRFResult]:
    """
    Merge ranked id lists using weighted Reciprocal Rank Fusion.

    Args:
        ranked_ids: One ranked list of document ids per retriever, best
            first. Only the first occurrence of an id within a list counts.
        weights: Multiplier applied to each list's contributions. Defaults
            to 1.0 for every list. A zero weight still registers the ids of
            that list, with no score contribution.
        source_labels: Labels recorded in ``sources`` for provenance.
            Defaults to "source_1", "source_2", ...
        k: RRF constant.

    Returns:
        Fused results sorted by ``rrf_score`` descending, ties broken by id.

    Raises:
        ValueError: If weights or labels do not match the number of lists.
    """
    if weights is None:
        weights = [1.0] * len(ranked_ids)
    if len(weights) != len(ranked_ids):
        raise ValueError("Length of weights must match number of ranked lists")
    if source_labels is None:
        source_labels = [f"source_{i}" for i in range(1, len(ranked_ids) + 1)]
    if len(source_labels) != len(ranked_ids):
        raise ValueError("Length of source_labels must match number of ranked lists")

    doc_scores: dict[str, float] = {}
    doc_sources: dict[str, list[str]] = {}

    for ids, weight, label in zip(ranked_ids, weights, source_labels):
        seen: set[str] = set()
        for rank, doc_id in enumerate(ids, start=1):
            if doc_id in seen:
                continue
            seen.add(doc_id)
            doc_scores[doc_id] = doc_scores.get(doc_id, 0.0) + weight * rrf_score(rank, k)
            doc_sources.setdefault(doc_id, []).append(label)

    fused = [
        RRFResult(id=doc_id, rrf_score=score, sources=doc_sources[doc_id])
        for doc_id, score in doc_scores.items()
    ]
    fused.sort(key=lambda r: (-r["rrf_score"], r["id"]))

    logger.debug(
        "rrf_fusion_complete",
        input_lists=len(ranked_ids),
        unique_docs=len(fused),
        multi_source_docs=sum(1 for r in fused if len(r["sources"]) > 1),
        top_score=fused[0]["rrf_score"] if fused else 0.0,
    )
    return fused


def _payloads(result: VectorStoreQueryResult) -> dict[str, Node]:
    if not result.nodes:
        return {}
    return {
        doc_id: node
        for doc_id, node in zip(result.ids, result.nodes)
        if node is not None
    }


def combine_results(
    vector_results: VectorStoreQueryResult,
    bm25_results: VectorStoreQueryResult,
    alpha: float,
    similarity_top_k: int,
) -> VectorStoreQueryResult:
    """
    Fuse a vector ranking and a BM25 ranking by rank position.

    Args:
        vector_results: Vector similarity results, best first.
        bm25_results: BM25 results, best first.
        alpha: Vector weight in [0, 1]. 1 orders purely by vector rank,
            0 purely by BM25 rank, 0.5 weighs both equally.
        similarity_top_k: Maximum number of fused results.

    Returns:
        Fused result whose similarities are the combined RRF scores, sorted
        non-increasing. A node payload is taken from the vector side when
        present there, otherwise from the BM25 side.

    Raises:
        ValueError: If alpha is outside [0, 1] or similarity_top_k < 1.

    Example:
        >>> vector = VectorStoreQueryResult(ids=["a", "b"], similarities=[0.9, 0.8])
        >>> bm25 = VectorStoreQueryResult(ids=["b", "a"], similarities=[1.5, 1.2])
        >>> combine_results(vector, bm25, 0.5, 2).similarities
        [0.016..., 0.016...]
    """
    if not 0.0 <= alpha <= 1.0:
        raise ValueError(f"alpha must be within [0, 1], got {alpha}")
    if similarity_top_k < 1:
        raise ValueError(f"similarity_top_k must be >= 1, got {similarity_top_k}")

    fused = rrf_fusion(
        [vector_results.ids, bm25_results.ids],
        weights=[alpha, 1.0 - alpha],
        source_labels=[VECTOR_SOURCE, BM25_SOURCE],
    )[:similarity_top_k]

    payloads = _payloads(bm25_results)
    payloads.update(_payloads(vector_results))

    return VectorStoreQueryResult(
        ids=[r["id"] for r in fused],
        similarities=[r["rrf_score"] for r in fused],
        nodes=[payloads.get(r["id"]) for r in fused],
    )


__all__ = [
    "RRF_K",
    "RRFResult",
    "rrf_score",
    "rrf_fusion",
    "combine_results",
]
