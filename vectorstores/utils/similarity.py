"""
Reference vector similarity scorer.

Real deployments delegate nearest-neighbour search to the backend's native
ANN index. This module is the in-memory reference used by the simple store:
an exhaustive scan that ranks stored embeddings against a query embedding.

All metrics are expressed as similarities where larger is better. Euclidean
distance is converted with 1 / (1 + d).

Embeddings of unequal length are compared over their shared prefix instead
of raising, since dimensionality is normalized upstream by the embedding
provider.

Usage:
    from vectorstores.utils.similarity import SimilarityMetric, top_k_similarities

    results = top_k_similarities(
        [1.0, 0.0],
        [("1", [1.0, 0.0]), ("2", [0.0, 1.0])],
        top_k=1,
    )
    # [ScoredResult(id='1', score=1.0)]
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from enum import StrEnum

import structlog

from vectorstores.schema import ScoredResult, sort_scored

logger = structlog.get_logger(__name__)


class SimilarityMetric(StrEnum):
    """Similarity used to compare embeddings."""

    COSINE = "cosine"
    DOT_PRODUCT = "dot_product"
    EUCLIDEAN = "euclidean"


def _shared_prefix(
    a: Sequence[float], b: Sequence[float]
) -> tuple[Sequence[float], Sequence[float]]:
    size = min(len(a), len(b))
    return a[:size], b[:size]


def dot_product(a: Sequence[float], b: Sequence[float]) -> float:
    a, b = _shared_prefix(a, b)
    return math.fsum(x * y for x, y in zip(a, b))


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity in [-1, 1]; 0.0 when either side has zero norm."""
    a, b = _shared_prefix(a, b)
    norm_a = math.sqrt(math.fsum(x * x for x in a))
    norm_b = math.sqrt(math.fsum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return math.fsum(x * y for x, y in zip(a, b)) / (norm_a * norm_b)


def euclidean_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Euclidean distance mapped into (0, 1], 1.0 for identical vectors."""
    a, b = _shared_prefix(a, b)
    return 1.0 / (1.0 + math.dist(a, b))


_METRICS = {
    SimilarityMetric.COSINE: cosine_similarity,
    SimilarityMetric.DOT_PRODUCT: dot_product,
    SimilarityMetric.EUCLIDEAN: euclidean_similarity,
}


def similarity(
    a: Sequence[float],
    b: Sequence[float],
    metric: SimilarityMetric = SimilarityMetric.COSINE,
) -> float:
    """Similarity between two embeddings under ``metric``."""
    return _METRICS[SimilarityMetric(metric)](a, b)


def top_k_similarities(
    query_embedding: Sequence[float],
    embeddings: Iterable[tuple[str, Sequence[float]]],
    top_k: int,
    metric: SimilarityMetric = SimilarityMetric.COSINE,
) -> list[ScoredResult]:
    """
    Rank ``embeddings`` by similarity to ``query_embedding``.

    Args:
        query_embedding: Non-empty query vector.
        embeddings: ``(document_id, embedding)`` pairs. Empty embeddings are
            not comparable and are skipped.
        top_k: Maximum number of results (>= 1).
        metric: Similarity metric.

    Returns:
        Up to ``top_k`` results sorted by similarity descending, then id.

    Raises:
        ValueError: If the query embedding is empty or top_k < 1.
    """
    if not query_embedding:
        raise ValueError("query_embedding must be a non-empty vector")
    if top_k < 1:
        raise ValueError(f"top_k must be >= 1, got {top_k}")

    score = _METRICS[SimilarityMetric(metric)]
    scored = [
        ScoredResult(id=doc_id, score=score(query_embedding, embedding))
        for doc_id, embedding in embeddings
        if embedding
    ]
    results = sort_scored(scored)[:top_k]

    logger.debug(
        "vector_search_complete",
        metric=str(metric),
        candidates=len(scored),
        returned=len(results),
    )
    return results


__all__ = [
    "SimilarityMetric",
    "dot_product",
    "cosine_similarity",
    "euclidean_similarity",
    "similarity",
    "top_k_similarities",
]
