"""
Scoring utilities and shared helpers for the retrieval core.

This package provides the in-memory scorers and the fusion step:

- bm25: Okapi BM25 lexical index over a corpus snapshot
- similarity: Cosine / dot product / euclidean vector scoring
- rrf: Reciprocal Rank Fusion for merging vector + BM25 rankings
- embeddings: Embedding-provider interface, batching and opt-in retries

Usage:
    from vectorstores.utils.bm25 import BM25Index
    from vectorstores.utils.similarity import top_k_similarities
    from vectorstores.utils.rrf import combine_results

    # Lexical ranking
    index = BM25Index([("1", "the cat is on the mat"), ("2", "the dog")])
    bm25_hits = index.search("cat", top_k=10)

    # Vector ranking
    vector_hits = top_k_similarities([1.0, 0.0], [("1", [1.0, 0.0])], top_k=10)

    # Fuse rankings with RRF
    fused = combine_results(vector_result, bm25_result, alpha=0.5, similarity_top_k=5)
"""

from vectorstores.utils.similarity import (
    SimilarityMetric,
    cosine_similarity,
    dot_product,
    euclidean_similarity,
    similarity,
    top_k_similarities,
)

from vectorstores.utils.bm25 import (
    BM25Index,
    tokenize,
)

from vectorstores.utils.rrf import (
    RRF_K,
    RRFResult,
    combine_results,
    rrf_fusion,
    rrf_score,
)

from vectorstores.utils.embeddings import (
    EmbedFunc,
    EmbeddingError,
    EmbeddingsByType,
    MissingEmbeddingFunctionError,
    batch_embeddings,
    calculate_query_embedding,
    with_retry,
)

__all__ = [
    # Vector Scoring
    "SimilarityMetric",
    "cosine_similarity",
    "dot_product",
    "euclidean_similarity",
    "similarity",
    "top_k_similarities",
    # BM25
    "BM25Index",
    "tokenize",
    # RRF Fusion
    "RRF_K",
    "RRFResult",
    "combine_results",
    "rrf_fusion",
    "rrf_score",
    # Embeddings
    "EmbedFunc",
    "EmbeddingError",
    "EmbeddingsByType",
    "MissingEmbeddingFunctionError",
    "batch_embeddings",
    "calculate_query_embedding",
    "with_retry",
]
