"""
Query mode dispatch for the in-memory retrieval core.

This module routes a ``VectorStoreQuery`` to the scorer(s) its mode needs and
returns the same ``VectorStoreQueryResult`` shape for every mode.

Architecture:
    Query → validate_query (no I/O) → mode
              ├─ default: embedding snapshot → vector scorer → top-K
              ├─ bm25:    text snapshot → BM25 index (cached) → top-K
              └─ hybrid:  vector ∥ BM25 (each capped at prefetch) → RRF → top-K
                                                    ↓
                                       node payloads (corpus.get_nodes)

Error Handling:
    - Missing mode input: QueryPreconditionError, raised before any scoring
    - Corpus / scorer failure: propagated unchanged
    - Hybrid: either sub-search failing fails the whole query (no
      single-mode fallback); the failing side is logged first
    - Empty corpus, no matching terms: empty result, never an error

The dispatcher keeps no per-request state. Its only shared state is an LRU
of immutable BM25 indexes keyed by corpus snapshot version, so concurrent
queries are safe.

Usage:
    from vectorstores.retrieval.dispatcher import QueryDispatcher

    dispatcher = QueryDispatcher(corpus=store, settings=settings)
    result = await dispatcher.query(
        VectorStoreQuery(mode="hybrid", query_str="cat",
                         query_embedding=[1.0, 0.0], similarity_top_k=1)
    )
"""

from __future__ import annotations

import asyncio
from collections import OrderedDict
from collections.abc import Awaitable

import structlog

from vectorstores.config.settings import RetrievalSettings, get_settings
from vectorstores.schema import CorpusSnapshot, ScoredResult
from vectorstores.utils.bm25 import BM25Index
from vectorstores.utils.rrf import combine_results
from vectorstores.utils.similarity import top_k_similarities
from vectorstores.vector_store.types import (
    CorpusProvider,
    QueryPreconditionError,
    VectorStoreQuery,
    VectorStoreQueryMode,
    VectorStoreQueryResult,
)

# Configure structured logger
logger = structlog.get_logger(__name__)

_BM25CacheKey = tuple[str, float, float]


# =============================================================================
# Preconditions
# =============================================================================


def validate_query(query: VectorStoreQuery) -> None:
    """
    Check that ``query`` carries every input its mode requires.

    Runs synchronously so a malformed query fails before any corpus read
    or scoring.

    Raises:
        QueryPreconditionError: If a required input is missing, the query
            embedding is empty, or the mode is not supported.
    """
    try:
        mode = VectorStoreQueryMode(query.mode)
    except ValueError as e:
        raise QueryPreconditionError(f"Unsupported query mode: {query.mode!r}") from e

    needs_text = mode in (VectorStoreQueryMode.BM25, VectorStoreQueryMode.HYBRID)
    needs_embedding = mode in (VectorStoreQueryMode.DEFAULT, VectorStoreQueryMode.HYBRID)

    if needs_text and query.query_str is None:
        raise QueryPreconditionError(f"query_str is required for {mode} mode")
    if needs_embedding:
        if query.query_embedding is None:
            raise QueryPreconditionError(f"query_embedding is required for {mode} mode")
        if not query.query_embedding:
            raise QueryPreconditionError(
                f"query_embedding must be a non-empty vector for {mode} mode"
            )


def resolve_prefetch(
    similarity_top_k: int,
    multiplier: int,
    override: int | None = None,
) -> int:
    """
    Candidates fetched from each hybrid sub-search before fusion.

    An explicit ``override`` wins, but never drops below ``similarity_top_k``.
    """
    if override is not None:
        return max(similarity_top_k, override)
    return max(similarity_top_k, multiplier * similarity_top_k)


# =============================================================================
# Dispatcher
# =============================================================================


class QueryDispatcher:
    """
    Answers queries against a corpus provider with the in-memory scorers.

    Attributes:
        corpus: Source of text/embedding snapshots and node payloads.
        settings: Scoring parameters (BM25 k1/b, metric, alpha, prefetch).
    """

    def __init__(
        self,
        corpus: CorpusProvider,
        settings: RetrievalSettings | None = None,
    ) -> None:
        self.corpus = corpus
        self.settings = settings or get_settings()

        self._bm25_cache: OrderedDict[_BM25CacheKey, BM25Index] = OrderedDict()
        self._cache_hits = 0
        self._cache_misses = 0

        self._log = logger.bind(component="query_dispatcher")

    # =========================================================================
    # Public API
    # =========================================================================

    async def query(self, query: VectorStoreQuery) -> VectorStoreQueryResult:
        """
        Answer ``query`` with the scorer(s) selected by its mode.

        Args:
            query: Query descriptor.

        Returns:
            Ranked ids, scores and node payloads, at most
            ``query.similarity_top_k`` long.

        Raises:
            QueryPreconditionError: If the mode's inputs are missing.
        """
        validate_query(query)
        mode = VectorStoreQueryMode(query.mode)

        self._log.debug(
            "query_dispatch",
            mode=str(mode),
            similarity_top_k=query.similarity_top_k,
            has_filters=query.filters is not None,
        )

        match mode:
            case VectorStoreQueryMode.DEFAULT:
                hits = await self._vector_search(query, query.similarity_top_k)
                result = await self._with_nodes(hits)
            case VectorStoreQueryMode.BM25:
                hits = await self._bm25_search(query, query.similarity_top_k)
                result = await self._with_nodes(hits)
            case VectorStoreQueryMode.HYBRID:
                result = await self._hybrid_search(query)

        self._log.info("query_complete", mode=str(mode), result_count=len(result))
        return result

    def get_cache_stats(self) -> dict[str, int]:
        """BM25 index cache hits, misses, size and max_size."""
        return {
            "hits": self._cache_hits,
            "misses": self._cache_misses,
            "size": len(self._bm25_cache),
            "max_size": self.settings.bm25_cache_size,
        }

    def clear_cache(self) -> None:
        self._bm25_cache.clear()
        self._cache_hits = 0
        self._cache_misses = 0
        self._log.debug("bm25_cache_cleared")

    # =========================================================================
    # Sub-searches
    # =========================================================================

    async def _vector_search(
        self, query: VectorStoreQuery, top_k: int
    ) -> list[ScoredResult]:
        embeddings = await self.corpus.embedding_snapshot(query.filters, query.doc_ids)
        return top_k_similarities(
            query.query_embedding,
            embeddings,
            top_k,
            metric=self.settings.similarity_metric,
        )

    async def _bm25_search(
        self, query: VectorStoreQuery, top_k: int
    ) -> list[ScoredResult]:
        snapshot = await self.corpus.text_snapshot(query.filters, query.doc_ids)
        index = self._get_bm25_index(snapshot)
        return index.search(query.query_str, top_k)

    async def _hybrid_search(self, query: VectorStoreQuery) -> VectorStoreQueryResult:
        top_k = query.similarity_top_k
        prefetch = resolve_prefetch(
            top_k,
            self.settings.hybrid_prefetch_multiplier,
            query.hybrid_prefetch,
        )
        alpha = query.alpha if query.alpha is not None else self.settings.hybrid_alpha

        vector_hits, bm25_hits = await asyncio.gather(
            self._guarded("vector", self._vector_search(query, prefetch)),
            self._guarded("bm25", self._bm25_search(query, prefetch)),
        )

        self._log.debug(
            "hybrid_subqueries_complete",
            prefetch=prefetch,
            vector_count=len(vector_hits),
            bm25_count=len(bm25_hits),
            alpha=alpha,
        )

        vector_result = await self._with_nodes(vector_hits)
        bm25_result = await self._with_nodes(bm25_hits)
        return combine_results(vector_result, bm25_result, alpha, top_k)

    async def _guarded(
        self, side: str, search: Awaitable[list[ScoredResult]]
    ) -> list[ScoredResult]:
        try:
            return await search
        except Exception as e:
            self._log.error("hybrid_subquery_failed", side=side, error=str(e))
            raise

    # =========================================================================
    # Helpers
    # =========================================================================

    def _get_bm25_index(self, snapshot: CorpusSnapshot) -> BM25Index:
        """
        Get the BM25 index for ``snapshot``, building it on a cache miss.

        Snapshots with the same version hold the same documents, so a cached
        index scores exactly like a fresh build.
        """
        k1, b = self.settings.bm25_k1, self.settings.bm25_b
        cache_size = self.settings.bm25_cache_size
        if cache_size == 0:
            return BM25Index.from_snapshot(snapshot, k1=k1, b=b)

        key = (snapshot.version, k1, b)
        if key in self._bm25_cache:
            self._bm25_cache.move_to_end(key)
            self._cache_hits += 1
            return self._bm25_cache[key]

        self._cache_misses += 1
        index = BM25Index.from_snapshot(snapshot, k1=k1, b=b)

        # Evict oldest entries if at capacity
        while len(self._bm25_cache) >= cache_size:
            self._bm25_cache.popitem(last=False)
        self._bm25_cache[key] = index
        return index

    async def _with_nodes(self, hits: list[ScoredResult]) -> VectorStoreQueryResult:
        ids = [hit.id for hit in hits]
        nodes = await self.corpus.get_nodes(ids) if ids else []
        return VectorStoreQueryResult(
            ids=ids,
            similarities=[hit.score for hit in hits],
            nodes=nodes,
        )


__all__ = [
    "validate_query",
    "resolve_prefetch",
    "QueryDispatcher",
]
