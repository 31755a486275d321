"""
Retrieval package: query dispatch and the retriever layer.

- dispatcher: Routes a VectorStoreQuery to the vector scorer, the BM25
  index, or both fused with RRF
- retriever: Embeds user queries and turns results into NodeWithScore

Mode Preconditions:
    - default: query_embedding required
    - bm25: query_str required
    - hybrid: both required; either sub-search failing fails the query

Usage:
    from vectorstores.retrieval import QueryDispatcher, VectorIndexRetriever

    dispatcher = QueryDispatcher(corpus=store, settings=settings)
    result = await dispatcher.query(query)

    retriever = VectorIndexRetriever(store, embeddings, mode="bm25")
    hits = await retriever.retrieve("dog")
"""

from vectorstores.retrieval.dispatcher import (
    QueryDispatcher,
    resolve_prefetch,
    validate_query,
)

from vectorstores.retrieval.retriever import (
    QueryInput,
    VectorIndexRetriever,
    requires_query_embedding,
)

__all__ = [
    # Dispatcher
    "QueryDispatcher",
    "resolve_prefetch",
    "validate_query",
    # Retriever
    "QueryInput",
    "VectorIndexRetriever",
    "requires_query_embedding",
]
