"""
Retriever layer over a vector store.

VectorIndexRetriever turns user-facing queries (plain strings, text or image
content, or a sequence of them) into ``VectorStoreQuery`` descriptors,
embedding each item only when the query mode needs a vector, and converts
the store's parallel-list result back into ``NodeWithScore`` objects.

Each content item is queried separately and results are concatenated in
item order.

Usage:
    from vectorstores.retrieval.retriever import VectorIndexRetriever

    retriever = VectorIndexRetriever(
        store,
        {ModalityType.TEXT: embed_func},
        mode="hybrid",
        similarity_top_k=3,
        alpha=0.5,
    )
    for hit in await retriever.retrieve("what is on the mat?"):
        print(hit.node.id_, hit.score)
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from vectorstores.config.settings import RetrievalSettings, get_settings
from vectorstores.schema import (
    ImageContent,
    NodeWithScore,
    QueryContent,
    TextContent,
    extract_text,
)
from vectorstores.utils.embeddings import EmbeddingsByType, calculate_query_embedding
from vectorstores.vector_store.types import (
    BaseVectorStore,
    MetadataFilters,
    VectorStoreError,
    VectorStoreQuery,
    VectorStoreQueryMode,
    VectorStoreQueryResult,
)

# Configure structured logger
logger = structlog.get_logger(__name__)

QueryInput = str | QueryContent | Sequence[str | QueryContent]


def requires_query_embedding(mode: VectorStoreQueryMode) -> bool:
    return mode != VectorStoreQueryMode.BM25


def _as_contents(query: QueryInput) -> list[QueryContent]:
    if isinstance(query, str):
        return [TextContent(text=query)]
    if isinstance(query, (TextContent, ImageContent)):
        return [query]
    return [TextContent(text=item) if isinstance(item, str) else item for item in query]


class VectorIndexRetriever:
    """
    Retrieves scored nodes from a vector store.

    Attributes:
        store: Backend answering the queries.
        embeddings: Embedding function per modality.
        mode: Query mode used for every item.
        similarity_top_k: Results per content item.
        alpha: Hybrid vector weight; None uses the settings default.
        filters: Metadata filters applied to every query.
        hybrid_prefetch: Hybrid candidate pool override.
    """

    def __init__(
        self,
        store: BaseVectorStore,
        embeddings: EmbeddingsByType,
        *,
        mode: VectorStoreQueryMode | str = VectorStoreQueryMode.DEFAULT,
        similarity_top_k: int | None = None,
        alpha: float | None = None,
        filters: MetadataFilters | None = None,
        hybrid_prefetch: int | None = None,
        settings: RetrievalSettings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.store = store
        self.embeddings = embeddings
        self.mode = VectorStoreQueryMode(mode)
        if similarity_top_k is None:
            similarity_top_k = self.settings.similarity_top_k
        if similarity_top_k < 1:
            raise ValueError(f"similarity_top_k must be >= 1, got {similarity_top_k}")
        if self.mode != VectorStoreQueryMode.DEFAULT and not store.stores_text:
            raise VectorStoreError(
                f"{self.mode} mode requires a vector store that stores node text"
            )
        self.similarity_top_k = similarity_top_k
        self.alpha = alpha
        self.filters = filters
        self.hybrid_prefetch = hybrid_prefetch

        self._log = logger.bind(component="vector_index_retriever", mode=str(self.mode))

    async def retrieve(self, query: QueryInput) -> list[NodeWithScore]:
        """
        Retrieve nodes for every content item in ``query``.

        Strings become text content. Items whose embedding cannot be
        computed (the provider returned no vectors) are skipped.

        Raises:
            MissingEmbeddingFunctionError: If an item's modality has no
                embedding function and the mode needs one.
            QueryPreconditionError: If an item lacks an input the mode needs,
                e.g. image content in ``bm25`` mode.
            VectorStoreError: If the store returns an id without a node.
        """
        needs_embedding = requires_query_embedding(self.mode)
        results: list[NodeWithScore] = []

        for item in _as_contents(query):
            query_embedding = None
            if needs_embedding:
                query_embedding = await calculate_query_embedding(item, self.embeddings)
                if not query_embedding:
                    self._log.debug("query_item_skipped", modality=str(item.modality))
                    continue

            vector_query = VectorStoreQuery(
                mode=self.mode,
                similarity_top_k=self.similarity_top_k,
                query_str=extract_text(item),
                query_embedding=query_embedding,
                alpha=self.alpha,
                hybrid_prefetch=self.hybrid_prefetch,
                filters=self.filters,
            )
            result = await self.store.query(vector_query)
            results.extend(self._build_node_list(result))

        self._log.info("retrieve_complete", result_count=len(results))
        return results

    @staticmethod
    def _build_node_list(result: VectorStoreQueryResult) -> list[NodeWithScore]:
        nodes_with_scores = []
        for i, node_id in enumerate(result.ids):
            node = result.nodes[i] if result.nodes else None
            if node is None:
                raise VectorStoreError(f"Node not found in query result for id {node_id}")
            nodes_with_scores.append(NodeWithScore(node=node, score=result.similarities[i]))
        return nodes_with_scores


__all__ = [
    "QueryInput",
    "requires_query_embedding",
    "VectorIndexRetriever",
]
