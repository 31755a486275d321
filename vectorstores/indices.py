"""
Vector store index: ingestion and retriever factory.

VectorStoreIndex ties a store to its embedding functions. Nodes inserted
through the index are embedded in batches and written to the store, and
``as_retriever`` builds retrievers that embed queries with the same
functions the corpus was indexed with.

Configuration is explicit: the text embedding function and the settings
are constructor arguments, never looked up from process-wide state.

Usage:
    from vectorstores import ModalityType, SimpleVectorStore, VectorStoreIndex

    index = VectorStoreIndex(SimpleVectorStore(), {ModalityType.TEXT: embed_func})
    await index.insert_nodes([Node(text="the cat is on the mat", id_="1")])

    retriever = index.as_retriever(mode="hybrid", similarity_top_k=1)
    hits = await retriever.retrieve("cat")
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from typing import Any

import structlog

from vectorstores.config.settings import RetrievalSettings, get_settings
from vectorstores.retrieval.retriever import VectorIndexRetriever
from vectorstores.schema import ModalityType, Node
from vectorstores.utils.embeddings import (
    EmbeddingsByType,
    MissingEmbeddingFunctionError,
    batch_embeddings,
)
from vectorstores.vector_store.types import BaseVectorStore

# Configure structured logger
logger = structlog.get_logger(__name__)


class VectorStoreIndex:
    """
    Index storing nodes by their embeddings in one vector store.

    Attributes:
        store: Backend the nodes are written to and queried from.
        embeddings: Embedding function per modality. TEXT is required.
        settings: Batch size and retriever defaults.
    """

    def __init__(
        self,
        store: BaseVectorStore,
        embeddings: EmbeddingsByType,
        settings: RetrievalSettings | None = None,
    ) -> None:
        """
        Raises:
            MissingEmbeddingFunctionError: If no TEXT embedding function is given.
        """
        if embeddings.get(ModalityType.TEXT) is None:
            raise MissingEmbeddingFunctionError(
                "No text embedding function provided. Pass embeddings to VectorStoreIndex."
            )

        self.store = store
        self.embeddings = embeddings
        self.settings = settings or get_settings()

        self._log = logger.bind(component="vector_store_index")

    async def insert_nodes(self, nodes: Sequence[Node]) -> list[str]:
        """
        Embed ``nodes`` that have no embedding yet and add them to the store.

        Nodes are not mutated: embedded copies are stored.

        Returns:
            Ids of the stored nodes, in input order.
        """
        missing = [node for node in nodes if node.embedding is None]
        vectors = await batch_embeddings(
            [node.get_content() for node in missing],
            self.embeddings[ModalityType.TEXT],
            chunk_size=self.settings.embed_batch_size,
        )
        embedded = dict(zip((node.id_ for node in missing), vectors))

        to_store = [
            replace(node, embedding=embedded[node.id_]) if node.embedding is None else node
            for node in nodes
        ]
        ids = await self.store.add(to_store)

        self._log.info(
            "nodes_inserted",
            count=len(ids),
            embedded=len(missing),
        )
        return ids

    async def delete_ref_doc(self, ref_doc_id: str) -> None:
        """Remove every node derived from ``ref_doc_id`` from the store."""
        await self.store.delete(ref_doc_id)

    def as_retriever(self, **options: Any) -> VectorIndexRetriever:
        """
        Build a retriever over this index.

        Args:
            **options: Keyword options of ``VectorIndexRetriever``
                (mode, similarity_top_k, alpha, filters, hybrid_prefetch).
                ``settings`` defaults to the index settings.
        """
        options.setdefault("settings", self.settings)
        return VectorIndexRetriever(self.store, self.embeddings, **options)


__all__ = ["VectorStoreIndex"]
