"""
In-memory reference vector store.

SimpleVectorStore keeps embedded nodes in a dict and answers every query
mode through the in-memory dispatcher. It doubles as the corpus provider
for that dispatcher: snapshots are narrowed by metadata filters and
``doc_ids`` before any scoring happens.

Snapshot versions combine a revision counter, bumped on every mutation,
with a fingerprint of the filters and ``doc_ids``. Two snapshots with equal
versions therefore hold the same documents, which is what lets the
dispatcher reuse a cached BM25 index between queries.

Usage:
    from vectorstores.vector_store.simple import SimpleVectorStore

    store = SimpleVectorStore()
    await store.add([Node(text="the cat is on the mat", id_="1", embedding=[1.0, 0.0])])
    result = await store.query(
        VectorStoreQuery(mode="bm25", query_str="cat", similarity_top_k=1)
    )
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Sequence
from dataclasses import replace

import structlog

from vectorstores.config.settings import RetrievalSettings, get_settings
from vectorstores.retrieval.dispatcher import QueryDispatcher
from vectorstores.schema import CorpusSnapshot, Node
from vectorstores.vector_store.filters import matches_filters
from vectorstores.vector_store.types import (
    BaseVectorStore,
    MetadataFilters,
    VectorStoreError,
    VectorStoreQuery,
    VectorStoreQueryResult,
)

# Configure structured logger
logger = structlog.get_logger(__name__)


def _copy_node(node: Node) -> Node:
    return replace(
        node,
        metadata=dict(node.metadata),
        embedding=list(node.embedding) if node.embedding is not None else None,
    )


class SimpleVectorStore(BaseVectorStore):
    """
    Dict-backed vector store implementing every query mode.

    Attributes:
        stores_text: Always True; node text is kept for BM25.
        settings: Scoring parameters handed to the dispatcher.
    """

    stores_text = True

    def __init__(self, settings: RetrievalSettings | None = None) -> None:
        self.settings = settings or get_settings()
        self._nodes: dict[str, Node] = {}
        self._revision = 0
        self._dispatcher = QueryDispatcher(corpus=self, settings=self.settings)

        self._log = logger.bind(component="simple_vector_store")

    def __len__(self) -> int:
        return len(self._nodes)

    # =========================================================================
    # Mutations
    # =========================================================================

    async def add(self, nodes: Sequence[Node]) -> list[str]:
        """
        Store embedded nodes, replacing any node with the same id.

        Nodes are copied in and out of the store; stored content only
        changes with a new revision.

        Raises:
            VectorStoreError: If a node has no embedding or an empty one.
                Nothing is stored in that case.
        """
        for node in nodes:
            if not node.embedding:
                raise VectorStoreError(f"Node {node.id_} has no embedding")

        for node in nodes:
            self._nodes[node.id_] = _copy_node(node)
        if nodes:
            self._revision += 1

        self._log.debug("nodes_added", count=len(nodes), total=len(self._nodes))
        return [node.id_ for node in nodes]

    async def delete(self, ref_doc_id: str) -> None:
        """Remove every node whose ``ref_doc_id`` (or own id) is ``ref_doc_id``."""
        doomed = [
            node_id
            for node_id, node in self._nodes.items()
            if node.ref_doc_id == ref_doc_id or node_id == ref_doc_id
        ]
        for node_id in doomed:
            del self._nodes[node_id]
        if doomed:
            self._revision += 1

        self._log.debug("nodes_deleted", ref_doc_id=ref_doc_id, count=len(doomed))

    async def exists(self, ref_doc_id: str) -> bool:
        return any(
            node.ref_doc_id == ref_doc_id or node_id == ref_doc_id
            for node_id, node in self._nodes.items()
        )

    # =========================================================================
    # Corpus provider
    # =========================================================================

    def _candidates(
        self,
        filters: MetadataFilters | None,
        doc_ids: Sequence[str] | None,
    ) -> list[Node]:
        allowed = set(doc_ids) if doc_ids is not None else None
        return [
            node
            for node_id, node in self._nodes.items()
            if (allowed is None or node_id in allowed)
            and matches_filters(node.metadata, filters)
        ]

    def _snapshot_version(
        self,
        filters: MetadataFilters | None,
        doc_ids: Sequence[str] | None,
    ) -> str:
        scope = json.dumps(
            {
                "filters": filters.model_dump(mode="json") if filters else None,
                "doc_ids": sorted(doc_ids) if doc_ids is not None else None,
            },
            sort_keys=True,
        )
        fingerprint = hashlib.sha256(scope.encode("utf-8")).hexdigest()[:16]
        return f"{self._revision}:{fingerprint}"

    async def text_snapshot(
        self,
        filters: MetadataFilters | None = None,
        doc_ids: Sequence[str] | None = None,
    ) -> CorpusSnapshot:
        documents = tuple(
            (node.id_, node.get_content()) for node in self._candidates(filters, doc_ids)
        )
        return CorpusSnapshot(
            version=self._snapshot_version(filters, doc_ids),
            documents=documents,
        )

    async def embedding_snapshot(
        self,
        filters: MetadataFilters | None = None,
        doc_ids: Sequence[str] | None = None,
    ) -> list[tuple[str, list[float]]]:
        return [
            (node.id_, node.embedding)
            for node in self._candidates(filters, doc_ids)
            if node.embedding is not None
        ]

    async def get_nodes(self, ids: Sequence[str]) -> list[Node | None]:
        return [
            _copy_node(node) if (node := self._nodes.get(node_id)) else None
            for node_id in ids
        ]

    # =========================================================================
    # Query
    # =========================================================================

    async def query(self, query: VectorStoreQuery) -> VectorStoreQueryResult:
        """Answer ``query`` in any mode; see ``QueryDispatcher.query``."""
        return await self._dispatcher.query(query)


__all__ = ["SimpleVectorStore"]
