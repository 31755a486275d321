"""
vectorstores: hybrid retrieval core.

Ranks stored documents against a query by BM25 lexical relevance, by vector
similarity, or by both fused with Reciprocal Rank Fusion, behind one query
interface that returns the same result shape in every mode.

Usage:
    from vectorstores import (
        ModalityType,
        Node,
        SimpleVectorStore,
        VectorStoreIndex,
    )

    index = VectorStoreIndex(SimpleVectorStore(), {ModalityType.TEXT: embed_func})
    await index.insert_nodes([Node(text="the cat is on the mat", id_="1")])

    retriever = index.as_retriever(mode="hybrid", similarity_top_k=3, alpha=0.5)
    hits = await retriever.retrieve("cat")
"""

from vectorstores.schema import (
    CorpusSnapshot,
    ImageContent,
    ModalityType,
    Node,
    NodeWithScore,
    QueryContent,
    ScoredResult,
    TextContent,
)
from vectorstores.config import RetrievalSettings, get_settings
from vectorstores.utils import (
    BM25Index,
    EmbeddingError,
    MissingEmbeddingFunctionError,
    SimilarityMetric,
    batch_embeddings,
    calculate_query_embedding,
    combine_results,
    rrf_fusion,
    with_retry,
)
from vectorstores.vector_store import (
    BaseVectorStore,
    CorpusProvider,
    FilterCondition,
    FilterOperator,
    MetadataFilter,
    MetadataFilters,
    QueryPreconditionError,
    VectorStoreError,
    VectorStoreQuery,
    VectorStoreQueryMode,
    VectorStoreQueryResult,
)
from vectorstores.retrieval import QueryDispatcher, VectorIndexRetriever
from vectorstores.vector_store.simple import SimpleVectorStore
from vectorstores.indices import VectorStoreIndex

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Schema
    "CorpusSnapshot",
    "ImageContent",
    "ModalityType",
    "Node",
    "NodeWithScore",
    "QueryContent",
    "ScoredResult",
    "TextContent",
    # Config
    "RetrievalSettings",
    "get_settings",
    # Scoring
    "BM25Index",
    "EmbeddingError",
    "MissingEmbeddingFunctionError",
    "SimilarityMetric",
    "batch_embeddings",
    "calculate_query_embedding",
    "combine_results",
    "rrf_fusion",
    "with_retry",
    # Vector store
    "BaseVectorStore",
    "CorpusProvider",
    "FilterCondition",
    "FilterOperator",
    "MetadataFilter",
    "MetadataFilters",
    "QueryPreconditionError",
    "VectorStoreError",
    "VectorStoreQuery",
    "VectorStoreQueryMode",
    "VectorStoreQueryResult",
    "SimpleVectorStore",
    # Retrieval
    "QueryDispatcher",
    "VectorIndexRetriever",
    "VectorStoreIndex",
]
