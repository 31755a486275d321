"""
Core node and query-content types shared by the retrieval core.

Nodes are the unit stored in a vector store: an id, the text that the
lexical index scores, free-form metadata that filters are evaluated against,
and the embedding that the vector scorer reads.

Query content is modelled as a closed union of one dataclass per modality.
Each case carries only the fields valid for its kind, and consumers dispatch
with ``match`` on the class:

    match content:
        case TextContent(text=text):
            ...
        case ImageContent(image=image):
            ...
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, TypeAlias


class ModalityType(StrEnum):
    """Content modality, used to pick the embedding function."""

    TEXT = "text"
    IMAGE = "image"


# =============================================================================
# Nodes
# =============================================================================


@dataclass
class Node:
    """
    A retrievable chunk of content.

    Attributes:
        text: Content scored by the lexical index.
        id_: Unique node identifier. Generated when omitted.
        metadata: Key/value pairs that metadata filters are evaluated against.
        embedding: Vector read by the vector scorer. Set at ingestion time.
        ref_doc_id: Id of the source document this node was derived from.
    """

    text: str
    id_: str = field(default_factory=lambda: str(uuid.uuid4()))
    metadata: dict[str, Any] = field(default_factory=dict)
    embedding: list[float] | None = None
    ref_doc_id: str | None = None

    def get_content(self) -> str:
        return self.text


@dataclass(frozen=True)
class NodeWithScore:
    """A node paired with the score it was retrieved with."""

    node: Node
    score: float | None = None

    @property
    def id_(self) -> str:
        return self.node.id_


@dataclass(frozen=True)
class ScoredResult:
    """
    A document id with the score one scorer assigned it.

    Scores from different scorers (BM25, cosine) live on unrelated scales
    and are only ever compared within the list that produced them.
    """

    id: str
    score: float


def sort_scored(results: list[ScoredResult]) -> list[ScoredResult]:
    """Sort descending by score, ties broken by id ascending."""
    return sorted(results, key=lambda r: (-r.score, r.id))


@dataclass(frozen=True)
class CorpusSnapshot:
    """
    Read-only view of the texts visible to the lexical index.

    Attributes:
        version: Identifies the snapshot content. Two snapshots with the same
            version must hold the same documents, which lets callers cache
            the index built from them.
        documents: ``(document_id, text)`` pairs. Order is irrelevant.
    """

    version: str
    documents: tuple[tuple[str, str], ...]

    def __len__(self) -> int:
        return len(self.documents)


# =============================================================================
# Query content
# =============================================================================


@dataclass(frozen=True)
class TextContent:
    """Text query content."""

    text: str

    @property
    def modality(self) -> ModalityType:
        return ModalityType.TEXT


@dataclass(frozen=True)
class ImageContent:
    """
    Image query content.

    Attributes:
        image: Image URL, path, or raw/base64-encoded bytes, passed through
            untouched to the image embedding function.
    """

    image: str | bytes

    @property
    def modality(self) -> ModalityType:
        return ModalityType.IMAGE


QueryContent: TypeAlias = TextContent | ImageContent


def extract_text(content: QueryContent) -> str | None:
    """Return the text of ``content``, or None for non-text modalities."""
    match content:
        case TextContent(text=text):
            return text
        case ImageContent():
            return None


__all__ = [
    "ModalityType",
    "Node",
    "NodeWithScore",
    "ScoredResult",
    "sort_scored",
    "CorpusSnapshot",
    "TextContent",
    "ImageContent",
    "QueryContent",
    "extract_text",
]
