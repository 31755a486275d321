"""
In-memory BM25 full-text index.

This module builds Okapi BM25 term statistics over a fixed corpus snapshot
and ranks documents for a query string. It is the lexical half of hybrid
search and the whole of ``bm25`` query mode.

Architecture:
    Corpus Snapshot → Tokenize → Term Statistics (tf, df, |d|, avgdl)
    Query → Tokenize → Distinct terms → Σ idf·saturated tf → Top-K

Scoring:
    idf(t)     = ln((N - df(t) + 0.5) / (df(t) + 0.5) + 1)
    score(t,d) = idf(t) · tf(t,d)·(k1+1) / (tf(t,d) + k1·(1 - b + b·|d|/avgdl))

    A document's score is the sum over the distinct query terms found in the
    corpus vocabulary. Terms outside the vocabulary contribute nothing.

Parameters:
    - k1 (default 1.5): term frequency saturation. k1=0 reduces every
      matching term to its idf (binary presence).
    - b (default 0.75): length normalization. b=0 ignores document length.

The index is immutable once built. Statistics are a pure function of the
snapshot, so a changed corpus means building a new index; concurrent reads
of one index are safe.

Usage:
    from vectorstores.utils.bm25 import BM25Index

    index = BM25Index([("1", "the cat is on the mat"), ("2", "the dog is in the house")])
    results = index.search("dog", top_k=1)
    # [ScoredResult(id='2', score=0.69...)]

Reference:
    - BM25 algorithm: https://en.wikipedia.org/wiki/Okapi_BM25
"""

from __future__ import annotations

import math
import re
from collections import Counter
from collections.abc import Iterable

import structlog

from vectorstores.schema import CorpusSnapshot, ScoredResult, sort_scored

# Configure structured logger
logger = structlog.get_logger(__name__)


# =============================================================================
# Constants
# =============================================================================

DEFAULT_K1 = 1.5
DEFAULT_B = 0.75

# Runs of non-word characters separate tokens. Unicode-aware, so "café"
# stays a single token.
TOKEN_SPLIT_PATTERN = re.compile(r"\W+")


# =============================================================================
# Tokenization
# =============================================================================


def tokenize(text: str) -> list[str]:
    """
    Lower-case ``text`` and split it on runs of non-word characters.

    Used for both indexing and querying. No stemming and no stopwords.

    Example:
        >>> tokenize("Hello, world! How are you?")
        ['hello', 'world', 'how', 'are', 'you']
    """
    return [token for token in TOKEN_SPLIT_PATTERN.split(text.lower()) if token]


# =============================================================================
# BM25 Index
# =============================================================================


class BM25Index:
    """
    Okapi BM25 index over a corpus snapshot.

    Attributes:
        k1: Term frequency saturation parameter.
        b: Document length normalization parameter.
        document_count: Number of indexed documents (N).
        average_document_length: Mean token length (0 for an empty corpus).

    Example:
        >>> index = BM25Index([("a", "python tutorial"), ("b", "snake zoo")])
        >>> [r.id for r in index.search("python", top_k=5)]
        ['a']
    """

    def __init__(
        self,
        documents: Iterable[tuple[str, str]],
        *,
        k1: float = DEFAULT_K1,
        b: float = DEFAULT_B,
    ) -> None:
        """
        Build term statistics for ``documents``.

        Args:
            documents: ``(document_id, text)`` pairs. A repeated id keeps the
                last text seen.
            k1: Term frequency saturation (>= 0).
            b: Length normalization in [0, 1].

        Raises:
            ValueError: If k1 or b is out of range.
        """
        if k1 < 0:
            raise ValueError(f"k1 must be >= 0, got {k1}")
        if not 0 <= b <= 1:
            raise ValueError(f"b must be within [0, 1], got {b}")

        self.k1 = k1
        self.b = b

        self._doc_lengths: dict[str, int] = {}
        self._term_freqs: dict[str, Counter[str]] = {}
        for doc_id, text in documents:
            tokens = tokenize(text)
            self._doc_lengths[doc_id] = len(tokens)
            self._term_freqs[doc_id] = Counter(tokens)

        # Inverted index: term -> {doc_id: tf}. df(t) is the postings size.
        self._postings: dict[str, dict[str, int]] = {}
        for doc_id, freqs in self._term_freqs.items():
            for term, tf in freqs.items():
                self._postings.setdefault(term, {})[doc_id] = tf

        self.document_count = len(self._doc_lengths)
        total_length = sum(self._doc_lengths.values())
        self.average_document_length = (
            total_length / self.document_count if self.document_count else 0.0
        )

        logger.debug(
            "bm25_index_built",
            document_count=self.document_count,
            vocabulary_size=len(self._postings),
            average_document_length=round(self.average_document_length, 3),
            k1=k1,
            b=b,
        )

    @classmethod
    def from_snapshot(
        cls,
        snapshot: CorpusSnapshot,
        *,
        k1: float = DEFAULT_K1,
        b: float = DEFAULT_B,
    ) -> "BM25Index":
        """Build an index from a corpus snapshot."""
        return cls(snapshot.documents, k1=k1, b=b)

    # =========================================================================
    # Statistics
    # =========================================================================

    @property
    def vocabulary_size(self) -> int:
        return len(self._postings)

    def document_frequency(self, term: str) -> int:
        """Number of documents containing ``term`` (already tokenized)."""
        return len(self._postings.get(term, ()))

    def term_frequency(self, doc_id: str, term: str) -> int:
        freqs = self._term_freqs.get(doc_id)
        return freqs[term] if freqs is not None else 0

    def document_length(self, doc_id: str) -> int:
        return self._doc_lengths.get(doc_id, 0)

    def idf(self, term: str) -> float:
        """
        Robertson-Sparck Jones IDF with the +1 smoothing, always positive.

        Args:
            term: A token, as produced by ``tokenize``.

        Returns:
            ln((N - df + 0.5) / (df + 0.5) + 1)
        """
        df = self.document_frequency(term)
        return math.log((self.document_count - df + 0.5) / (df + 0.5) + 1)

    def _term_score(self, idf: float, tf: int, doc_length: int) -> float:
        length_ratio = doc_length / self.average_document_length
        denominator = tf + self.k1 * (1 - self.b + self.b * length_ratio)
        return idf * (tf * (self.k1 + 1)) / denominator

    # =========================================================================
    # Search
    # =========================================================================

    def get_scores(self, query: str) -> dict[str, float]:
        """
        Score every document sharing at least one term with ``query``.

        Documents without any query term are absent from the result rather
        than present with a zero score.
        """
        scores: dict[str, float] = {}
        # Repeated query terms are counted once.
        for term in dict.fromkeys(tokenize(query)):
            postings = self._postings.get(term)
            if not postings:
                continue
            idf = self.idf(term)
            for doc_id, tf in postings.items():
                scores[doc_id] = scores.get(doc_id, 0.0) + self._term_score(
                    idf, tf, self._doc_lengths[doc_id]
                )
        return scores

    def search(self, query: str, top_k: int) -> list[ScoredResult]:
        """
        Rank documents for ``query`` by BM25 score.

        Args:
            query: Free-text query. An empty query yields no results.
            top_k: Maximum number of results (>= 1).

        Returns:
            Up to ``top_k`` results with a positive score, sorted by score
            descending and then by document id.

        Raises:
            ValueError: If top_k < 1.
        """
        if top_k < 1:
            raise ValueError(f"top_k must be >= 1, got {top_k}")

        scored = [
            ScoredResult(id=doc_id, score=score)
            for doc_id, score in self.get_scores(query).items()
            if score > 0
        ]
        results = sort_scored(scored)[:top_k]

        logger.debug(
            "bm25_search_complete",
            query_terms=len(tokenize(query)),
            matched=len(scored),
            returned=len(results),
        )
        return results


__all__ = [
    "DEFAULT_K1",
    "DEFAULT_B",
    "tokenize",
    "BM25Index",
]
