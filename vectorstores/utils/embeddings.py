"""
Embedding-provider interface and helpers.

The retrieval core never talks to an embedding model directly. It consumes
async embedding functions, one per modality:

    EmbedFunc = async (values: Sequence[T]) -> list[list[float]]

Helpers in this module:
- batch_embeddings: call a provider in bounded chunks, preserving order
- calculate_query_embedding: pick the provider for a query's modality
- with_retry: opt-in retry/backoff wrapper for flaky providers

Provider errors are never caught here: they reach the caller unchanged.
``with_retry`` is applied by the caller and is not used anywhere in the core.

Usage:
    from vectorstores.utils.embeddings import batch_embeddings, with_retry

    embed = with_retry(openai_embed, attempts=3)
    vectors = await batch_embeddings(texts, embed, chunk_size=10)
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any, TypeAlias, TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from vectorstores.schema import ImageContent, ModalityType, QueryContent, TextContent

# Configure structured logger
logger = structlog.get_logger(__name__)

T = TypeVar("T")

EmbedFunc: TypeAlias = Callable[[Sequence[Any]], Awaitable[list[list[float]]]]
TextEmbedFunc: TypeAlias = Callable[[Sequence[str]], Awaitable[list[list[float]]]]
ImageEmbedFunc: TypeAlias = Callable[
    [Sequence[str | bytes]], Awaitable[list[list[float]]]
]
EmbeddingsByType: TypeAlias = Mapping[ModalityType, EmbedFunc]


# =============================================================================
# Constants
# =============================================================================

DEFAULT_EMBED_BATCH_SIZE = 10

# Retry settings for with_retry
MAX_RETRIES = 3
MIN_RETRY_WAIT = 1  # seconds
MAX_RETRY_WAIT = 10  # seconds


# =============================================================================
# Custom Exceptions
# =============================================================================


class EmbeddingError(Exception):
    """Base exception for embedding operations."""

    pass


class MissingEmbeddingFunctionError(EmbeddingError):
    """No embedding function is configured for the requested modality."""

    pass


# =============================================================================
# Helpers
# =============================================================================


async def batch_embeddings(
    values: Sequence[T],
    embed_func: Callable[[Sequence[T]], Awaitable[list[list[float]]]],
    chunk_size: int = DEFAULT_EMBED_BATCH_SIZE,
) -> list[list[float]]:
    """
    Embed ``values`` in chunks of at most ``chunk_size``.

    Args:
        values: Values to embed, e.g. node texts.
        embed_func: Provider function.
        chunk_size: Maximum values per provider call (>= 1).

    Returns:
        One embedding per value, in input order.

    Raises:
        ValueError: If chunk_size < 1.
        EmbeddingError: If the provider returns a different number of
            embeddings than it was given values.
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")

    results: list[list[float]] = []
    for start in range(0, len(values), chunk_size):
        chunk = values[start : start + chunk_size]
        embeddings = await embed_func(chunk)
        if len(embeddings) != len(chunk):
            raise EmbeddingError(
                f"Embedding function returned {len(embeddings)} embeddings "
                f"for {len(chunk)} values"
            )
        results.extend(embeddings)

    logger.debug(
        "batch_embeddings_complete",
        value_count=len(values),
        chunk_size=chunk_size,
    )
    return results


def _embed_func_for(
    embeddings: EmbeddingsByType, modality: ModalityType
) -> EmbedFunc:
    embed_func = embeddings.get(modality)
    if embed_func is None:
        raise MissingEmbeddingFunctionError(
            f"No {modality.upper()} embedding function provided. "
            "Pass embeddings option to VectorStoreIndex."
        )
    return embed_func


async def calculate_query_embedding(
    content: QueryContent,
    embeddings: EmbeddingsByType,
) -> list[float] | None:
    """
    Embed one piece of query content with its modality's function.

    Text queries always use the TEXT function, which is what makes
    cross-modal (e.g. CLIP) search work when images were indexed with a
    shared embedding space.

    Returns:
        The embedding, or None when the provider returned no vectors.

    Raises:
        MissingEmbeddingFunctionError: If the modality has no function.
    """
    match content:
        case TextContent(text=text):
            vectors = await _embed_func_for(embeddings, ModalityType.TEXT)([text])
        case ImageContent(image=image):
            vectors = await _embed_func_for(embeddings, ModalityType.IMAGE)([image])
    return vectors[0] if vectors else None


def with_retry(
    embed_func: EmbedFunc,
    attempts: int = MAX_RETRIES,
    min_wait: float = MIN_RETRY_WAIT,
    max_wait: float = MAX_RETRY_WAIT,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
) -> EmbedFunc:
    """
    Wrap a provider function with exponential-backoff retries.

    The final failure is re-raised as the provider's own exception.

    Args:
        embed_func: Provider function to wrap.
        attempts: Total attempts including the first call.
        min_wait: Minimum wait between attempts in seconds.
        max_wait: Maximum wait between attempts in seconds.
        retry_on: Exception types that trigger a retry.
    """

    async def _embed(values: Sequence[Any]) -> list[list[float]]:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
            retry=retry_if_exception_type(retry_on),
            reraise=True,
        ):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.warning(
                        "embedding_retry",
                        attempt=attempt.retry_state.attempt_number,
                        value_count=len(values),
                    )
                return await embed_func(values)
        raise AssertionError("unreachable")

    return _embed


__all__ = [
    "EmbedFunc",
    "TextEmbedFunc",
    "ImageEmbedFunc",
    "EmbeddingsByType",
    "DEFAULT_EMBED_BATCH_SIZE",
    "EmbeddingError",
    "MissingEmbeddingFunctionError",
    "batch_embeddings",
    "calculate_query_embedding",
    "with_retry",
]
