from collections.abc import Sequence
from unittest.mock import AsyncMock

import pytest

from vectorstores.schema import ImageContent, ModalityType, TextContent
from vectorstores.utils.embeddings import (
    EmbeddingError,
    MissingEmbeddingFunctionError,
    batch_embeddings,
    calculate_query_embedding,
    with_retry,
)

TEXT_EMBEDDING = [0.1, 0.2, 0.3]
IMAGE_EMBEDDING = [0.4, 0.5, 0.6]


@pytest.fixture
def text_embed() -> AsyncMock:
    return AsyncMock(return_value=[TEXT_EMBEDDING])


@pytest.fixture
def image_embed() -> AsyncMock:
    return AsyncMock(return_value=[IMAGE_EMBEDDING])


# =============================================================================
# calculate_query_embedding
# =============================================================================


@pytest.mark.asyncio
async def test_text_query_uses_text_function(
    text_embed: AsyncMock, image_embed: AsyncMock
) -> None:
    """Text content is embedded with the TEXT function."""

    embeddings = {ModalityType.TEXT: text_embed, ModalityType.IMAGE: image_embed}

    result = await calculate_query_embedding(
        TextContent(text="What did the author do in college?"), embeddings
    )

    assert result == TEXT_EMBEDDING
    text_embed.assert_awaited_once_with(["What did the author do in college?"])
    image_embed.assert_not_awaited()


@pytest.mark.asyncio
async def test_image_query_uses_image_function(
    text_embed: AsyncMock, image_embed: AsyncMock
) -> None:
    """Image content (URL or bytes) is passed through to the IMAGE function."""

    embeddings = {ModalityType.TEXT: text_embed, ModalityType.IMAGE: image_embed}

    by_url = await calculate_query_embedding(
        ImageContent(image="https://example.com/image.jpg"), embeddings
    )
    by_bytes = await calculate_query_embedding(ImageContent(image=b"\xff\xd8"), embeddings)

    assert by_url == IMAGE_EMBEDDING
    assert by_bytes == IMAGE_EMBEDDING
    image_embed.assert_any_await(["https://example.com/image.jpg"])
    image_embed.assert_any_await([b"\xff\xd8"])


@pytest.mark.asyncio
async def test_string_modality_keys_accepted(text_embed: AsyncMock) -> None:
    """Plain "text"/"image" keys work as modality keys."""

    result = await calculate_query_embedding(TextContent(text="hi"), {"text": text_embed})

    assert result == TEXT_EMBEDDING


@pytest.mark.asyncio
async def test_missing_text_function(image_embed: AsyncMock) -> None:
    """A text query without a TEXT function names the missing modality."""

    with pytest.raises(MissingEmbeddingFunctionError, match="No TEXT embedding function"):
        await calculate_query_embedding(
            TextContent(text="query"), {ModalityType.IMAGE: image_embed}
        )


@pytest.mark.asyncio
async def test_missing_image_function(text_embed: AsyncMock) -> None:
    """An image query without an IMAGE function names the missing modality."""

    with pytest.raises(MissingEmbeddingFunctionError, match="No IMAGE embedding function"):
        await calculate_query_embedding(
            ImageContent(image="https://example.com/image.jpg"),
            {ModalityType.TEXT: text_embed},
        )


@pytest.mark.asyncio
async def test_empty_provider_response_returns_none(
    text_embed: AsyncMock, image_embed: AsyncMock
) -> None:
    """A provider returning no vectors yields None."""

    text_embed.return_value = []
    image_embed.return_value = []
    embeddings = {ModalityType.TEXT: text_embed, ModalityType.IMAGE: image_embed}

    assert await calculate_query_embedding(TextContent(text="test"), embeddings) is None
    assert await calculate_query_embedding(ImageContent(image="x.png"), embeddings) is None


@pytest.mark.asyncio
async def test_provider_errors_surface_unchanged(text_embed: AsyncMock) -> None:
    """Provider exceptions are not wrapped."""

    error = TimeoutError("provider timed out")
    text_embed.side_effect = error

    with pytest.raises(TimeoutError) as exc_info:
        await calculate_query_embedding(TextContent(text="q"), {ModalityType.TEXT: text_embed})

    assert exc_info.value is error


# =============================================================================
# batch_embeddings
# =============================================================================


async def _length_embed(values: Sequence[str]) -> list[list[float]]:
    return [[float(len(value))] for value in values]


@pytest.mark.asyncio
async def test_batch_embeddings_chunks_and_preserves_order() -> None:
    """Values are sent in chunks of at most chunk_size, results stay in order."""

    calls: list[int] = []

    async def embed(values: Sequence[str]) -> list[list[float]]:
        calls.append(len(values))
        return await _length_embed(values)

    values = ["a", "bb", "ccc", "dddd", "eeeee"]

    result = await batch_embeddings(values, embed, chunk_size=2)

    assert result == [[1.0], [2.0], [3.0], [4.0], [5.0]]
    assert calls == [2, 2, 1]


@pytest.mark.asyncio
async def test_batch_embeddings_empty_input() -> None:
    """No values means no provider calls."""

    embed = AsyncMock()

    assert await batch_embeddings([], embed, chunk_size=3) == []
    embed.assert_not_awaited()


@pytest.mark.asyncio
async def test_batch_embeddings_count_mismatch() -> None:
    """A provider returning the wrong number of vectors is an error."""

    embed = AsyncMock(return_value=[[1.0]])

    with pytest.raises(EmbeddingError):
        await batch_embeddings(["a", "b"], embed, chunk_size=2)


@pytest.mark.asyncio
async def test_batch_embeddings_rejects_bad_chunk_size() -> None:
    """chunk_size must be positive."""

    with pytest.raises(ValueError):
        await batch_embeddings(["a"], _length_embed, chunk_size=0)


# =============================================================================
# with_retry
# =============================================================================


@pytest.mark.asyncio
async def test_with_retry_recovers_from_transient_failure() -> None:
    """A transient provider failure is retried."""

    embed = AsyncMock(side_effect=[ConnectionError("flaky"), [[1.0]]])
    wrapped = with_retry(embed, attempts=3, min_wait=0, max_wait=0)

    assert await wrapped(["a"]) == [[1.0]]
    assert embed.await_count == 2


@pytest.mark.asyncio
async def test_with_retry_reraises_after_last_attempt() -> None:
    """The provider's own exception surfaces after the final attempt."""

    embed = AsyncMock(side_effect=ConnectionError("down"))
    wrapped = with_retry(embed, attempts=2, min_wait=0, max_wait=0)

    with pytest.raises(ConnectionError, match="down"):
        await wrapped(["a"])

    assert embed.await_count == 2


@pytest.mark.asyncio
async def test_with_retry_only_retries_listed_errors() -> None:
    """Errors outside retry_on fail immediately."""

    embed = AsyncMock(side_effect=ValueError("bad input"))
    wrapped = with_retry(
        embed, attempts=3, min_wait=0, max_wait=0, retry_on=(ConnectionError,)
    )

    with pytest.raises(ValueError):
        await wrapped(["a"])

    assert embed.await_count == 1
