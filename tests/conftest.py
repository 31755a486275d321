from collections.abc import Sequence

import pytest

from vectorstores.config.settings import RetrievalSettings
from vectorstores.schema import Node
from vectorstores.utils.embeddings import TextEmbedFunc


async def _keyword_embed(texts: Sequence[str]) -> list[list[float]]:
    """Deterministic embeddings: one dimension per animal, 0.5 for "pet"."""

    vectors = []
    for text in texts:
        normalized = text.lower()
        vectors.append(
            [
                1.0 if "cat" in normalized else 0.0,
                1.0 if "dog" in normalized else 0.0,
                1.0 if "bird" in normalized else 0.0,
                1.0 if "fish" in normalized else 0.0,
                0.5 if "pet" in normalized else 0.0,
            ]
        )
    return vectors


@pytest.fixture
def embed_func() -> TextEmbedFunc:
    """Keyword-based text embedding function."""

    return _keyword_embed


@pytest.fixture
def settings() -> RetrievalSettings:
    """Settings isolated from VECTORSTORES_* environment variables."""

    return RetrievalSettings(
        _env_file=None,
        environment="local",
        bm25_k1=1.5,
        bm25_b=0.75,
        bm25_cache_size=8,
        similarity_top_k=2,
        hybrid_alpha=0.5,
        hybrid_prefetch_multiplier=5,
        similarity_metric="cosine",
        embed_batch_size=10,
        log_level="INFO",
    )


@pytest.fixture
def cat_dog_nodes() -> list[Node]:
    """Two-document corpus with orthogonal embeddings."""

    return [
        Node(text="the cat is on the mat", id_="1", embedding=[1.0, 0.0]),
        Node(text="the dog is in the house", id_="2", embedding=[0.0, 1.0]),
    ]


@pytest.fixture
def animal_nodes() -> list[Node]:
    """Ten-document corpus without embeddings, for index ingestion."""

    texts = [
        "The cat is sleeping",
        "The dog is running",
        "The bird is flying",
        "The fish is swimming",
        "The cat and dog play together",
        "A bird watches the fish",
        "My pet cat is fluffy",
        "The pet dog loves walks",
        "Wild bird in the garden",
        "Tropical fish in the aquarium",
    ]
    return [Node(text=text, id_=str(i)) for i, text in enumerate(texts, start=1)]
