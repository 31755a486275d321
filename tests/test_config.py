import pytest
from pydantic import ValidationError

from vectorstores.config.settings import RetrievalSettings, get_settings
from vectorstores.utils.similarity import SimilarityMetric
from vectorstores.vector_store.types import (
    DEFAULT_HYBRID_ALPHA,
    DEFAULT_HYBRID_PREFETCH_MULTIPLIER,
)


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    """Defaults match the documented BM25 and hybrid parameters."""

    monkeypatch.delenv("VECTORSTORES_BM25_K1", raising=False)
    settings = RetrievalSettings(_env_file=None)

    assert settings.bm25_k1 == 1.5
    assert settings.bm25_b == 0.75
    assert settings.hybrid_alpha == 0.5
    assert settings.hybrid_prefetch_multiplier == 5
    assert settings.similarity_metric is SimilarityMetric.COSINE
    assert settings.environment == "local"
    assert not settings.is_production()


def test_environment_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    """VECTORSTORES_-prefixed variables override defaults."""

    monkeypatch.setenv("VECTORSTORES_BM25_K1", "1.2")
    monkeypatch.setenv("VECTORSTORES_SIMILARITY_METRIC", "euclidean")
    monkeypatch.setenv("VECTORSTORES_ENVIRONMENT", "PRODUCTION")

    settings = RetrievalSettings(_env_file=None)

    assert settings.bm25_k1 == 1.2
    assert settings.similarity_metric is SimilarityMetric.EUCLIDEAN
    assert settings.environment == "production"
    assert settings.is_production()


def test_validators_normalise_and_reject() -> None:
    """log_level is upper-cased; invalid values raise."""

    assert RetrievalSettings(_env_file=None, log_level="debug").log_level == "DEBUG"

    with pytest.raises(ValidationError):
        RetrievalSettings(_env_file=None, log_level="verbose")
    with pytest.raises(ValidationError):
        RetrievalSettings(_env_file=None, environment="staging")
    with pytest.raises(ValidationError):
        RetrievalSettings(_env_file=None, bm25_b=1.5)
    with pytest.raises(ValidationError):
        RetrievalSettings(_env_file=None, bm25_k1=-1)


def test_settings_are_frozen(settings: RetrievalSettings) -> None:
    """Instances cannot be mutated after construction."""

    with pytest.raises(ValidationError):
        settings.bm25_k1 = 2.0


def test_with_overrides(settings: RetrievalSettings) -> None:
    """Overrides produce a validated copy and leave the original untouched."""

    updated = settings.with_overrides(bm25_k1=1.2, hybrid_alpha=0.8)

    assert updated.bm25_k1 == 1.2
    assert updated.hybrid_alpha == 0.8
    assert updated.bm25_b == settings.bm25_b
    assert settings.bm25_k1 == 1.5


def test_with_overrides_rejects_unknown_and_invalid(settings: RetrievalSettings) -> None:
    """Typos and out-of-range values are errors."""

    with pytest.raises(ValueError, match="Unknown"):
        settings.with_overrides(bm25_k2=1.0)
    with pytest.raises(ValidationError):
        settings.with_overrides(hybrid_alpha=2.0)


def test_hybrid_defaults_come_from_store_constants(monkeypatch: pytest.MonkeyPatch) -> None:
    """Hybrid defaults are the vector store constants."""

    monkeypatch.delenv("VECTORSTORES_HYBRID_ALPHA", raising=False)
    monkeypatch.delenv("VECTORSTORES_HYBRID_PREFETCH_MULTIPLIER", raising=False)
    settings = RetrievalSettings(_env_file=None)

    assert settings.hybrid_alpha == DEFAULT_HYBRID_ALPHA
    assert settings.hybrid_prefetch_multiplier == DEFAULT_HYBRID_PREFETCH_MULTIPLIER


def test_get_settings_is_cached() -> None:
    """get_settings returns the same immutable instance."""

    assert get_settings() is get_settings()
