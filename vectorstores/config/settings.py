"""
Pydantic settings for retrieval configuration.

This module centralizes the tunable parameters of the retrieval core. It uses
Pydantic Settings v2 with SettingsConfigDict to load values from environment
variables (prefixed with ``VECTORSTORES_``) and an optional .env file.

Settings instances are immutable. Components never read a process-wide
mutable object: every constructor accepts an explicit ``settings`` argument
and only falls back to the cached, read-only ``get_settings()`` instance
when none is given.

Usage:
    from vectorstores.config.settings import RetrievalSettings, get_settings

    # Environment-driven defaults (cached)
    settings = get_settings()

    # Explicit configuration with overrides merged over the defaults
    settings = RetrievalSettings().with_overrides(bm25_k1=1.2, hybrid_alpha=0.7)
    store = SimpleVectorStore(settings=settings)
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from vectorstores.utils.similarity import SimilarityMetric
from vectorstores.vector_store.types import (
    DEFAULT_HYBRID_ALPHA,
    DEFAULT_HYBRID_PREFETCH_MULTIPLIER,
)


class RetrievalSettings(BaseSettings):
    """
    Retrieval settings loaded from environment variables.

    Attributes are organized into logical groups:
    - Environment Configuration
    - Lexical Index Configuration
    - Hybrid Fusion Configuration
    - Vector Scoring Configuration
    - Embedding Configuration
    - Logging Configuration
    """

    # =========================================================================
    # Environment Configuration
    # =========================================================================
    environment: str = Field(
        default="local",
        description=(
            "Runtime environment identifier. 'local' renders console logs, "
            "'production' renders JSON logs."
        ),
    )

    # =========================================================================
    # Lexical Index Configuration
    # =========================================================================
    bm25_k1: float = Field(
        default=1.5,
        ge=0.0,
        description="BM25 term frequency saturation. 0 gives binary term presence.",
    )

    bm25_b: float = Field(
        default=0.75,
        ge=0.0,
        le=1.0,
        description="BM25 document length normalization. 0 disables normalization.",
    )

    bm25_cache_size: int = Field(
        default=8,
        ge=0,
        description=(
            "Number of BM25 indexes kept per dispatcher, keyed by corpus "
            "snapshot version. Set to 0 to rebuild on every query."
        ),
    )

    # =========================================================================
    # Hybrid Fusion Configuration
    # =========================================================================
    similarity_top_k: int = Field(
        default=2,
        ge=1,
        description="Default number of results returned by a retriever.",
    )

    hybrid_alpha: float = Field(
        default=DEFAULT_HYBRID_ALPHA,
        ge=0.0,
        le=1.0,
        description="Weight of the vector ranking in hybrid fusion (1 = pure vector).",
    )

    hybrid_prefetch_multiplier: int = Field(
        default=DEFAULT_HYBRID_PREFETCH_MULTIPLIER,
        ge=1,
        description=(
            "Each hybrid sub-search fetches max(top_k, multiplier * top_k) "
            "candidates before fusion."
        ),
    )

    # =========================================================================
    # Vector Scoring Configuration
    # =========================================================================
    similarity_metric: SimilarityMetric = Field(
        default=SimilarityMetric.COSINE,
        description="Similarity used by the in-memory vector scorer.",
    )

    # =========================================================================
    # Embedding Configuration
    # =========================================================================
    embed_batch_size: int = Field(
        default=10,
        ge=1,
        description="Maximum number of values sent to the embedding provider per call.",
    )

    # =========================================================================
    # Logging Configuration
    # =========================================================================
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL.",
    )

    # =========================================================================
    # Pydantic Settings Configuration
    # =========================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        validate_default=True,
        env_prefix="VECTORSTORES_",
        frozen=True,
    )

    # =========================================================================
    # Validators
    # =========================================================================
    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard Python logging levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"Invalid log level '{v}'. Must be one of: {valid_levels}")
        return upper_v

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is either 'local' or 'production'."""
        lower_v = v.lower()
        if lower_v not in {"local", "production"}:
            raise ValueError(
                f"Invalid environment '{v}'. Must be 'local' or 'production'."
            )
        return lower_v

    # =========================================================================
    # Helper Methods
    # =========================================================================
    def with_overrides(self, **overrides: Any) -> "RetrievalSettings":
        """
        Return a validated copy with ``overrides`` merged over these values.

        Unknown keys are rejected rather than ignored so a typo cannot
        silently fall back to a default.

        Raises:
            ValueError: If a key is unknown or a value fails validation.
        """
        unknown = set(overrides) - set(type(self).model_fields)
        if unknown:
            raise ValueError(f"Unknown retrieval settings: {sorted(unknown)}")
        merged = self.model_dump()
        merged.update(overrides)
        return type(self).model_validate(merged)

    def is_production(self) -> bool:
        """Check if running with production logging."""
        return self.environment == "production"


@lru_cache
def get_settings() -> RetrievalSettings:
    """
    Get the environment-driven retrieval settings.

    Cached so the environment is read once. The returned instance is frozen,
    so sharing it between components cannot leak mutations.

    Returns:
        RetrievalSettings: The default settings instance.
    """
    return RetrievalSettings()


__all__ = [
    "RetrievalSettings",
    "get_settings",
]
