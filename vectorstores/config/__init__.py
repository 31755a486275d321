"""
Configuration package for retrieval settings.

This package exposes the RetrievalSettings class and the cached loader for
environment-driven defaults.

Usage:
    from vectorstores.config import RetrievalSettings, get_settings

    # Cached defaults read from VECTORSTORES_* environment variables
    settings = get_settings()

    # Explicit instance with overrides (useful for testing)
    settings = RetrievalSettings(bm25_k1=1.2)
    settings = settings.with_overrides(hybrid_alpha=0.8)
"""

from vectorstores.config.settings import (
    RetrievalSettings,
    get_settings,
)

__all__ = [
    "RetrievalSettings",
    "get_settings",
]
