"""
Logging configuration for applications embedding the retrieval core.

Library modules only ever call ``structlog.get_logger(__name__)`` and emit
snake_case events with key/value context. Applications call
``configure_logging()`` once at startup to decide how those events render.

Features:
    - JSON output for ``production``, colored console output for ``local``
    - Integration with standard library logging for third-party libraries
    - Long float vectors (embeddings) truncated to a short preview
    - Credential-like keys (api_key, token, ...) redacted

Usage:
    from vectorstores.logging import configure_logging

    # At application startup
    configure_logging(environment="production", log_level="INFO")

    # Or from settings
    settings = get_settings()
    configure_logging(settings.environment, settings.log_level)

    # Request-scoped context included in every event of the current task
    bind_query_context(query_id="q-42", mode="hybrid")
    ...
    clear_context()
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# Credential-like key fragments whose values are replaced in log events
SENSITIVE_FIELDS = frozenset(
    {
        "password",
        "api_key",
        "apikey",
        "secret",
        "token",
        "authorization",
        "credential",
        "private_key",
    }
)

# Float sequences longer than this are replaced by a preview
MAX_VECTOR_PREVIEW = 4


def _redact_sensitive_data(
    _logger: WrappedLogger,
    _method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Replace the values of credential-like keys with "[REDACTED]"."""
    for key in list(event_dict.keys()):
        key_lower = key.lower()
        if any(sensitive in key_lower for sensitive in SENSITIVE_FIELDS):
            event_dict[key] = "[REDACTED]"
    return event_dict


def _is_vector(value: Any) -> bool:
    return (
        isinstance(value, (list, tuple))
        and len(value) > MAX_VECTOR_PREVIEW
        and all(isinstance(v, float) for v in value)
    )


def _truncate_embeddings(
    _logger: WrappedLogger,
    _method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """
    Shorten embedding vectors in log events.

    A 1536-dimension embedding would otherwise flood every event it is
    attached to. The vector is replaced by its first few components and
    its dimension.
    """
    for key, value in event_dict.items():
        if _is_vector(value):
            preview = ", ".join(f"{v:.4f}" for v in value[:MAX_VECTOR_PREVIEW])
            event_dict[key] = f"[{preview}, ...] (dim={len(value)})"
    return event_dict


def configure_logging(
    environment: str = "local",
    log_level: str | None = None,
) -> None:
    """
    Configure structlog and the root stdlib logger.

    Args:
        environment: 'local' for console output, 'production' for JSON.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Defaults to DEBUG for local, INFO for production.
    """
    if log_level is None:
        log_level = "DEBUG" if environment == "local" else "INFO"

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    production = environment == "production"

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _truncate_embeddings,
        _redact_sensitive_data,
    ]

    structlog.configure(
        processors=shared_processors
        + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer: Processor = (
        structlog.processors.JSONRenderer()
        if production
        else structlog.dev.ConsoleRenderer(colors=True)
    )
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(numeric_level)

    logger = structlog.get_logger("vectorstores.logging")
    logger.info(
        "logging_configured",
        environment=environment,
        log_level=log_level,
        output_format="json" if production else "console",
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger (typically ``get_logger(__name__)``)."""
    return structlog.get_logger(name)


def bind_query_context(**context: Any) -> None:
    """
    Bind key/values (e.g. query_id, mode) to every subsequent event of
    the current context.
    """
    structlog.contextvars.bind_contextvars(**context)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()


__all__ = [
    "configure_logging",
    "get_logger",
    "bind_query_context",
    "clear_context",
]
