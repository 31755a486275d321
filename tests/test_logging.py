import json
import logging
from collections.abc import Iterator

import pytest
import structlog

from vectorstores.logging import (
    _redact_sensitive_data,
    _truncate_embeddings,
    bind_query_context,
    clear_context,
    configure_logging,
)


@pytest.fixture(autouse=True)
def reset_structlog() -> Iterator[None]:
    """Restore default structlog configuration after each test."""

    yield
    clear_context()
    structlog.reset_defaults()
    logging.getLogger().handlers.clear()


def test_redacts_credentials() -> None:
    """Credential-like keys are replaced."""

    event = _redact_sensitive_data(
        None, "info", {"event": "embed", "api_key": "sk-123", "OPENAI_TOKEN": "t"}
    )

    assert event["api_key"] == "[REDACTED]"
    assert event["OPENAI_TOKEN"] == "[REDACTED]"
    assert event["event"] == "embed"


def test_truncates_embedding_vectors() -> None:
    """Long float vectors become a short preview with their dimension."""

    event = _truncate_embeddings(
        None,
        "debug",
        {"query_embedding": [0.1] * 1536, "ids": ["a", "b", "c", "d", "e", "f"], "v": [1.0]},
    )

    assert event["query_embedding"].startswith("[0.1000, 0.1000, 0.1000, 0.1000, ...]")
    assert "dim=1536" in event["query_embedding"]
    assert event["ids"] == ["a", "b", "c", "d", "e", "f"]
    assert event["v"] == [1.0]


def test_production_renders_json(capsys: pytest.CaptureFixture[str]) -> None:
    """Production logging emits one JSON object per event with bound context."""

    configure_logging(environment="production", log_level="INFO")
    bind_query_context(query_id="q-1")

    structlog.get_logger("vectorstores.test").info(
        "query_complete", mode="hybrid", api_key="secret"
    )

    lines = [line for line in capsys.readouterr().out.splitlines() if line.strip()]
    record = json.loads(lines[-1])
    assert record["event"] == "query_complete"
    assert record["mode"] == "hybrid"
    assert record["query_id"] == "q-1"
    assert record["api_key"] == "[REDACTED]"
    assert record["level"] == "info"


def test_local_defaults_to_debug() -> None:
    """Local environment logs at DEBUG unless told otherwise."""

    configure_logging(environment="local")

    assert logging.getLogger().level == logging.DEBUG
