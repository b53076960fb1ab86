from __future__ import annotations

import io
import json
import logging

from mnemo.core.logging.context import get_log_context, log_context
from mnemo.core.logging.json_formatter import JSONFormatter
from mnemo.core.logging.redact import redact_headers


def _capture(name: str) -> tuple[logging.Logger, io.StringIO]:
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JSONFormatter())

    logger = logging.getLogger(name)
    logger.handlers = []
    logger.setLevel(logging.INFO)
    logger.propagate = False
    logger.addHandler(handler)
    return logger, stream


def test_logging_json_line_with_context() -> None:
    logger, stream = _capture("mnemo.test.json")

    with log_context(correlation_id="c1", agent="ExecutionAgent"):
        logger.info("hello", extra={"extra_fields": {"confidence": 0.9}})

    payload = json.loads(stream.getvalue().strip())
    assert payload["msg"] == "hello"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "mnemo.test.json"
    assert payload["correlation_id"] == "c1"
    assert payload["agent"] == "ExecutionAgent"
    assert payload["confidence"] == 0.9
    assert "ts_iso_utc" in payload


def test_nested_context_keeps_outer_values() -> None:
    with log_context(correlation_id="outer", session_id="s1"):
        with log_context(tool="memory"):
            assert get_log_context() == {"correlation_id": "outer", "session_id": "s1", "tool": "memory"}
        assert get_log_context() == {"correlation_id": "outer", "session_id": "s1"}
    assert get_log_context() == {}


def test_secrets_are_redacted() -> None:
    logger, stream = _capture("mnemo.test.redact")

    logger.info("calling with api_key=abc123 and Bearer tok-9")

    payload = json.loads(stream.getvalue().strip())
    assert "abc123" not in payload["msg"]
    assert "tok-9" not in payload["msg"]
    assert redact_headers({"X-API-Key": "k", "Accept": "json"}) == {"X-API-Key": "***", "Accept": "json"}
