from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Iterator

correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)
session_id_var: ContextVar[str | None] = ContextVar("session_id", default=None)
agent_var: ContextVar[str | None] = ContextVar("agent", default=None)
tool_var: ContextVar[str | None] = ContextVar("tool", default=None)

_CONTEXT_VARS: dict[str, ContextVar[str | None]] = {
    "correlation_id": correlation_id_var,
    "session_id": session_id_var,
    "agent": agent_var,
    "tool": tool_var,
}


def set_context(**kwargs: str | None) -> dict[str, Token[str | None]]:
    tokens: dict[str, Token[str | None]] = {}
    for key, value in kwargs.items():
        var = _CONTEXT_VARS.get(key)
        if var is None:
            continue
        tokens[key] = var.set(value)
    return tokens


def reset_context(tokens: dict[str, Token[str | None]]) -> None:
    for key, token in tokens.items():
        var = _CONTEXT_VARS.get(key)
        if var is not None:
            var.reset(token)


@contextmanager
def log_context(
    correlation_id: str | None = None,
    session_id: str | None = None,
    agent: str | None = None,
    tool: str | None = None,
) -> Iterator[None]:
    # Only the given fields are overridden; enclosing values stay visible.
    overrides = {
        key: value
        for key, value in {
            "correlation_id": correlation_id,
            "session_id": session_id,
            "agent": agent,
            "tool": tool,
        }.items()
        if value is not None
    }
    tokens = set_context(**overrides)
    try:
        yield
    finally:
        reset_context(tokens)


def get_log_context() -> dict[str, str]:
    values = {key: var.get() for key, var in _CONTEXT_VARS.items()}
    return {key: value for key, value in values.items() if value is not None}
