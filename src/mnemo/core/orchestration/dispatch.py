from __future__ import annotations

from typing import Any, Awaitable, Callable

import httpx
from pydantic import ValidationError

from mnemo.core.config import Settings
from mnemo.core.connectors.args import MEMORY_ACTION_ARGS, STRIPE_ACTION_ARGS, UI_ACTION_ARGS, FreeformArgs, ToolArgs
from mnemo.core.connectors.memory import MemoryConnector
from mnemo.core.connectors.stripe import stripe_handler
from mnemo.core.connectors.ui import UIConnector
from mnemo.core.errors import ExecutionError, ToolNotFoundError

ToolHandler = Callable[[str, ToolArgs], Awaitable[Any]]


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ())) or "args"
        parts.append(f"{location}: {error.get('msg', 'invalid')}")
    return "; ".join(parts)


class DispatchTable:
    """Flat mapping from tool name to its async handler and per-action argument models."""

    def __init__(self) -> None:
        self._handlers: dict[str, ToolHandler] = {}
        self._arg_models: dict[str, dict[str, type[ToolArgs]]] = {}

    def register(self, tool: str, handler: ToolHandler, arg_models: dict[str, type[ToolArgs]] | None = None) -> None:
        self._handlers[tool] = handler
        self._arg_models[tool] = dict(arg_models or {})

    def get(self, tool: str) -> ToolHandler:
        handler = self._handlers.get(tool)
        if handler is None:
            raise ToolNotFoundError(tool, self.names())
        return handler

    def names(self) -> list[str]:
        return sorted(self._handlers.keys())

    def validate(self, tool: str, action: str, args: dict[str, Any]) -> ToolArgs:
        models = self._arg_models.get(tool) or {}
        if not models:
            return FreeformArgs.model_validate(args)
        model = models.get(action)
        if model is None:
            raise ExecutionError(f"Unknown {tool} action: {action}")
        try:
            return model.model_validate(args)
        except ValidationError as exc:
            raise ExecutionError(f"Invalid arguments for {tool}.{action}: {_format_validation_error(exc)}") from exc

    async def dispatch(self, tool: str, action: str, args: dict[str, Any]) -> Any:
        handler = self.get(tool)
        validated = self.validate(tool, action, args)
        return await handler(action, validated)


def build_dispatch_table(settings: Settings | None = None, client: httpx.AsyncClient | None = None) -> DispatchTable:
    settings = settings or Settings()
    table = DispatchTable()
    table.register("memory", MemoryConnector(settings.memory, client=client).handle, MEMORY_ACTION_ARGS)
    table.register("ui", UIConnector(settings.ui).handle, UI_ACTION_ARGS)
    table.register("stripe", stripe_handler, STRIPE_ACTION_ARGS)
    return table
