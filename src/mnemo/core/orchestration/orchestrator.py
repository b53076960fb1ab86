from __future__ import annotations

import logging
import time
from dataclasses import fields
from typing import Any, Callable
from uuid import uuid4

from mnemo.core.errors import ResolutionError
from mnemo.core.logging.context import get_log_context, log_context
from mnemo.core.observability.trace import Trace

from .dispatch import DispatchTable
from .resolver import resolve_command
from .schemas import OrchestratorResult, ParsedCommand, SessionContext

logger = logging.getLogger(__name__)

Resolver = Callable[[str], ParsedCommand]


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000.0, 3)


class Orchestrator:
    """Resolves free text into a command, dispatches it and reports a uniform result."""

    def __init__(self, dispatch_table: DispatchTable, resolver: Resolver = resolve_command) -> None:
        self.dispatch_table = dispatch_table
        self.resolver = resolver

    def parse_only(self, text: str) -> ParsedCommand:
        return self.resolver(text)

    async def orchestrate(self, text: str) -> OrchestratorResult:
        started = time.perf_counter()
        correlation_id = get_log_context().get("correlation_id") or str(uuid4())
        trace = Trace(task=text, correlation_id=correlation_id)
        trace.emit("CommandReceived", {"length": len(text)})

        try:
            command = self.resolver(text)
        except Exception as exc:
            trace.emit("ResolutionFailed", {"error": str(exc)})
            if isinstance(exc, ResolutionError):
                logger.info("could not resolve input", extra={"extra_fields": {"input_length": len(text)}})
            else:
                logger.exception("resolver raised", extra={"extra_fields": {"input_length": len(text)}})
            return OrchestratorResult(
                success=False,
                error=str(exc),
                command=ParsedCommand.unresolved(text),
                execution_time_ms=_elapsed_ms(started),
                metadata={"correlation_id": correlation_id, "trace_events": trace.events},
            )

        trace.emit(
            "CommandResolved",
            {"tool": command.tool, "action": command.action, "confidence": command.confidence},
        )
        with log_context(tool=command.tool):
            try:
                data = await self.dispatch_table.dispatch(command.tool, command.action, dict(command.args))
            except Exception as exc:
                trace.emit("DispatchFailed", {"error_type": type(exc).__name__, "error": str(exc)})
                logger.warning(
                    "dispatch failed for %s.%s: %s",
                    command.tool,
                    command.action,
                    exc,
                    extra={"extra_fields": {"confidence": command.confidence}},
                )
                return OrchestratorResult(
                    success=False,
                    error=str(exc),
                    command=command,
                    execution_time_ms=_elapsed_ms(started),
                    metadata={"correlation_id": correlation_id, "trace_events": trace.events},
                )

        execution_time_ms = _elapsed_ms(started)
        trace.emit("DispatchSucceeded", {"execution_time_ms": execution_time_ms})
        logger.info(
            "dispatched %s.%s",
            command.tool,
            command.action,
            extra={"extra_fields": {"execution_time_ms": execution_time_ms, "confidence": command.confidence}},
        )
        return OrchestratorResult(
            success=True,
            data=data,
            command=command,
            execution_time_ms=execution_time_ms,
            metadata={"correlation_id": correlation_id, "trace_events": trace.events},
        )

    async def orchestrate_batch(self, texts: list[str]) -> list[OrchestratorResult]:
        # One full resolve/dispatch cycle at a time keeps results in input order.
        results: list[OrchestratorResult] = []
        for text in texts:
            results.append(await self.orchestrate(text))
        return results


_CAMEL_KEYS = {
    "lastMemoryId": "last_memory_id",
    "lastSearchResults": "last_search_results",
    "lastUIAction": "last_ui_action",
    "lastURL": "last_url",
}


class ContextualOrchestrator:
    """Keeps a small per-session memory of what the previous commands produced.

    One instance serves one session; share it across sessions only behind an
    external keying layer.
    """

    def __init__(self, orchestrator: Orchestrator) -> None:
        self.orchestrator = orchestrator
        self.session = SessionContext()

    @staticmethod
    def _field(key: str) -> str:
        name = _CAMEL_KEYS.get(key, key)
        if name not in SessionContext.field_names():
            raise KeyError(key)
        return name

    def set_context(self, key: str, value: Any) -> None:
        setattr(self.session, self._field(key), value)

    def get_context(self, key: str) -> Any:
        return getattr(self.session, self._field(key))

    def clear_context(self) -> None:
        self.session = SessionContext()

    def snapshot(self) -> dict[str, Any]:
        return {item.name: getattr(self.session, item.name) for item in fields(self.session)}

    def parse_only(self, text: str) -> ParsedCommand:
        return self.orchestrator.parse_only(text)

    async def orchestrate(self, text: str) -> OrchestratorResult:
        result = await self.orchestrator.orchestrate(text)
        if result.success:
            self._remember(result)
        return result

    def _remember(self, result: OrchestratorResult) -> None:
        data = result.data
        if not isinstance(data, dict):
            return
        tool = result.command.tool

        if tool == "memory" and data.get("id"):
            self.set_context("last_memory_id", str(data["id"]))

        memories = data.get("memories")
        if isinstance(memories, list) and memories:
            self.set_context(
                "last_search_results",
                [str(item["id"]) for item in memories if isinstance(item, dict) and item.get("id") is not None],
            )

        if tool == "ui":
            self.set_context("last_ui_action", result.command.action)
            if data.get("url"):
                self.set_context("last_url", str(data["url"]))
