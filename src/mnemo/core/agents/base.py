from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Protocol, runtime_checkable

from mnemo.core.errors import AgentTimeoutError
from mnemo.core.logging.context import log_context

from .schemas import AgentConfig, AgentRequest, AgentResponse, RunningStats

logger = logging.getLogger(__name__)


class Agent(Protocol):
    config: AgentConfig

    async def process(self, request: AgentRequest) -> AgentResponse: ...


@runtime_checkable
class HealthCheckable(Protocol):
    async def health_check(self) -> bool: ...


class AgentRunner:
    """Shared execution contract for any ``Agent``.

    Callers go through ``execute``; it enforces the agent's timeout, turns
    exceptions into failure responses and keeps running statistics. The
    agent's own ``process`` is never called directly.
    """

    def __init__(self, agent: Agent) -> None:
        self.agent = agent
        self.config = agent.config
        self.is_active = True
        self.stats = RunningStats()

    @property
    def name(self) -> str:
        return self.config.name

    def is_capable(self, request: AgentRequest) -> bool:
        lowered = request.input.lower()
        return any(
            capability.lower() in lowered or request.parameters.get(capability) is not None
            for capability in self.config.capabilities
        )

    def can_handle(self, request: AgentRequest) -> bool:
        return self.is_active and self.is_capable(request)

    async def execute(self, request: AgentRequest) -> AgentResponse:
        started = time.perf_counter()
        self.stats.requests_processed += 1

        with log_context(agent=self.name, session_id=request.context.session_id):
            try:
                response = await asyncio.wait_for(self.agent.process(request), timeout=self.config.timeout_s)
            except asyncio.TimeoutError:
                error = AgentTimeoutError(self.name, self.config.timeout_s)
                logger.warning("%s after %ss", error, self.config.timeout_s)
                response = AgentResponse(success=False, error=str(error))
            except Exception as exc:
                logger.exception("agent %s failed", self.name)
                response = AgentResponse(success=False, error=str(exc))

        processing_time_ms = round((time.perf_counter() - started) * 1000.0, 3)
        self._update_stats(response.success, processing_time_ms)
        return response.model_copy(update={"processing_time_ms": processing_time_ms})

    def _update_stats(self, success: bool, response_time_ms: float) -> None:
        self.stats.last_executed = datetime.now(timezone.utc)
        if success:
            self.stats.success_count += 1
        self.stats.total_response_time_ms += response_time_ms

    def get_info(self) -> dict[str, Any]:
        return {
            **self.config.model_dump(),
            "capabilities": list(self.config.capabilities),
            "status": "active" if self.is_active else "inactive",
            "stats": self.stats.as_dict(),
        }

    def set_active(self, active: bool) -> None:
        self.is_active = active

    def reset_stats(self) -> None:
        self.stats = RunningStats()

    async def health_check(self) -> bool:
        if not self.is_active:
            return False
        if isinstance(self.agent, HealthCheckable):
            try:
                return await asyncio.wait_for(self.agent.health_check(), timeout=self.config.timeout_s)
            except Exception:
                logger.warning("health check failed for %s", self.name, exc_info=True)
                return False
        return True
