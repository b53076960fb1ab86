from __future__ import annotations

import httpx

from mnemo.core.config import Settings

from .base import Agent, AgentRunner
from .embedding import EmbeddingAgent
from .execution import ExecutionAgent
from .schemas import AgentRequest


class AgentRegistry:
    def __init__(self) -> None:
        self._runners: dict[str, AgentRunner] = {}

    def register(self, agent: Agent) -> AgentRunner:
        runner = AgentRunner(agent)
        self._runners[runner.name] = runner
        return runner

    def get(self, name: str) -> AgentRunner:
        return self._runners[name]

    def names(self) -> list[str]:
        return sorted(self._runners.keys())

    def all(self) -> list[AgentRunner]:
        return [self._runners[name] for name in self.names()]

    def candidates(self, request: AgentRequest) -> list[AgentRunner]:
        """Runners able to take ``request``, highest priority first."""
        able = [runner for runner in self._runners.values() if runner.can_handle(request)]
        return sorted(able, key=lambda runner: runner.config.priority, reverse=True)


def build_agent_registry(settings: Settings | None = None, client: httpx.AsyncClient | None = None) -> AgentRegistry:
    settings = settings or Settings()
    registry = AgentRegistry()
    registry.register(ExecutionAgent(settings.execution, client=client))
    registry.register(EmbeddingAgent(settings.embedding, client=client))
    return registry
