from __future__ import annotations

import os
from functools import lru_cache

from mnemo.core.agents.registry import AgentRegistry, build_agent_registry
from mnemo.core.cache.lru import LRUCache
from mnemo.core.config import Settings, load_settings
from mnemo.core.orchestration.dispatch import DispatchTable, build_dispatch_table
from mnemo.core.orchestration.orchestrator import ContextualOrchestrator, Orchestrator


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


@lru_cache(maxsize=1)
def get_dispatch_table() -> DispatchTable:
    return build_dispatch_table(get_settings())


@lru_cache(maxsize=1)
def get_orchestrator() -> Orchestrator:
    return Orchestrator(get_dispatch_table())


@lru_cache(maxsize=1)
def get_agent_registry() -> AgentRegistry:
    return build_agent_registry(get_settings())


class SessionOrchestrators:
    """One ``ContextualOrchestrator`` per session id, created on first use.

    At most ``maxsize`` sessions are held; the least recently used one is
    forgotten when a new session arrives at capacity.
    """

    def __init__(self, orchestrator: Orchestrator, maxsize: int = 1024) -> None:
        self.orchestrator = orchestrator
        self._sessions: LRUCache[str, ContextualOrchestrator] = LRUCache(maxsize=maxsize)

    def get(self, session_id: str) -> ContextualOrchestrator:
        session = self._sessions.get(session_id)
        if session is None:
            session = ContextualOrchestrator(self.orchestrator)
            self._sessions.set(session_id, session)
        return session

    def peek(self, session_id: str) -> ContextualOrchestrator | None:
        return self._sessions.get(session_id)

    def drop(self, session_id: str) -> bool:
        return self._sessions.pop(session_id) is not None

    def __len__(self) -> int:
        return len(self._sessions)


@lru_cache(maxsize=1)
def get_session_orchestrators() -> SessionOrchestrators:
    maxsize = int(os.getenv("MNEMO_API_MAX_SESSIONS", "1024"))
    return SessionOrchestrators(get_orchestrator(), maxsize=maxsize)
