from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class AgentConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    capabilities: tuple[str, ...]
    priority: int = 0
    timeout_s: float = Field(30.0, gt=0)
    retries: int = Field(0, ge=0)


class ConversationTurn(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str
    timestamp: float


class MemoryContextItem(BaseModel):
    id: str
    title: str
    content: str
    relevance: float | None = None


class AgentContext(BaseModel):
    user_id: str | None = None
    session_id: str | None = None
    conversation_history: list[ConversationTurn] = Field(default_factory=list)
    memory_context: list[MemoryContextItem] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)


class AgentRequest(BaseModel):
    input: str
    context: AgentContext = Field(default_factory=AgentContext)
    parameters: dict[str, Any] = Field(default_factory=dict)
    urgency: Literal["low", "medium", "high", "critical"] | None = None


class AgentResponse(BaseModel):
    success: bool
    data: Any = None
    error: str | None = None
    metadata: dict[str, Any] | None = None
    next_agents: list[str] | None = None
    confidence: float | None = None
    processing_time_ms: float | None = None


@dataclass
class RunningStats:
    """Per-agent counters kept as exact sums; rates are derived on read."""

    requests_processed: int = 0
    success_count: int = 0
    total_response_time_ms: float = 0.0
    last_executed: datetime | None = None

    @property
    def success_rate(self) -> float:
        if self.requests_processed == 0:
            return 0.0
        return self.success_count / self.requests_processed * 100.0

    @property
    def average_response_time_ms(self) -> float:
        if self.requests_processed == 0:
            return 0.0
        return self.total_response_time_ms / self.requests_processed

    def as_dict(self) -> dict[str, Any]:
        return {
            "requests_processed": self.requests_processed,
            "success_rate": self.success_rate,
            "average_response_time_ms": self.average_response_time_ms,
            "last_executed": self.last_executed.isoformat() if self.last_executed else None,
        }
