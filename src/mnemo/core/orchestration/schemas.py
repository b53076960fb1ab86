from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ParsedCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    tool: str
    action: str
    args: dict[str, Any] = Field(default_factory=dict)
    confidence: float = Field(ge=0.0, le=1.0)
    original_input: str

    @classmethod
    def unresolved(cls, text: str) -> "ParsedCommand":
        return cls(tool="unknown", action="unknown", args={}, confidence=0.0, original_input=text)


class OrchestratorResult(BaseModel):
    success: bool
    data: Any = None
    error: str | None = None
    command: ParsedCommand
    execution_time_ms: float
    metadata: dict[str, Any] | None = None


@dataclass
class SessionContext:
    last_memory_id: str | None = None
    last_search_results: list[str] | None = None
    last_ui_action: str | None = None
    last_url: str | None = None

    @classmethod
    def field_names(cls) -> list[str]:
        return [item.name for item in fields(cls)]
