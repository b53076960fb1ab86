"""Typed argument models for every tool action, validated before a handler runs."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ToolArgs(BaseModel):
    model_config = ConfigDict(extra="ignore")


class NoArgs(ToolArgs):
    pass


class FreeformArgs(ToolArgs):
    model_config = ConfigDict(extra="allow")


class MemorySearchArgs(ToolArgs):
    query: str
    limit: int = Field(10, ge=1)
    type: Optional[list[str]] = None
    threshold: Optional[float] = Field(None, ge=0.0, le=1.0)


class MemoryCreateArgs(ToolArgs):
    title: str
    content: str
    memory_type: str = "context"
    tags: list[str] = Field(default_factory=list)
    topic_id: Optional[str] = None


class MemoryListArgs(ToolArgs):
    limit: Optional[int] = Field(None, ge=1)
    offset: Optional[int] = Field(None, ge=0)
    memory_types: Optional[list[str]] = None
    tags: Optional[list[str]] = None


class MemoryIdArgs(ToolArgs):
    id: str = Field(min_length=1)


class MemoryUpdateArgs(MemoryIdArgs):
    updates: dict[str, object] = Field(default_factory=dict)


class TopicCreateArgs(ToolArgs):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    parent_id: Optional[str] = None


class OpenDashboardArgs(ToolArgs):
    path: Optional[str] = None
    memory_id: Optional[str] = None
    topic_id: Optional[str] = None


class ShowMemoryArgs(ToolArgs):
    memory_id: str = Field(min_length=1)
    mode: Optional[Literal["view", "edit", "visualize"]] = None


class VisualizerArgs(ToolArgs):
    memory_id: Optional[str] = None
    topic_id: Optional[str] = None


class UploaderPrefill(ToolArgs):
    title: Optional[str] = None
    content: Optional[str] = None
    memory_type: Optional[str] = None


class OpenUploaderArgs(ToolArgs):
    type: Optional[Literal["manual", "bulk"]] = None
    prefill: Optional[UploaderPrefill] = None


class HelpArgs(ToolArgs):
    topic: Optional[str] = None


MEMORY_ACTION_ARGS: dict[str, type[ToolArgs]] = {
    "search": MemorySearchArgs,
    "create": MemoryCreateArgs,
    "list": MemoryListArgs,
    "get": MemoryIdArgs,
    "update": MemoryUpdateArgs,
    "delete": MemoryIdArgs,
    "stats": NoArgs,
    "list-topics": NoArgs,
    "create-topic": TopicCreateArgs,
}

UI_ACTION_ARGS: dict[str, type[ToolArgs]] = {
    "open-dashboard": OpenDashboardArgs,
    "show-memory": ShowMemoryArgs,
    "open-visualizer": VisualizerArgs,
    "open-uploader": OpenUploaderArgs,
    "show-stats": NoArgs,
    "show-topics": NoArgs,
    "open-settings": NoArgs,
    "show-help": HelpArgs,
}

STRIPE_ACTION_ARGS: dict[str, type[ToolArgs]] = {
    "list-transactions": NoArgs,
}
