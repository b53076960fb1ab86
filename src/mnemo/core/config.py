"""Runtime settings for the orchestrator, connectors and agents.

Values come from an optional YAML file (``MNEMO_CONFIG_PATH``) and are then
overridden by ``MNEMO_*`` environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field


class MemoryServiceSettings(BaseModel):
    api_url: str = "http://localhost:3000"
    api_prefix: str = "/api/v1"
    api_key: Optional[str] = None
    auth_token: Optional[str] = None
    use_unified_router: bool = False
    unified_router_url: str = "https://api.lanonasis.com"


class EmbeddingSettings(BaseModel):
    api_url: str = "https://api.openai.com/v1/embeddings"
    api_key: Optional[str] = None
    model: str = "text-embedding-3-small"
    cache_size: int = Field(1024, ge=1)
    timeout_s: float = Field(15.0, gt=0)


class ExecutionSettings(BaseModel):
    api_base_url: str = "http://localhost:3000"
    api_prefix: str = "/api/v1"
    timeout_s: float = Field(30.0, gt=0)
    request_timeout_s: float = Field(30.0, gt=0)
    health_timeout_s: float = Field(5.0, gt=0)


class UISettings(BaseModel):
    base_url: str = "http://localhost:3000"


class Settings(BaseModel):
    memory: MemoryServiceSettings = Field(default_factory=MemoryServiceSettings)
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    execution: ExecutionSettings = Field(default_factory=ExecutionSettings)
    ui: UISettings = Field(default_factory=UISettings)


# env var -> (section, field)
_ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "MNEMO_MEMORY_API_URL": ("memory", "api_url"),
    "MNEMO_MEMORY_API_PREFIX": ("memory", "api_prefix"),
    "MNEMO_MEMORY_API_KEY": ("memory", "api_key"),
    "MNEMO_MEMORY_AUTH_TOKEN": ("memory", "auth_token"),
    "MNEMO_USE_UNIFIED_ROUTER": ("memory", "use_unified_router"),
    "MNEMO_UNIFIED_ROUTER_URL": ("memory", "unified_router_url"),
    "MNEMO_EMBEDDING_API_URL": ("embedding", "api_url"),
    "MNEMO_EMBEDDING_API_KEY": ("embedding", "api_key"),
    "MNEMO_EMBEDDING_MODEL": ("embedding", "model"),
    "MNEMO_EMBEDDING_CACHE_SIZE": ("embedding", "cache_size"),
    "MNEMO_EMBEDDING_TIMEOUT_S": ("embedding", "timeout_s"),
    "MNEMO_API_BASE_URL": ("execution", "api_base_url"),
    "MNEMO_EXECUTION_TIMEOUT_S": ("execution", "timeout_s"),
    "MNEMO_UI_BASE_URL": ("ui", "base_url"),
}


def _is_on(raw: str) -> bool:
    return raw.strip().casefold() in {"on", "true", "1", "yes"}


def _coerce(section: BaseModel, name: str, raw: str) -> Any:
    annotation = type(section).model_fields[name].annotation
    if annotation is bool:
        return _is_on(raw)
    if annotation is int:
        return int(raw)
    if annotation is float:
        return float(raw)
    return raw


def _apply_env(settings: Settings) -> Settings:
    data = settings.model_dump()
    for env_name, (section_name, field_name) in _ENV_OVERRIDES.items():
        raw = os.getenv(env_name)
        if raw is None or raw == "":
            continue
        section = getattr(settings, section_name)
        try:
            candidate = {**data[section_name], field_name: _coerce(section, field_name, raw)}
            type(section).model_validate(candidate)
        except ValueError:
            # unparseable or out of bounds: keep the file/default value
            continue
        data[section_name] = candidate
    if not data["embedding"].get("api_key") and os.getenv("OPENAI_API_KEY"):
        data["embedding"]["api_key"] = os.getenv("OPENAI_API_KEY")
    return Settings.model_validate(data)


def load_settings(path: Optional[str] = None) -> Settings:
    """Load settings from YAML (when a path is given or configured) plus env overrides."""
    cfg_path = path or os.getenv("MNEMO_CONFIG_PATH")
    data: dict[str, Any] = {}
    if cfg_path:
        with Path(cfg_path).open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    return _apply_env(Settings.model_validate(data))
