from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from mnemo.core.agents.base import AgentRunner
from mnemo.core.agents.registry import AgentRegistry
from mnemo.core.agents.schemas import AgentRequest

from .deps import get_agent_registry

router = APIRouter()


class ActiveRequest(BaseModel):
    active: bool


def _runner(name: str, registry: AgentRegistry) -> AgentRunner:
    try:
        return registry.get(name)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"agent not found: {name}") from exc


@router.get("")
def list_agents(registry: AgentRegistry = Depends(get_agent_registry)) -> dict[str, Any]:
    return {"agents": [runner.get_info() for runner in registry.all()]}


@router.post("/{name}/execute")
async def execute_agent(
    name: str,
    request: AgentRequest,
    registry: AgentRegistry = Depends(get_agent_registry),
) -> dict[str, Any]:
    runner = _runner(name, registry)
    if not runner.is_active:
        raise HTTPException(status_code=409, detail=f"agent inactive: {name}")
    response = await runner.execute(request)
    return response.model_dump()


@router.post("/{name}/active")
def set_agent_active(
    name: str,
    request: ActiveRequest,
    registry: AgentRegistry = Depends(get_agent_registry),
) -> dict[str, Any]:
    runner = _runner(name, registry)
    runner.set_active(request.active)
    return runner.get_info()


@router.post("/{name}/reset-stats")
def reset_agent_stats(name: str, registry: AgentRegistry = Depends(get_agent_registry)) -> dict[str, Any]:
    runner = _runner(name, registry)
    runner.reset_stats()
    return runner.get_info()


@router.get("/{name}/health")
async def agent_health(name: str, registry: AgentRegistry = Depends(get_agent_registry)) -> dict[str, Any]:
    runner = _runner(name, registry)
    return {"name": runner.name, "healthy": await runner.health_check()}
