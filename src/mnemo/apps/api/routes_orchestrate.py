from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from mnemo.core.errors import ResolutionError
from mnemo.core.orchestration.orchestrator import Orchestrator

from .deps import SessionOrchestrators, get_orchestrator, get_session_orchestrators

router = APIRouter()


class OrchestrateRequest(BaseModel):
    input: str
    session_id: str | None = None


class BatchRequest(BaseModel):
    inputs: list[str] = Field(default_factory=list)


class ParseRequest(BaseModel):
    input: str


@router.post("")
async def orchestrate(
    request: OrchestrateRequest,
    orchestrator: Orchestrator = Depends(get_orchestrator),
    sessions: SessionOrchestrators = Depends(get_session_orchestrators),
) -> dict[str, Any]:
    if request.session_id:
        result = await sessions.get(request.session_id).orchestrate(request.input)
    else:
        result = await orchestrator.orchestrate(request.input)
    return result.model_dump()


@router.post("/batch")
async def orchestrate_batch(request: BatchRequest, orchestrator: Orchestrator = Depends(get_orchestrator)) -> dict[str, Any]:
    results = await orchestrator.orchestrate_batch(request.inputs)
    return {"results": [item.model_dump() for item in results], "count": len(results)}


@router.post("/parse")
def parse(request: ParseRequest, orchestrator: Orchestrator = Depends(get_orchestrator)) -> dict[str, Any]:
    try:
        command = orchestrator.parse_only(request.input)
    except ResolutionError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return command.model_dump()


@router.get("/sessions/{session_id}/context")
def get_session_context(
    session_id: str,
    sessions: SessionOrchestrators = Depends(get_session_orchestrators),
) -> dict[str, Any]:
    session = sessions.peek(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="session not found")
    return {"session_id": session_id, "context": session.snapshot()}


@router.delete("/sessions/{session_id}/context")
def clear_session_context(
    session_id: str,
    sessions: SessionOrchestrators = Depends(get_session_orchestrators),
) -> dict[str, Any]:
    if not sessions.drop(session_id):
        raise HTTPException(status_code=404, detail="session not found")
    return {"session_id": session_id, "cleared": True}
