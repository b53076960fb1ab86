from __future__ import annotations

import os
from uuid import uuid4

import uvicorn
from fastapi import FastAPI

from mnemo.core.http import aclose_http_client
from mnemo.core.logging import configure_logging
from mnemo.core.logging.context import log_context

from .deps import get_agent_registry, get_dispatch_table
from .routes_agents import router as agents_router
from .routes_orchestrate import router as orchestrate_router

app = FastAPI(title="Mnemo Orchestrator API")
configure_logging()

app.include_router(orchestrate_router, prefix="/orchestrate", tags=["orchestrate"])
app.include_router(agents_router, prefix="/agents", tags=["agents"])


@app.middleware("http")
async def request_context_middleware(request, call_next):
    correlation_id = request.headers.get("X-Correlation-ID") or str(uuid4())
    with log_context(correlation_id=correlation_id, session_id=request.headers.get("X-Session-ID")):
        response = await call_next(request)
    response.headers["X-Correlation-ID"] = correlation_id
    return response


@app.on_event("shutdown")
async def shutdown() -> None:
    await aclose_http_client()


@app.get("/health")
def health() -> dict[str, object]:
    return {"status": "ok", "tools": get_dispatch_table().names(), "agents": get_agent_registry().names()}


@app.get("/healthz")
def healthz() -> dict[str, bool]:
    return {"ok": True}


def run() -> None:
    host = os.getenv("MNEMO_API_HOST", "127.0.0.1")
    port = int(os.getenv("MNEMO_API_PORT", "8000"))
    uvicorn.run("mnemo.apps.api.main:app", host=host, port=port)
