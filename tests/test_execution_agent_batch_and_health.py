from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from mnemo.core.agents.base import AgentRunner
from mnemo.core.agents.execution import ExecutionAgent
from mnemo.core.agents.schemas import AgentRequest
from mnemo.core.config import ExecutionSettings


def _agent(handler) -> ExecutionAgent:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ExecutionAgent(ExecutionSettings(), client=client)


def test_batch_continues_after_failure_and_summarizes() -> None:
    agent = _agent(lambda request: httpx.Response(200, json={"ok": True}))
    operations = [
        {"type": "create", "payload": {"title": "One"}},
        {"type": "delete", "payload": {}},
        {"type": "search", "payload": {"query": "one"}},
    ]

    response = asyncio.run(agent.process(AgentRequest(input="batch", parameters={"batch_operations": operations})))

    assert response.success is False
    summary = response.data["summary"]
    assert summary["total"] == 3
    assert summary["success"] == 2
    assert summary["errors"] == 1
    assert summary["success_rate"] == pytest.approx(200 / 3)
    results = response.data["results"]
    assert [item["operation"] for item in results] == operations
    assert results[1]["result"]["error"] == "Memory operation failed: Memory ID required for delete operation"


def test_empty_batch_succeeds_with_zero_rate() -> None:
    agent = _agent(lambda request: httpx.Response(200))

    response = asyncio.run(agent.process(AgentRequest(input="batch", parameters={"batch_operations": []})))

    assert response.success is True
    assert response.data["summary"] == {"total": 0, "success": 0, "errors": 0, "success_rate": 0.0}


def test_invalid_batch_item_counts_as_error() -> None:
    agent = _agent(lambda request: httpx.Response(200))

    response = asyncio.run(
        agent.process(AgentRequest(input="batch", parameters={"batch_operations": [{"type": "archive"}]}))
    )

    assert response.success is False
    assert response.data["summary"]["errors"] == 1


def test_health_check_reports_healthy() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"status": "ok"})

    agent = _agent(handler)

    response = asyncio.run(agent.process(AgentRequest(input="check health")))

    assert response.success is True
    assert response.data["status"] == "healthy"
    assert response.data["api_response"] == {"status": "ok"}
    assert "timestamp" in response.data
    assert str(seen[0].url) == "http://localhost:3000/health"


def test_health_check_reports_unhealthy_on_error_status() -> None:
    agent = _agent(lambda request: httpx.Response(503))

    response = asyncio.run(agent.process(AgentRequest(input="status", parameters={"operation": "health_check"})))

    assert response.success is False
    assert response.data["status"] == "unhealthy"
    assert response.error == "Health check failed: HTTP 503: Service Unavailable"


def test_memory_verb_wins_over_health_in_title() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json={"id": "m-9"})

    agent = _agent(handler)

    response = asyncio.run(agent.process(AgentRequest(input='create memory "Health plan" "renew insurance"')))

    assert response.success is True
    assert response.metadata["operation"] == "create"
    assert [(request.method, request.url.path) for request in seen] == [("POST", "/api/v1/memory")]
    body = json.loads(seen[0].content)
    assert body["title"] == "Health plan"
    assert body["content"] == "renew insurance"


def test_runner_health_check_delegates_to_agent() -> None:
    healthy = AgentRunner(_agent(lambda request: httpx.Response(200, json={})))
    unhealthy = AgentRunner(_agent(lambda request: httpx.Response(500)))

    assert asyncio.run(healthy.health_check()) is True
    assert asyncio.run(unhealthy.health_check()) is False
