from __future__ import annotations

from fastapi.testclient import TestClient

from mnemo.apps.api import deps
from mnemo.apps.api.main import app
from mnemo.core.connectors.args import MEMORY_ACTION_ARGS, UI_ACTION_ARGS
from mnemo.core.connectors.ui import UIConnector
from mnemo.core.orchestration.dispatch import DispatchTable
from mnemo.core.orchestration.orchestrator import Orchestrator


def _override_orchestrator() -> None:
    async def memory(action, args):
        if action == "create":
            return {"id": "m-42", "title": args.title}
        return {"memories": [{"id": "m-1"}, {"id": "m-2"}]}

    table = DispatchTable()
    table.register("memory", memory, MEMORY_ACTION_ARGS)
    table.register("ui", UIConnector().handle, UI_ACTION_ARGS)
    orchestrator = Orchestrator(table)
    sessions = deps.SessionOrchestrators(orchestrator)

    app.dependency_overrides[deps.get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[deps.get_session_orchestrators] = lambda: sessions


def test_orchestrate_and_correlation_header() -> None:
    _override_orchestrator()
    try:
        client = TestClient(app)
        response = client.post(
            "/orchestrate",
            json={"input": "search for plans"},
            headers={"X-Correlation-ID": "corr-1"},
        )

        assert response.status_code == 200
        assert response.headers["X-Correlation-ID"] == "corr-1"
        payload = response.json()
        assert payload["success"] is True
        assert payload["command"]["action"] == "search"
        assert payload["metadata"]["correlation_id"] == "corr-1"
    finally:
        app.dependency_overrides.clear()


def test_batch_and_parse() -> None:
    _override_orchestrator()
    try:
        client = TestClient(app)

        batch = client.post("/orchestrate/batch", json={"inputs": ["open dashboard", "?"]})
        assert batch.status_code == 200
        assert [item["success"] for item in batch.json()["results"]] == [True, False]

        parsed = client.post("/orchestrate/parse", json={"input": "delete memory 3f2a9c10"})
        assert parsed.status_code == 200
        assert parsed.json()["args"] == {"id": "3f2a9c10"}

        rejected = client.post("/orchestrate/parse", json={"input": "?"})
        assert rejected.status_code == 422
    finally:
        app.dependency_overrides.clear()


def test_session_context_round_trip() -> None:
    _override_orchestrator()
    try:
        client = TestClient(app)

        missing = client.get("/orchestrate/sessions/s-1/context")
        assert missing.status_code == 404

        client.post("/orchestrate", json={"input": 'create memory "A" "B"', "session_id": "s-1"})
        client.post("/orchestrate", json={"input": "search for plans", "session_id": "s-1"})

        context = client.get("/orchestrate/sessions/s-1/context").json()["context"]
        assert context["last_memory_id"] == "m-42"
        assert context["last_search_results"] == ["m-1", "m-2"]

        cleared = client.delete("/orchestrate/sessions/s-1/context")
        assert cleared.json() == {"session_id": "s-1", "cleared": True}
        assert client.get("/orchestrate/sessions/s-1/context").status_code == 404
        assert client.delete("/orchestrate/sessions/s-1/context").status_code == 404
    finally:
        app.dependency_overrides.clear()


def test_health_endpoints() -> None:
    client = TestClient(app)

    assert client.get("/healthz").json() == {"ok": True}
    health = client.get("/health").json()
    assert health["status"] == "ok"
    assert health["tools"] == ["memory", "stripe", "ui"]
    assert health["agents"] == ["EmbeddingAgent", "ExecutionAgent"]


def test_app_builds_dependencies_on_demand_without_startup_hooks() -> None:
    assert app.router.on_startup == []
    assert not hasattr(app.state, "orchestrator")


def test_session_map_forgets_least_recently_used_session() -> None:
    async def memory(action, args):
        return {"memories": []}

    table = DispatchTable()
    table.register("memory", memory, MEMORY_ACTION_ARGS)
    sessions = deps.SessionOrchestrators(Orchestrator(table), maxsize=2)

    first = sessions.get("s-1")
    sessions.get("s-2")
    assert sessions.get("s-1") is first
    sessions.get("s-3")

    assert len(sessions) == 2
    assert sessions.peek("s-2") is None
    assert sessions.peek("s-1") is first
    assert sessions.drop("s-1") is True
    assert sessions.drop("s-1") is False
