from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from mnemo.core.config import MemoryServiceSettings
from mnemo.core.connectors.args import MemoryCreateArgs, MemorySearchArgs, NoArgs
from mnemo.core.connectors.memory import MemoryConnector
from mnemo.core.errors import ExecutionError


def _connector(handler, **settings) -> tuple[MemoryConnector, list[httpx.Request]]:
    seen: list[httpx.Request] = []

    def recording(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(recording))
    return MemoryConnector(MemoryServiceSettings(**settings), client=client), seen


def test_search_posts_query_params_with_api_key() -> None:
    connector, seen = _connector(lambda request: httpx.Response(200, json={"memories": []}), api_key="k-1")

    result = asyncio.run(connector.handle("search", MemorySearchArgs(query="plans", limit=3, type=["project"])))

    assert result == {"memories": []}
    sent = seen[0]
    assert sent.method == "POST"
    assert sent.url.path == "/api/v1/memory/search"
    assert sent.url.params["query"] == "plans"
    assert sent.url.params["limit"] == "3"
    assert sent.url.params.get_list("memory_types") == ["project"]
    assert sent.headers["X-API-Key"] == "k-1"
    assert "Authorization" not in sent.headers


def test_bearer_token_wins_over_api_key_and_router_headers_applied() -> None:
    connector, seen = _connector(
        lambda request: httpx.Response(201, json={"id": "m-1"}),
        api_key="k-1",
        auth_token="t-1",
        use_unified_router=True,
    )

    asyncio.run(connector.handle("create", MemoryCreateArgs(title="T", content="C")))

    sent = seen[0]
    assert str(sent.url) == "https://api.lanonasis.com/api/v1/memory"
    assert sent.headers["Authorization"] == "Bearer t-1"
    assert "X-API-Key" not in sent.headers
    assert sent.headers["X-Service"] == "lanonasis-maas"
    assert json.loads(sent.content)["memory_type"] == "context"


def test_stats_hits_admin_endpoint() -> None:
    connector, seen = _connector(lambda request: httpx.Response(200, json={"total": 4}))

    result = asyncio.run(connector.handle("stats", NoArgs()))

    assert result == {"total": 4}
    assert seen[0].url.path == "/api/v1/memory/admin/stats"


def test_error_status_becomes_execution_error() -> None:
    connector, _ = _connector(lambda request: httpx.Response(503))

    with pytest.raises(ExecutionError, match="Memory API error: 503 Service Unavailable"):
        asyncio.run(connector.handle("list-topics", NoArgs()))


def test_unknown_action_raises() -> None:
    connector, seen = _connector(lambda request: httpx.Response(200))

    with pytest.raises(ExecutionError, match="Unknown memory action: archive"):
        asyncio.run(connector.handle("archive", NoArgs()))
    assert seen == []
