from __future__ import annotations

import logging
from typing import Any

import httpx

from mnemo.core.config import MemoryServiceSettings
from mnemo.core.errors import ExecutionError
from mnemo.core.http import MnemoHTTPError, MnemoHTTPStatusError, request_json
from mnemo.core.logging.redact import redact_headers

from .args import (
    MemoryCreateArgs,
    MemoryIdArgs,
    MemoryListArgs,
    MemorySearchArgs,
    MemoryUpdateArgs,
    TopicCreateArgs,
    ToolArgs,
)

logger = logging.getLogger(__name__)

_ROUTER_HEADERS = {
    "X-Service": "lanonasis-maas",
    "X-Client": "orchestrator",
    "User-Agent": "Lanonasis-Orchestrator/1.0",
}


class MemoryConnector:
    """Thin client for the hosted memory service used by the ``memory`` tool."""

    def __init__(self, settings: MemoryServiceSettings | None = None, client: httpx.AsyncClient | None = None) -> None:
        self.settings = settings or MemoryServiceSettings()
        self.client = client
        if self.settings.use_unified_router:
            self.api_url = self.settings.unified_router_url.rstrip("/")
        else:
            self.api_url = self.settings.api_url.rstrip("/")

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.settings.use_unified_router:
            headers.update(_ROUTER_HEADERS)
        if self.settings.auth_token:
            headers["Authorization"] = f"Bearer {self.settings.auth_token}"
        elif self.settings.api_key:
            headers["X-API-Key"] = self.settings.api_key
        return headers

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        params: list[tuple[str, str]] | None = None,
        body: dict[str, Any] | None = None,
    ) -> Any:
        url = f"{self.api_url}{self.settings.api_prefix}{endpoint}"
        headers = self._headers()
        logger.debug("memory request %s %s headers=%s", method, endpoint, redact_headers(headers))
        try:
            return await request_json(method, url, headers=headers, params=params or None, json=body, client=self.client)
        except MnemoHTTPStatusError as exc:
            raise ExecutionError(f"Memory API error: {exc.status_code} {exc.reason}".rstrip()) from exc
        except MnemoHTTPError as exc:
            raise ExecutionError(f"Memory API request failed: {exc}") from exc

    async def search(self, args: MemorySearchArgs) -> Any:
        params = [("query", args.query), ("limit", str(args.limit))]
        if args.threshold is not None:
            params.append(("threshold", str(args.threshold)))
        for memory_type in args.type or []:
            params.append(("memory_types", memory_type))
        return await self._request("POST", "/memory/search", params=params)

    async def create(self, args: MemoryCreateArgs) -> Any:
        body = {
            "title": args.title,
            "content": args.content,
            "memory_type": args.memory_type or "context",
            "tags": args.tags,
            "topic_id": args.topic_id,
        }
        return await self._request("POST", "/memory", body=body)

    async def list_memories(self, args: MemoryListArgs) -> Any:
        params: list[tuple[str, str]] = []
        if args.limit:
            params.append(("limit", str(args.limit)))
        if args.offset:
            params.append(("offset", str(args.offset)))
        for memory_type in args.memory_types or []:
            params.append(("memory_types", memory_type))
        for tag in args.tags or []:
            params.append(("tags", tag))
        return await self._request("GET", "/memory", params=params)

    async def get(self, memory_id: str) -> Any:
        return await self._request("GET", f"/memory/{memory_id}")

    async def update(self, memory_id: str, updates: dict[str, Any]) -> Any:
        return await self._request("PUT", f"/memory/{memory_id}", body=updates)

    async def delete(self, memory_id: str) -> Any:
        return await self._request("DELETE", f"/memory/{memory_id}")

    async def stats(self) -> Any:
        return await self._request("GET", "/memory/admin/stats")

    async def topics(self) -> Any:
        return await self._request("GET", "/topics")

    async def create_topic(self, args: TopicCreateArgs) -> Any:
        body = {"name": args.name, "description": args.description, "parent_id": args.parent_id}
        return await self._request("POST", "/topics", body=body)

    async def handle(self, action: str, args: ToolArgs) -> Any:
        logger.debug("memory action %s", action)
        if action == "search" and isinstance(args, MemorySearchArgs):
            return await self.search(args)
        if action == "create" and isinstance(args, MemoryCreateArgs):
            return await self.create(args)
        if action == "list" and isinstance(args, MemoryListArgs):
            return await self.list_memories(args)
        if action == "update" and isinstance(args, MemoryUpdateArgs):
            return await self.update(args.id, dict(args.updates))
        if action == "get" and isinstance(args, MemoryIdArgs):
            return await self.get(args.id)
        if action == "delete" and isinstance(args, MemoryIdArgs):
            return await self.delete(args.id)
        if action == "stats":
            return await self.stats()
        if action == "list-topics":
            return await self.topics()
        if action == "create-topic" and isinstance(args, TopicCreateArgs):
            return await self.create_topic(args)
        raise ExecutionError(f"Unknown memory action: {action}")
