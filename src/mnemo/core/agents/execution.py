from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Literal

import httpx
from pydantic import BaseModel, Field, ValidationError

from mnemo.core.config import ExecutionSettings
from mnemo.core.errors import ExecutionError
from mnemo.core.http import MnemoHTTPError, MnemoHTTPStatusError, MnemoHTTPTimeoutError, request_json
from mnemo.core.orchestration.resolver import extract_memory_type, extract_tags, quoted_segments

from .schemas import AgentConfig, AgentContext, AgentRequest, AgentResponse

logger = logging.getLogger(__name__)

MemoryOperationType = Literal["create", "search", "update", "delete", "list"]

_SEARCH_PREFIX_RE = re.compile(r"^(search(\s+for)?|find|look\s+for)\s+", re.IGNORECASE)
_SEARCH_SCOPE_RE = re.compile(r"\s+(in|from)\s+(memory|memories)\b.*$", re.IGNORECASE)
_MEMORY_VERBS = (
    "create", "add", "save", "search", "find", "look", "list", "show",
    "update", "edit", "modify", "delete", "remove",
)


class MemoryOperation(BaseModel):
    type: MemoryOperationType
    payload: dict[str, Any] = Field(default_factory=dict)


class ApiCall(BaseModel):
    method: Literal["GET", "POST", "PUT", "DELETE"]
    endpoint: str
    headers: dict[str, str] = Field(default_factory=dict)
    body: Any = None
    timeout_s: float | None = Field(None, gt=0)


class ApiResult(BaseModel):
    success: bool
    data: Any = None
    error: str | None = None


class ExecutionAgent:
    """Carries out memory CRUD, raw API calls and batches against the memory service."""

    def __init__(self, settings: ExecutionSettings | None = None, client: httpx.AsyncClient | None = None) -> None:
        self.settings = settings or ExecutionSettings()
        self.client = client
        self.config = AgentConfig(
            name="ExecutionAgent",
            description="Executes memory operations and external API calls",
            capabilities=("execute", "api", "memory", "crud", "database"),
            priority=9,
            timeout_s=self.settings.timeout_s,
        )
        self.default_headers = {
            "Content-Type": "application/json",
            "User-Agent": "ExecutionAgent/1.0",
        }

    async def process(self, request: AgentRequest) -> AgentResponse:
        parameters = request.parameters
        context = request.context

        if parameters.get("batch_operations") is not None:
            return await self.execute_batch(parameters["batch_operations"], context)

        if parameters.get("api_call") is not None:
            try:
                api_call = ApiCall.model_validate(parameters["api_call"])
            except ValidationError as exc:
                return AgentResponse(success=False, error=f"API call failed: invalid api_call: {exc.error_count()} error(s)")
            return await self.execute_api_call(api_call, context)

        if parameters.get("operation") == "health_check" or self._asks_for_health(request.input):
            return await self.perform_health_check()

        if parameters.get("memory_operation") is not None or parameters.get("payload") is not None:
            operation_type = parameters.get("memory_operation") or self.determine_memory_operation(request.input)
            payload = parameters.get("payload") or {}
            try:
                operation = MemoryOperation(type=operation_type, payload=payload)
            except ValidationError:
                return AgentResponse(success=False, error=f"Unsupported memory operation: {operation_type}")
            return await self.execute_memory_operation(operation, context)

        return await self.infer_and_execute(request.input, context, parameters)

    def _translate(self, operation: MemoryOperation) -> tuple[str, str, Any]:
        payload = operation.payload
        prefix = self.settings.api_prefix

        if operation.type == "create":
            body = {
                "title": payload.get("title") or "Untitled Memory",
                "content": payload.get("content") or "",
                "memory_type": payload.get("memory_type") or "context",
                "tags": payload.get("tags") or [],
                "metadata": payload.get("metadata") or {},
            }
            return "POST", f"{prefix}/memory", body

        if operation.type == "search":
            body = {
                "query": payload.get("query") or "",
                "limit": payload.get("limit") or 10,
                "threshold": payload.get("threshold") or 0.7,
            }
            if payload.get("memory_types"):
                body["memory_types"] = payload["memory_types"]
            if payload.get("tags"):
                body["tags"] = payload["tags"]
            return "POST", f"{prefix}/memory/search", body

        if operation.type == "update":
            if not payload.get("id"):
                raise ExecutionError("Memory ID required for update operation")
            body = {
                key: payload[key]
                for key in ("title", "content", "memory_type", "tags", "metadata")
                if payload.get(key)
            }
            return "PUT", f"{prefix}/memory/{payload['id']}", body

        if operation.type == "delete":
            if not payload.get("id"):
                raise ExecutionError("Memory ID required for delete operation")
            return "DELETE", f"{prefix}/memory/{payload['id']}", None

        query: dict[str, str] = {}
        if payload.get("limit"):
            query["limit"] = str(payload["limit"])
        if payload.get("memory_type"):
            query["memory_type"] = str(payload["memory_type"])
        if isinstance(payload.get("tags"), list):
            query["tags"] = ",".join(str(tag) for tag in payload["tags"])
        endpoint = f"{prefix}/memory"
        if query:
            endpoint = f"{endpoint}?{httpx.QueryParams(query)}"
        return "GET", endpoint, None

    def _headers(self, context: AgentContext, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {**self.default_headers, **(extra or {})}
        if context.user_id:
            headers["X-User-ID"] = context.user_id
        return headers

    async def execute_memory_operation(self, operation: MemoryOperation, context: AgentContext) -> AgentResponse:
        try:
            method, endpoint, body = self._translate(operation)
        except ExecutionError as exc:
            return AgentResponse(
                success=False,
                error=f"Memory operation failed: {exc}",
                metadata={"operation": operation.type},
            )

        result = await self.make_api_request(
            method,
            endpoint,
            headers=self._headers(context),
            body=body,
            timeout_s=self.settings.request_timeout_s,
        )
        return AgentResponse(
            success=result.success,
            data=result.data,
            error=result.error,
            metadata={"operation": operation.type, "endpoint": endpoint, "method": method},
        )

    async def execute_api_call(self, api_call: ApiCall, context: AgentContext) -> AgentResponse:
        result = await self.make_api_request(
            api_call.method,
            api_call.endpoint,
            headers=self._headers(context, api_call.headers),
            body=api_call.body,
            timeout_s=api_call.timeout_s or self.settings.request_timeout_s,
        )
        return AgentResponse(
            success=result.success,
            data=result.data,
            error=result.error,
            metadata={"api_call": {"method": api_call.method, "endpoint": api_call.endpoint}},
        )

    async def execute_batch(self, operations: Any, context: AgentContext) -> AgentResponse:
        """Run operations one at a time; a failing item never stops the rest."""
        if not isinstance(operations, list):
            return AgentResponse(success=False, error="batch_operations must be a list")

        results: list[dict[str, Any]] = []
        success_count = 0
        error_count = 0

        for raw in operations:
            try:
                operation = MemoryOperation.model_validate(raw)
                result = await self.execute_memory_operation(operation, context)
            except ValidationError as exc:
                result = AgentResponse(success=False, error=f"Invalid memory operation: {exc.error_count()} error(s)")
            except Exception as exc:
                result = AgentResponse(success=False, error=str(exc))

            results.append({"operation": raw, "result": result.model_dump()})
            if result.success:
                success_count += 1
            else:
                error_count += 1

        total = len(operations)
        if error_count:
            logger.info("batch finished with %s/%s failures", error_count, total)
        return AgentResponse(
            success=error_count == 0,
            data={
                "results": results,
                "summary": {
                    "total": total,
                    "success": success_count,
                    "errors": error_count,
                    "success_rate": (success_count / total * 100.0) if total else 0.0,
                },
            },
            metadata={"batch_size": total},
        )

    async def perform_health_check(self) -> AgentResponse:
        result = await self.make_api_request("GET", "/health", timeout_s=self.settings.health_timeout_s)
        timestamp = datetime.now(timezone.utc).isoformat()
        if not result.success:
            return AgentResponse(
                success=False,
                error=f"Health check failed: {result.error}",
                data={"status": "unhealthy", "timestamp": timestamp},
            )
        return AgentResponse(
            success=True,
            data={"status": "healthy", "api_response": result.data, "timestamp": timestamp},
        )

    async def health_check(self) -> bool:
        response = await self.perform_health_check()
        return response.success

    async def infer_and_execute(self, text: str, context: AgentContext, parameters: dict[str, Any]) -> AgentResponse:
        lowered = text.lower()

        if any(word in lowered for word in ("create", "add", "save")):
            operation = MemoryOperation(
                type="create",
                payload={
                    "title": self._extract_title(text),
                    "content": self._extract_content(text),
                    "memory_type": extract_memory_type(lowered) or "context",
                    "tags": extract_tags(text),
                },
            )
            return await self.execute_memory_operation(operation, context)

        if any(word in lowered for word in ("search", "find", "look")):
            operation = MemoryOperation(
                type="search",
                payload={"query": self._extract_search_query(text), "limit": parameters.get("limit") or 10},
            )
            return await self.execute_memory_operation(operation, context)

        if any(phrase in lowered for phrase in ("list", "show all", "get all")):
            operation = MemoryOperation(type="list", payload={"limit": parameters.get("limit") or 20})
            return await self.execute_memory_operation(operation, context)

        return AgentResponse(success=False, error=f'Could not infer operation from input: "{text}"')

    def determine_memory_operation(self, text: str) -> MemoryOperationType:
        lowered = text.lower()
        if any(word in lowered for word in ("create", "add", "save")):
            return "create"
        if any(word in lowered for word in ("search", "find")):
            return "search"
        if any(word in lowered for word in ("update", "edit", "modify")):
            return "update"
        if any(word in lowered for word in ("delete", "remove")):
            return "delete"
        if any(word in lowered for word in ("list", "show")):
            return "list"
        return "search"

    @staticmethod
    def _asks_for_health(text: str) -> bool:
        lowered = text.lower()
        if "health" not in lowered:
            return False
        # a memory verb wins: "create memory 'Health plan'" is not a health check
        return not any(verb in lowered for verb in _MEMORY_VERBS)

    @staticmethod
    def _extract_title(text: str) -> str:
        quoted = quoted_segments(text)
        if quoted:
            return quoted[0]
        return text[:50].strip() or "Untitled"

    @staticmethod
    def _extract_content(text: str) -> str:
        quoted = quoted_segments(text)
        if len(quoted) >= 2:
            return quoted[1]
        return text.strip()

    @staticmethod
    def _extract_search_query(text: str) -> str:
        query = _SEARCH_PREFIX_RE.sub("", text.strip())
        return _SEARCH_SCOPE_RE.sub("", query).strip()

    async def make_api_request(
        self,
        method: str,
        endpoint: str,
        *,
        headers: dict[str, str] | None = None,
        body: Any = None,
        timeout_s: float | None = None,
    ) -> ApiResult:
        """Issue one call and fold every outcome into an ``ApiResult``; never raises."""
        url = endpoint if endpoint.startswith("http") else f"{self.settings.api_base_url.rstrip('/')}{endpoint}"
        try:
            data = await request_json(
                method,
                url,
                headers=headers or self.default_headers,
                json=body if body else None,
                timeout_override=timeout_s or self.settings.request_timeout_s,
                retries=0,
                client=self.client,
            )
        except MnemoHTTPTimeoutError:
            return ApiResult(success=False, error="Request timeout")
        except MnemoHTTPStatusError as exc:
            payload_error = exc.payload.get("error") if isinstance(exc.payload, dict) else None
            return ApiResult(success=False, error=str(payload_error or f"HTTP {exc.status_code}: {exc.reason}"))
        except MnemoHTTPError as exc:
            return ApiResult(success=False, error=str(exc))
        return ApiResult(success=True, data=data)
