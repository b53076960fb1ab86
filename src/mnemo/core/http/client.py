from __future__ import annotations

import asyncio
import logging
import os
import random
from typing import Any

import httpx

from mnemo.core.logging.redact import redact_string

from .errors import MnemoHTTPNetworkError, MnemoHTTPStatusError, MnemoHTTPTimeoutError

_RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
_RETRYABLE_EXCEPTIONS = (httpx.ConnectError, httpx.RemoteProtocolError)
_DEFAULT_TIMEOUT_S = 30.0
_DEFAULT_CONNECT_TIMEOUT_S = 5.0
_DEFAULT_RETRIES = 0
_DEFAULT_BACKOFF_BASE_S = 0.25
_DEFAULT_BACKOFF_MAX_S = 2.0
_DEFAULT_USER_AGENT = "mnemo/1.0"

logger = logging.getLogger(__name__)

_client: httpx.AsyncClient | None = None


def _get_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _total_timeout(total_s: float | None = None) -> float:
    return max(0.1, total_s if total_s is not None else _get_float_env("MNEMO_HTTP_TIMEOUT_S", _DEFAULT_TIMEOUT_S))


def _build_timeout(total_s: float | None = None) -> httpx.Timeout:
    connect_s = max(0.1, _get_float_env("MNEMO_HTTP_CONNECT_TIMEOUT_S", _DEFAULT_CONNECT_TIMEOUT_S))
    read_total = _total_timeout(total_s)
    return httpx.Timeout(read_total, connect=min(connect_s, read_total))


def get_http_client() -> httpx.AsyncClient:
    global _client
    if _client is None or _client.is_closed:
        user_agent = os.getenv("MNEMO_HTTP_USER_AGENT", _DEFAULT_USER_AGENT)
        _client = httpx.AsyncClient(timeout=_build_timeout(), headers={"User-Agent": user_agent})
    return _client


async def aclose_http_client() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None


def _safe_url(url: str, redact_url: bool) -> str:
    if redact_url:
        return "[redacted-url]"
    return redact_string(url)


def _response_payload(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


async def request_with_retry(
    method: str,
    url: str,
    *,
    headers: dict[str, str] | None = None,
    json: object | None = None,
    params: Any = None,
    timeout_override: float | None = None,
    retries: int | None = None,
    allowed_statuses: set[int] | None = None,
    redact_url: bool = False,
    client: httpx.AsyncClient | None = None,
) -> httpx.Response:
    """Send one request, retrying transport failures and 429/5xx only when retries are enabled.

    The whole attempt runs under ``asyncio.wait_for`` so a stalled call is
    cancelled once its budget is spent, independently of httpx's own timeouts.
    """
    max_retries = _get_int_env("MNEMO_HTTP_RETRIES", _DEFAULT_RETRIES) if retries is None else max(0, retries)
    backoff_base = max(0.01, _get_float_env("MNEMO_HTTP_BACKOFF_BASE_S", _DEFAULT_BACKOFF_BASE_S))
    backoff_max = max(0.01, _get_float_env("MNEMO_HTTP_BACKOFF_MAX_S", _DEFAULT_BACKOFF_MAX_S))

    http = client or get_http_client()
    attempts = max_retries + 1
    safe_url = _safe_url(url, redact_url)
    budget_s = _total_timeout(timeout_override)

    last_exc: Exception | None = None
    for attempt in range(attempts):
        try:
            response = await asyncio.wait_for(
                http.request(
                    method,
                    url,
                    headers=headers or None,
                    json=json,
                    params=params,
                    timeout=_build_timeout(budget_s),
                ),
                timeout=budget_s,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            last_exc = exc
            if attempt >= max_retries:
                raise MnemoHTTPTimeoutError(f"HTTP request timed out after {budget_s:g}s for {safe_url}") from exc
            await _sleep_for_retry(attempt, backoff_base, backoff_max)
            continue
        except _RETRYABLE_EXCEPTIONS as exc:
            last_exc = exc
            if attempt >= max_retries:
                raise MnemoHTTPNetworkError(f"HTTP request failed for {safe_url}: {exc.__class__.__name__}") from exc
            await _sleep_for_retry(attempt, backoff_base, backoff_max)
            continue
        except httpx.HTTPError as exc:
            raise MnemoHTTPNetworkError(f"HTTP request error for {safe_url}: {exc.__class__.__name__}") from exc

        status = response.status_code
        if allowed_statuses is not None and status in allowed_statuses:
            return response
        if 200 <= status < 300:
            return response
        if status in _RETRYABLE_STATUS_CODES and attempt < max_retries:
            logger.info("retrying %s %s after status %s", method, safe_url, status)
            await _sleep_for_retry(attempt, backoff_base, backoff_max)
            continue
        raise MnemoHTTPStatusError(
            f"HTTP status {status} for {safe_url}",
            status_code=status,
            reason=response.reason_phrase,
            payload=_response_payload(response),
        )

    raise MnemoHTTPNetworkError(f"HTTP request failed for {safe_url}: {last_exc}")


async def request_json(method: str, url: str, **kwargs: Any) -> Any:
    response = await request_with_retry(method, url, **kwargs)
    return _response_payload(response)


async def _sleep_for_retry(attempt: int, backoff_base: float, backoff_max: float) -> None:
    sleep_s = min(backoff_max, backoff_base * (2**attempt)) * (0.5 + random.random())
    await asyncio.sleep(sleep_s)
