from __future__ import annotations

from typing import Any


class MnemoHTTPError(RuntimeError):
    """Base error for shared HTTP client operations."""


class MnemoHTTPStatusError(MnemoHTTPError):
    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        reason: str = "",
        payload: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason
        self.payload = payload


class MnemoHTTPNetworkError(MnemoHTTPError):
    """Raised when request retries are exhausted for transport errors."""


class MnemoHTTPTimeoutError(MnemoHTTPNetworkError):
    """Raised when a request does not settle within its timeout budget."""
