from .client import aclose_http_client, get_http_client, request_json, request_with_retry
from .errors import MnemoHTTPError, MnemoHTTPNetworkError, MnemoHTTPStatusError, MnemoHTTPTimeoutError

__all__ = [
    "aclose_http_client",
    "get_http_client",
    "request_json",
    "request_with_retry",
    "MnemoHTTPError",
    "MnemoHTTPNetworkError",
    "MnemoHTTPStatusError",
    "MnemoHTTPTimeoutError",
]
