from .client import RetryPolicy, deadline, get_http_client, request_with_retry
from .errors import SymbiosisHTTPError, SymbiosisHTTPNetworkError, SymbiosisHTTPStatusError

__all__ = [
    "RetryPolicy",
    "deadline",
    "get_http_client",
    "request_with_retry",
    "SymbiosisHTTPError",
    "SymbiosisHTTPNetworkError",
    "SymbiosisHTTPStatusError",
]
