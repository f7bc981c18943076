from __future__ import annotations

import os
import random
import threading
import time
from dataclasses import dataclass

import httpx

from .errors import SymbiosisHTTPNetworkError, SymbiosisHTTPStatusError

_RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})
_RETRYABLE_EXCEPTIONS = (httpx.ConnectError, httpx.ReadTimeout, httpx.RemoteProtocolError)
_DEFAULT_TIMEOUT_S = 15.0
_DEFAULT_CONNECT_TIMEOUT_S = 5.0
_DEFAULT_USER_AGENT = "Symbiosis/1.0"

_client: httpx.Client | None = None
_client_lock = threading.Lock()


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


@dataclass(frozen=True)
class RetryPolicy:
    retries: int = 1
    backoff_base_s: float = 0.25
    backoff_max_s: float = 2.0

    @classmethod
    def from_env(cls, retries: int | None = None) -> "RetryPolicy":
        defaults = cls()
        configured = _get_int_env("SYMBIOSIS_HTTP_RETRIES", defaults.retries) if retries is None else retries
        return cls(
            retries=max(0, configured),
            backoff_base_s=max(0.01, _get_float_env("SYMBIOSIS_HTTP_BACKOFF_BASE_S", defaults.backoff_base_s)),
            backoff_max_s=max(0.01, _get_float_env("SYMBIOSIS_HTTP_BACKOFF_MAX_S", defaults.backoff_max_s)),
        )

    def delay(self, attempt: int) -> float:
        return min(self.backoff_max_s, self.backoff_base_s * (2**attempt)) * (0.5 + random.random())


def deadline(total_s: float | None = None) -> httpx.Timeout:
    """Per-call deadline; connect time never exceeds the overall budget."""
    connect_s = max(0.1, _get_float_env("SYMBIOSIS_HTTP_CONNECT_TIMEOUT_S", _DEFAULT_CONNECT_TIMEOUT_S))
    budget = total_s if total_s is not None else _get_float_env("SYMBIOSIS_HTTP_TIMEOUT_S", _DEFAULT_TIMEOUT_S)
    budget = max(0.1, budget)
    return httpx.Timeout(budget, connect=min(connect_s, budget))


def get_http_client() -> httpx.Client:
    global _client
    if _client is not None:
        return _client

    with _client_lock:
        if _client is None:
            # The memory store answers through a redirect to its content host.
            _client = httpx.Client(
                timeout=deadline(),
                headers={"User-Agent": os.getenv("SYMBIOSIS_HTTP_USER_AGENT", _DEFAULT_USER_AGENT)},
                follow_redirects=True,
            )
    return _client


def request_with_retry(
    method: str,
    url: str,
    *,
    headers: dict[str, str] | None = None,
    json: object | None = None,
    content: str | bytes | None = None,
    timeout_override: float | None = None,
    retries: int | None = None,
    redact_url: bool = False,
) -> httpx.Response:
    policy = RetryPolicy.from_env(retries)
    shown_url = "[redacted-url]" if redact_url else url
    timeout = deadline(timeout_override) if timeout_override is not None else httpx.USE_CLIENT_DEFAULT
    client = get_http_client()

    attempt = 0
    while True:
        attempts = attempt + 1
        try:
            response = client.request(method, url, headers=headers or None, json=json, content=content, timeout=timeout)
        except _RETRYABLE_EXCEPTIONS as exc:
            if attempt >= policy.retries:
                raise SymbiosisHTTPNetworkError(
                    f"{method} {shown_url} failed after {attempts} attempts: {exc.__class__.__name__}",
                    url=shown_url,
                    attempts=attempts,
                ) from exc
        except httpx.HTTPError as exc:
            raise SymbiosisHTTPNetworkError(
                f"{method} {shown_url} failed: {exc.__class__.__name__}", url=shown_url, attempts=attempts
            ) from exc
        else:
            status = response.status_code
            if 200 <= status < 300:
                return response
            if status not in _RETRYABLE_STATUS_CODES or attempt >= policy.retries:
                raise SymbiosisHTTPStatusError(
                    f"HTTP status {status} for {shown_url}", status_code=status, url=shown_url, attempts=attempts
                )
        time.sleep(policy.delay(attempt))
        attempt += 1
