from __future__ import annotations

import httpx
import pytest

from symbiosis.core.http.client import RetryPolicy, deadline, request_with_retry
from symbiosis.core.http.errors import SymbiosisHTTPNetworkError, SymbiosisHTTPStatusError


def test_request_with_retry_retries_transient_http_status(monkeypatch) -> None:
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        if calls["count"] < 3:
            return httpx.Response(503, request=request)
        return httpx.Response(200, request=request, json={"ok": True})

    transport = httpx.MockTransport(handler)
    client = httpx.Client(transport=transport)

    monkeypatch.setattr("symbiosis.core.http.client.get_http_client", lambda: client)
    monkeypatch.setattr("symbiosis.core.http.client.time.sleep", lambda _: None)
    monkeypatch.setattr("symbiosis.core.http.client.random.random", lambda: 0.5)

    response = request_with_retry("GET", "http://service.local/test", retries=2)

    assert response.status_code == 200
    assert calls["count"] == 3


def test_client_errors_are_not_retried(monkeypatch) -> None:
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        return httpx.Response(401, request=request)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    monkeypatch.setattr("symbiosis.core.http.client.get_http_client", lambda: client)

    with pytest.raises(SymbiosisHTTPStatusError) as excinfo:
        request_with_retry("POST", "http://service.local/test", retries=3)

    assert excinfo.value.status_code == 401
    assert calls["count"] == 1


def test_connect_errors_surface_as_network_error_after_retries(monkeypatch) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    monkeypatch.setattr("symbiosis.core.http.client.get_http_client", lambda: client)
    monkeypatch.setattr("symbiosis.core.http.client.time.sleep", lambda _: None)

    with pytest.raises(SymbiosisHTTPNetworkError):
        request_with_retry("POST", "http://secret.local/exec", retries=1, redact_url=True)


def test_status_error_reports_attempts_and_hides_url(monkeypatch) -> None:
    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(502, request=request)))
    monkeypatch.setattr("symbiosis.core.http.client.get_http_client", lambda: client)
    monkeypatch.setattr("symbiosis.core.http.client.time.sleep", lambda _: None)

    with pytest.raises(SymbiosisHTTPStatusError) as excinfo:
        request_with_retry("POST", "http://secret.local/exec", retries=2, redact_url=True)

    assert excinfo.value.attempts == 3
    assert excinfo.value.url == "[redacted-url]"
    assert "secret.local" not in str(excinfo.value)


def test_retry_policy_reads_env_and_deadline_caps_connect(monkeypatch) -> None:
    monkeypatch.setenv("SYMBIOSIS_HTTP_RETRIES", "4")
    monkeypatch.setenv("SYMBIOSIS_HTTP_CONNECT_TIMEOUT_S", "5")

    assert RetryPolicy.from_env().retries == 4
    assert RetryPolicy.from_env(retries=0).retries == 0

    timeout = deadline(2.0)
    assert timeout.read == 2.0
    assert timeout.connect == 2.0
