from __future__ import annotations

import json

import httpx
import pytest

from symbiosis.core.http.errors import SymbiosisHTTPStatusError
from symbiosis.core.models.llm_openai_compat import GenerationServiceError, OpenAICompatClient


def _install(monkeypatch, handler) -> None:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    monkeypatch.setattr("symbiosis.core.http.client.get_http_client", lambda: client)


def test_chat_completion_sends_model_messages_and_credential(monkeypatch) -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers["Authorization"]
        seen["title"] = request.headers["X-Title"]
        seen["referer"] = request.headers.get("HTTP-Referer")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"content": '{"ok": true}'}}]})

    _install(monkeypatch, handler)
    client = OpenAICompatClient(url="http://llm.local/v1/chat/completions", referer="http://app.local")

    content = client.chat_completion([{"role": "user", "content": "hi"}], model="model-a", credential="sk-abc")

    assert content == '{"ok": true}'
    assert seen["auth"] == "Bearer sk-abc"
    assert seen["title"] == "Symbiosis"
    assert seen["referer"] == "http://app.local"
    assert seen["body"] == {"model": "model-a", "messages": [{"role": "user", "content": "hi"}]}


def test_missing_choices_is_an_empty_response(monkeypatch) -> None:
    _install(monkeypatch, lambda request: httpx.Response(200, json={"error": {"message": "quota"}}))
    client = OpenAICompatClient(url="http://llm.local/v1/chat/completions")

    with pytest.raises(GenerationServiceError):
        client.chat_completion([{"role": "user", "content": "hi"}], model="m", credential="k")


def test_generation_call_is_not_retried_at_transport_level(monkeypatch) -> None:
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        return httpx.Response(503)

    _install(monkeypatch, handler)
    client = OpenAICompatClient(url="http://llm.local/v1/chat/completions")

    with pytest.raises(SymbiosisHTTPStatusError):
        client.chat_completion([{"role": "user", "content": "hi"}], model="m", credential="k")

    assert calls["count"] == 1
