from __future__ import annotations

import json
import logging
from typing import Any

import httpx
from pydantic import ValidationError

from symbiosis.core.http.client import request_with_retry
from symbiosis.core.http.errors import SymbiosisHTTPError

from .schemas import AtomicFact, RetrievalResult, Role

logger = logging.getLogger(__name__)


class MemoryStoreError(RuntimeError):
    pass


class MemoryStoreClient:
    """Client for the single-endpoint memory store.

    Every action is a POST whose body is a JSON document sent as plain text,
    with the action name in the ``action`` field.
    """

    def __init__(self, endpoint: str, timeout_s: float = 15.0) -> None:
        self.endpoint = endpoint
        self.timeout_s = timeout_s

    def _send(self, payload: dict[str, Any], retries: int | None = None) -> httpx.Response:
        action = payload.get("action")
        try:
            return request_with_retry(
                "POST",
                self.endpoint,
                headers={"Content-Type": "text/plain"},
                content=json.dumps(payload, ensure_ascii=False),
                timeout_override=self.timeout_s,
                retries=retries,
                redact_url=True,
            )
        except SymbiosisHTTPError as exc:
            raise MemoryStoreError(f"memory_store:{action}: {exc}") from exc

    def _post_json(self, payload: dict[str, Any]) -> dict[str, Any]:
        response = self._send(payload)
        try:
            data = response.json()
        except ValueError as exc:
            raise MemoryStoreError(f"memory_store:{payload.get('action')}: body is not JSON") from exc
        if not isinstance(data, dict):
            raise MemoryStoreError(f"memory_store:{payload.get('action')}: expected an object")
        return data

    def get_recent_chat(self) -> list[list[Any]]:
        data = self._post_json({"action": "get_recent_chat"})
        history = data.get("history")
        if not isinstance(history, list):
            raise MemoryStoreError("memory_store:get_recent_chat: missing history")
        return history

    def retrieve_complex(self, owner: str, keywords: list[str]) -> RetrievalResult:
        data = self._post_json({"action": "retrieve_complex", "owner": owner, "keywords": keywords})
        try:
            return RetrievalResult.model_validate(data)
        except ValidationError as exc:
            raise MemoryStoreError(f"memory_store:retrieve_complex: {exc.error_count()} invalid fields") from exc

    def store_atomic(self, fact: AtomicFact) -> None:
        # Each POST appends a row, so writes are sent exactly once.
        self._send({"action": "store_atomic", **fact.to_store_payload()}, retries=0)
        logger.debug("Stored fact for owner %s", fact.owner)

    def log_chat(self, role: Role | str, content: str) -> None:
        role_value = role.value if isinstance(role, Role) else role
        self._send({"action": "log_chat", "role": role_value, "content": content}, retries=0)
