from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from symbiosis.core.http.errors import SymbiosisHTTPError

from .json_extract import JSONExtractionError, extract_json_object
from .llm_openai_compat import GenerationServiceError, OpenAICompatClient

MAX_ATTEMPTS = 2

Validator = Callable[[dict[str, Any]], Any]


class CompletionFailed(RuntimeError):
    def __init__(self, label: str, attempts: int, last_error: Exception | None = None) -> None:
        super().__init__(f"{label} failed after {attempts} attempts")
        self.label = label
        self.attempts = attempts
        self.last_error = last_error


@dataclass
class CompletionResult:
    parsed: dict[str, Any]
    cleaned: str


class ValidatedCompletion:
    def __init__(self, client: OpenAICompatClient, attempts: int = MAX_ATTEMPTS) -> None:
        self.client = client
        self.attempts = max(1, attempts)
        self.logger = logging.getLogger("symbiosis.completion")

    def complete(
        self,
        messages: list[dict[str, str]],
        model: str,
        credential: str,
        validate: Validator,
        label: str,
    ) -> CompletionResult:
        prompt_len = sum(len(message.get("content", "")) for message in messages)
        last_error: Exception | None = None
        for attempt in range(1, self.attempts + 1):
            start = time.perf_counter()
            try:
                raw = self.client.chat_completion(messages=messages, model=model, credential=credential)
                parsed, cleaned = extract_json_object(raw)
            except (SymbiosisHTTPError, GenerationServiceError, JSONExtractionError) as exc:
                last_error = exc
                self._log_attempt(label, model, attempt, prompt_len, start, ok=False, reason=str(exc))
                continue

            rejection: Exception = ValueError(f"{label} response rejected by validator")
            try:
                accepted = bool(validate(parsed))
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                accepted = False
                rejection = exc
            if accepted:
                self._log_attempt(label, model, attempt, prompt_len, start, ok=True)
                return CompletionResult(parsed=parsed, cleaned=cleaned)

            last_error = rejection
            self._log_attempt(label, model, attempt, prompt_len, start, ok=False, reason="validation")

        raise CompletionFailed(label, self.attempts, last_error)

    def _log_attempt(
        self,
        label: str,
        model: str,
        attempt: int,
        prompt_len: int,
        start: float,
        ok: bool,
        reason: str | None = None,
    ) -> None:
        fields: dict[str, object] = {
            "label": label,
            "model": model,
            "attempt": attempt,
            "max_attempts": self.attempts,
            "duration_ms": int((time.perf_counter() - start) * 1000),
            "ok": ok,
            "prompt_len": prompt_len,
        }
        if reason is not None:
            fields["reason"] = reason
        level = logging.INFO if ok else logging.WARNING
        self.logger.log(level, "completion_call" if ok else f"{label} Retry {attempt}...", extra={"extra_fields": fields})
