from __future__ import annotations

from symbiosis.core.http.client import request_with_retry


class GenerationServiceError(RuntimeError):
    pass


class OpenAICompatClient:
    def __init__(self, url: str, timeout_s: float = 45.0, app_title: str = "Symbiosis", referer: str = "") -> None:
        self.url = url
        self.timeout_s = timeout_s
        self.app_title = app_title
        self.referer = referer

    def chat_completion(self, messages: list[dict[str, str]], model: str, credential: str) -> str:
        headers = {
            "Authorization": f"Bearer {credential}",
            "Content-Type": "application/json",
            "X-Title": self.app_title,
        }
        if self.referer:
            headers["HTTP-Referer"] = self.referer

        response = request_with_retry(
            "POST",
            self.url,
            headers=headers,
            json={"model": model, "messages": messages},
            timeout_override=self.timeout_s,
            retries=0,
        )
        try:
            data = response.json()
        except ValueError as exc:
            raise GenerationServiceError("completion body is not JSON") from exc

        choices = data.get("choices") if isinstance(data, dict) else None
        if not isinstance(choices, list) or not choices:
            raise GenerationServiceError("Empty Response")
        first = choices[0] if isinstance(choices[0], dict) else {}
        message = first.get("message") or {}
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str) or not content.strip():
            raise GenerationServiceError("completion has no content")
        return content
