from __future__ import annotations

from typing import Any

from symbiosis.core.config import PipelineSettings
from symbiosis.core.memory.schemas import ChatTurn, MoodTree
from symbiosis.core.models.completion import ValidatedCompletion
from symbiosis.core.models.prompts import generation_prompt, render_history

from .schemas import Reply


def has_response_and_mood(data: dict[str, Any]) -> bool:
    response = data.get("response")
    return isinstance(response, str) and bool(response.strip()) and bool(data.get("mood"))


class ResponseGenerator:
    def __init__(self, completion: ValidatedCompletion, settings: PipelineSettings) -> None:
        self.completion = completion
        self.settings = settings

    def generate(
        self,
        question_mode: bool,
        retrieved_context: str,
        history: list[ChatTurn],
        utterance: str,
        model: str,
        credential: str,
    ) -> Reply:
        prompt = generation_prompt(
            question_mode=question_mode,
            retrieved_context=retrieved_context,
            history_text=render_history(history)[-self.settings.generation_history_chars :],
            utterance=utterance,
            self_identity=self.settings.self_identity,
        )
        result = self.completion.complete(
            [{"role": "user", "content": prompt}],
            model=model,
            credential=credential,
            validate=has_response_and_mood,
            label="Generation",
        )
        return Reply(tree=MoodTree.model_validate(result.parsed), content=result.cleaned)
