from __future__ import annotations

import json
import logging

from symbiosis.core.config import PipelineSettings
from symbiosis.core.memory.schemas import CLARIFYING_MOODS, AtomicFact, Mood, MoodTree
from symbiosis.core.models.completion import ValidatedCompletion
from symbiosis.core.models.prompts import clarifying_prompt

from .schemas import Reply

logger = logging.getLogger(__name__)


class AmbiguityInterceptor:
    def __init__(self, completion: ValidatedCompletion, settings: PipelineSettings) -> None:
        self.completion = completion
        self.settings = settings

    def find_unclear(self, entries: list[AtomicFact]) -> AtomicFact | None:
        # Emission order wins; importance only gates.
        for entry in entries:
            if entry.importance >= self.settings.intercept_min_importance and entry.ambiguous:
                return entry
        return None

    def intercept(self, entries: list[AtomicFact], utterance: str, model: str, credential: str) -> Reply | None:
        unclear = self.find_unclear(entries)
        if unclear is None:
            return None

        logger.warning("Interceptor triggered: missing date", extra={"extra_fields": {"importance": unclear.importance}})
        result = self.completion.complete(
            [{"role": "system", "content": clarifying_prompt(utterance, unclear.fact)}],
            model=model,
            credential=credential,
            validate=lambda data: isinstance(data.get("response"), str) and bool(data["response"].strip()),
            label="Interceptor",
        )
        mood = str(result.parsed.get("mood") or "").strip().upper()
        if mood not in CLARIFYING_MOODS:
            mood = Mood.CURIOUS.value
        tree = MoodTree(response=result.parsed["response"], mood=mood, roots=[])
        return Reply(tree=tree, content=json.dumps(tree.model_dump(mode="json"), ensure_ascii=False))
