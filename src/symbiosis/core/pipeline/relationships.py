from __future__ import annotations

import logging

from symbiosis.core.config import PipelineSettings
from symbiosis.core.memory.store_client import MemoryStoreClient, MemoryStoreError
from symbiosis.core.models.completion import CompletionFailed, ValidatedCompletion
from symbiosis.core.models.prompts import relationship_prompt

logger = logging.getLogger(__name__)

RELATIONSHIP_HEADER = "KNOWN RELATIONSHIPS:"


class RelationshipResolver:
    """Expands people mentioned in an utterance into synonyms ("dad" ->
    "father", "parent") and looks them up among the self identity's facts."""

    def __init__(self, completion: ValidatedCompletion, store: MemoryStoreClient | None, settings: PipelineSettings) -> None:
        self.completion = completion
        self.store = store
        self.settings = settings

    def resolve(self, utterance: str, model: str, credential: str) -> str:
        if self.store is None:
            return ""
        try:
            result = self.completion.complete(
                [{"role": "system", "content": relationship_prompt(utterance)}],
                model=model,
                credential=credential,
                validate=lambda data: isinstance(data.get("keywords"), list),
                label="Rel Check",
            )
            targets = [str(item).strip() for item in result.parsed["keywords"] if str(item).strip()]
            if not targets:
                return ""
            logger.info("Expanded relationships: %s", targets)
            found = self.store.retrieve_complex(owner=self.settings.self_identity, keywords=targets)
        except (CompletionFailed, MemoryStoreError) as exc:
            logger.warning("Rel check skipped: %s", exc)
            return ""

        if not found.found or not found.relevant_memories:
            return ""
        return RELATIONSHIP_HEADER + "\n" + "\n".join(found.relevant_memories)
