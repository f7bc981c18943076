from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from pydantic import ValidationError

from symbiosis.core.config import PipelineSettings
from symbiosis.core.memory.schemas import AnalysisResult, AtomicFact, ChatTurn
from symbiosis.core.models.completion import CompletionFailed, ValidatedCompletion
from symbiosis.core.models.prompts import analysis_prompt, render_history

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_today(now: datetime) -> str:
    return f"{now:%b} {now.day}, {now.year}"


class FactAnalyzer:
    def __init__(
        self,
        completion: ValidatedCompletion,
        settings: PipelineSettings,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.completion = completion
        self.settings = settings
        self.clock = clock or _utc_now

    def analyze(
        self,
        utterance: str,
        history: list[ChatTurn],
        relationship_context: str,
        model: str,
        credential: str,
    ) -> AnalysisResult:
        history_text = render_history(history)[-self.settings.analysis_history_chars :]
        prompt = analysis_prompt(
            utterance=utterance,
            history_text=history_text,
            relationship_context=relationship_context,
            today=format_today(self.clock()),
            self_identity=self.settings.self_identity,
        )
        try:
            result = self.completion.complete(
                [{"role": "system", "content": prompt}],
                model=model,
                credential=credential,
                validate=lambda data: isinstance(data.get("entries"), list),
                label="Sensory Analysis",
            )
        except CompletionFailed as exc:
            logger.warning("Analysis Failed: %s", exc)
            return AnalysisResult(query_subject=self.settings.self_identity)

        parsed = result.parsed
        entries: list[AtomicFact] = []
        for raw in parsed["entries"]:
            try:
                fact = AtomicFact.from_model_output(raw, default_owner=self.settings.default_owner)
            except ValidationError as exc:
                logger.warning("Dropping malformed entry: %s", exc.error_count())
                continue
            if fact is not None:
                entries.append(fact)

        raw_keywords = parsed.get("search_keywords")
        keywords = [str(item).strip() for item in raw_keywords if str(item).strip()] if isinstance(raw_keywords, list) else []
        subject = str(parsed.get("query_subject") or "").strip() or self.settings.self_identity

        logger.info(
            "Analysis complete",
            extra={"extra_fields": {"entry_count": len(entries), "keyword_count": len(keywords), "query_subject": subject}},
        )
        return AnalysisResult(entries=entries, search_keywords=keywords, query_subject=subject)
