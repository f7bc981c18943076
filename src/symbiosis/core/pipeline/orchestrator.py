from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from functools import partial
from typing import Any
from uuid import uuid4

from symbiosis.core.config import PipelineSettings, load_settings
from symbiosis.core.logging.context import log_context
from symbiosis.core.memory.outbox import MemoryOutbox
from symbiosis.core.memory.schemas import ChatTurn, Role
from symbiosis.core.memory.store_client import MemoryStoreClient
from symbiosis.core.models.completion import CompletionFailed, ValidatedCompletion
from symbiosis.core.models.llm_openai_compat import OpenAICompatClient
from symbiosis.core.observability.trace import Trace

from .analyzer import FactAnalyzer
from .generator import ResponseGenerator
from .interceptor import AmbiguityInterceptor
from .persister import FactPersister
from .relationships import RelationshipResolver
from .retriever import MemoryRetriever
from .schemas import ChatSession, Reply, TurnResult
from .session import SessionRestorer

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MemoryPipeline:
    def __init__(
        self,
        settings: PipelineSettings | None = None,
        completion: ValidatedCompletion | None = None,
        store: MemoryStoreClient | None = None,
        outbox: MemoryOutbox | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.settings = settings or load_settings()
        self.completion = completion or ValidatedCompletion(
            OpenAICompatClient(
                url=self.settings.generation_url,
                timeout_s=self.settings.llm_timeout_s,
                app_title=self.settings.app_title,
                referer=self.settings.referer,
            ),
            attempts=self.settings.completion_attempts,
        )
        if store is None and self.settings.memory_enabled:
            store = MemoryStoreClient(self.settings.memory_store_url, timeout_s=self.settings.memory_timeout_s)
        self.store = store
        self.outbox = outbox or MemoryOutbox()
        self.clock = clock or _utc_now

        self.resolver = RelationshipResolver(self.completion, self.store, self.settings)
        self.analyzer = FactAnalyzer(self.completion, self.settings, clock=self.clock)
        self.interceptor = AmbiguityInterceptor(self.completion, self.settings)
        self.retriever = MemoryRetriever(self.store, self.settings)
        self.generator = ResponseGenerator(self.completion, self.settings)
        self.persister = FactPersister(self.store, self.outbox, self.settings)
        self.restorer = SessionRestorer(self.store, self.settings, clock=self.clock)

    def restore_session(self) -> ChatSession:
        session = ChatSession()
        with log_context(session_id=session.session_id):
            session.history = self.restorer.restore()
        return session

    def process_chat(
        self,
        utterance: str,
        credential: str,
        model_high: str,
        model_low: str,
        session: ChatSession,
        question_mode: bool = False,
    ) -> dict[str, Any]:
        return self.run_turn(utterance, credential, model_high, model_low, session, question_mode).envelope()

    def run_turn(
        self,
        utterance: str,
        credential: str,
        model_high: str,
        model_low: str,
        session: ChatSession,
        question_mode: bool = False,
    ) -> TurnResult:
        turn_id = str(uuid4())
        trace = Trace(utterance=utterance, turn_id=turn_id, session_id=session.session_id)
        history = list(session.history)
        light_model = model_low or model_high

        with log_context(session_id=session.session_id, turn_id=turn_id):
            self._log_chat(Role.USER, utterance)

            relationship_context = self.resolver.resolve(utterance, light_model, credential)
            trace.emit("RelationshipsResolved", {"found": bool(relationship_context)})

            analysis = self.analyzer.analyze(utterance, history, relationship_context, light_model, credential)
            trace.emit(
                "AnalysisCompleted",
                {
                    "entry_count": len(analysis.entries),
                    "keyword_count": len(analysis.search_keywords),
                    "query_subject": analysis.query_subject,
                },
            )

            clarifying = self.interceptor.intercept(analysis.entries, utterance, model_high, credential)
            if clarifying is not None:
                trace.emit("TurnIntercepted", {"mood": clarifying.tree.mood.value})
                self._record(session, utterance, clarifying)
                self._log_turn(trace)
                return TurnResult(
                    reply=clarifying,
                    analysis=analysis,
                    intercepted=True,
                    trace_events=trace.events,
                    turn_id=turn_id,
                )

            retrieval = self.retriever.retrieve(
                history,
                relationship_context,
                analysis.search_keywords,
                analysis.entries,
                analysis.query_subject,
                utterance,
            )
            if retrieval.context:
                session.last_retrieved_context = retrieval.context
            trace.emit(
                "MemoryRetrieved",
                {"owner": retrieval.request.owner, "keywords": retrieval.request.keywords, "found": bool(retrieval.context)},
            )

            try:
                reply = self.generator.generate(
                    question_mode,
                    retrieval.context,
                    history,
                    utterance,
                    model_high,
                    credential,
                )
            except CompletionFailed as exc:
                logger.error("Generation failed: %s", exc)
                raise
            trace.emit("ResponseGenerated", {"mood": reply.tree.mood.value, "root_count": len(reply.tree.roots)})

            self._log_chat(Role.ASSISTANT, reply.tree.response)
            queued = self.persister.persist(analysis.entries)
            trace.emit("FactsQueued", {"count": queued})

            self._record(session, utterance, reply)
            self._log_turn(trace)
            return TurnResult(
                reply=reply,
                analysis=analysis,
                search=retrieval.request,
                trace_events=trace.events,
                turn_id=turn_id,
            )

    def close(self, timeout: float = 5.0) -> None:
        self.outbox.drain(timeout)
        self.outbox.close(timeout)

    def _log_turn(self, trace: Trace) -> None:
        logger.info("Turn complete", extra={"extra_fields": {"stages": trace.names()}})

    def _log_chat(self, role: Role, content: str) -> None:
        if self.store is None:
            return
        self.outbox.publish(f"log_chat:{role.value}", partial(self.store.log_chat, role, content))

    def _record(self, session: ChatSession, utterance: str, reply: Reply) -> None:
        stamp = self.clock().isoformat()
        session.history.append(ChatTurn(role=Role.USER, content=utterance, timestamp=stamp))
        session.history.append(ChatTurn(role=Role.ASSISTANT, content=reply.tree.response, timestamp=stamp))
