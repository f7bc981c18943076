"""Keyword aggregation and context assembly for memory retrieval.

Keywords are unioned, in provenance order, from:

1. the analyzer's search keywords,
2. up to two "sticky" words from the last assistant turn,
3. names found in ``[Subject: <name>]`` markers of the relationship block,
4. and, only when all of the above are empty, words from the raw utterance.
"""

from __future__ import annotations

import logging
import re

from symbiosis.core.config import PipelineSettings
from symbiosis.core.memory.schemas import AtomicFact, ChatTurn, RetrievalResult, Role, SearchRequest
from symbiosis.core.memory.store_client import MemoryStoreClient, MemoryStoreError

from .schemas import Retrieval

logger = logging.getLogger(__name__)

_SUBJECT_RE = re.compile(r"\[Subject:\s*([^\]]+)\]")
_ALPHA_RE = re.compile(r"[a-zA-Z]+")
_NON_ALPHA_RE = re.compile(r"[^a-zA-Z]")


def sticky_words(history: list[ChatTurn], limit: int = 2) -> list[str]:
    last_reply = next((turn for turn in reversed(history) if turn.role is Role.ASSISTANT), None)
    if last_reply is None:
        return []
    words = [word for word in last_reply.content.split(" ") if len(word) > 5 and _ALPHA_RE.fullmatch(word)]
    return words[:limit]


def relationship_names(relationship_context: str, self_identity: str) -> list[str]:
    names: list[str] = []
    for match in _SUBJECT_RE.finditer(relationship_context):
        name = match.group(1).strip()
        if name == self_identity or len(name) < 3 or name in names:
            continue
        names.append(name)
    return names


def fallback_keywords(utterance: str, stopwords: list[str]) -> list[str]:
    words: list[str] = []
    for raw in utterance.split(" "):
        word = _NON_ALPHA_RE.sub("", raw).lower()
        if len(word) > 3 and word not in stopwords:
            words.append(word)
    return words


def _union(keywords: list[str], additions: list[str]) -> None:
    for word in additions:
        if word and word not in keywords:
            keywords.append(word)


def aggregate_keywords(
    search_keywords: list[str],
    history: list[ChatTurn],
    relationship_context: str,
    utterance: str,
    settings: PipelineSettings,
) -> list[str]:
    keywords: list[str] = []
    _union(keywords, search_keywords)
    _union(keywords, sticky_words(history, settings.sticky_word_limit))
    if relationship_context:
        _union(keywords, relationship_names(relationship_context, settings.self_identity))
    if not keywords:
        _union(keywords, fallback_keywords(utterance, settings.fallback_stopwords))
    return keywords


def primary_owner(entries: list[AtomicFact], query_subject: str) -> str:
    if entries and entries[0].owner:
        return entries[0].owner
    return query_subject


def render_context(owner: str, result: RetrievalResult) -> str:
    persona = result.persona
    lines = [
        f"=== SUBJECT CONTEXT ({owner.upper()}) ===",
        f"[BIO]: {persona.bio if persona else ''}",
        f"[STATUS]: {persona.current_status if persona else ''}",
        "",
        "=== DATABASE SEARCH RESULTS (GLOBAL) ===",
        *result.relevant_memories,
    ]
    return "\n".join(lines)


class MemoryRetriever:
    def __init__(self, store: MemoryStoreClient | None, settings: PipelineSettings) -> None:
        self.store = store
        self.settings = settings

    def build_request(
        self,
        history: list[ChatTurn],
        relationship_context: str,
        search_keywords: list[str],
        entries: list[AtomicFact],
        query_subject: str,
        utterance: str,
    ) -> SearchRequest:
        return SearchRequest(
            owner=primary_owner(entries, query_subject),
            keywords=aggregate_keywords(search_keywords, history, relationship_context, utterance, self.settings),
        )

    def retrieve(
        self,
        history: list[ChatTurn],
        relationship_context: str,
        search_keywords: list[str],
        entries: list[AtomicFact],
        query_subject: str,
        utterance: str,
    ) -> Retrieval:
        request = self.build_request(history, relationship_context, search_keywords, entries, query_subject, utterance)
        if self.store is None:
            return Retrieval(request=request)

        logger.info("Searching owner=%s keys=%s", request.owner, request.keywords)
        try:
            result = self.store.retrieve_complex(owner=request.owner, keywords=request.keywords)
        except MemoryStoreError as exc:
            logger.warning("Retrieval error: %s", exc)
            return Retrieval(request=request)

        if not result.found:
            return Retrieval(request=request)
        return Retrieval(request=request, context=render_context(request.owner, result))
