from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

from symbiosis.core.memory.schemas import AnalysisResult, ChatTurn, MoodTree, SearchRequest


@dataclass
class ChatSession:
    session_id: str = field(default_factory=lambda: str(uuid4()))
    history: list[ChatTurn] = field(default_factory=list)
    last_retrieved_context: str = ""


@dataclass
class Reply:
    tree: MoodTree
    content: str

    def envelope(self) -> dict[str, Any]:
        return {"choices": [{"message": {"content": self.content}}]}


@dataclass
class Retrieval:
    request: SearchRequest
    context: str = ""


@dataclass
class TurnResult:
    reply: Reply
    analysis: AnalysisResult
    intercepted: bool = False
    search: SearchRequest | None = None
    trace_events: list[dict[str, Any]] = field(default_factory=list)
    turn_id: str | None = None

    def envelope(self) -> dict[str, Any]:
        return self.reply.envelope()
