from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any


@dataclass
class Trace:
    """Ordered stage events for one turn, stamped with the turn identity."""

    utterance: str
    turn_id: str | None = None
    session_id: str | None = None
    events: list[dict[str, Any]] = field(default_factory=list)
    started: float = field(default_factory=time.perf_counter, repr=False)

    def emit(self, name: str, payload: dict[str, Any]) -> None:
        stamped = {**payload, "elapsed_ms": int((time.perf_counter() - self.started) * 1000)}
        if self.turn_id:
            stamped.setdefault("turn_id", self.turn_id)
        if self.session_id:
            stamped.setdefault("session_id", self.session_id)
        self.events.append({"event": name, "payload": stamped})

    def names(self) -> list[str]:
        return [event["event"] for event in self.events]