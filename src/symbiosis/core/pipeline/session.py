from __future__ import annotations

import logging
import math
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from symbiosis.core.config import PipelineSettings
from symbiosis.core.memory.schemas import ChatTurn, Role
from symbiosis.core.memory.store_client import MemoryStoreClient, MemoryStoreError

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(raw: str | None) -> datetime | None:
    if not raw:
        return None
    text = raw.strip()
    try:
        # Epoch milliseconds, as a browser Date would serialize them.
        return datetime.fromtimestamp(float(text) / 1000, tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        pass
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def time_gap_note(hours: float) -> str:
    return (
        f"[SYSTEM_NOTE: The user has returned after {math.floor(hours)} hours. "
        "Treat this as a new session context, but retain previous memories.]"
    )


class SessionRestorer:
    def __init__(
        self,
        store: MemoryStoreClient | None,
        settings: PipelineSettings,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.store = store
        self.settings = settings
        self.clock = clock or _utc_now

    def restore(self) -> list[ChatTurn]:
        if self.store is None:
            return []
        try:
            rows = self.store.get_recent_chat()
        except MemoryStoreError as exc:
            logger.warning("Session restore failed: %s", exc)
            return []

        history = [turn for turn in (self._to_turn(row) for row in rows) if turn is not None]
        gap_turn = self.gap_turn(history)
        if gap_turn is not None:
            history.append(gap_turn)
        logger.info("Session restored: %d msgs", len(history))
        return history

    def gap_turn(self, history: list[ChatTurn]) -> ChatTurn | None:
        if not history:
            return None
        last_time = parse_timestamp(history[-1].timestamp)
        if last_time is None:
            return None
        hours = (self.clock() - last_time).total_seconds() / 3600
        if hours <= self.settings.time_gap_hours:
            return None
        logger.info("Time gap detected: %.1f hours", hours)
        return ChatTurn(role=Role.SYSTEM, content=time_gap_note(hours))

    def _to_turn(self, row: Any) -> ChatTurn | None:
        if not isinstance(row, (list, tuple)) or len(row) < 3:
            return None
        timestamp = row[0]
        try:
            return ChatTurn(
                role=str(row[1]).strip().lower(),
                content=str(row[2]),
                timestamp=str(timestamp) if timestamp not in (None, "") else None,
            )
        except ValidationError:
            logger.debug("Skipping history row with role %r", row[1])
            return None
