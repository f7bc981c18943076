from __future__ import annotations

import logging
from functools import partial

from symbiosis.core.config import PipelineSettings
from symbiosis.core.memory.outbox import MemoryOutbox
from symbiosis.core.memory.schemas import AtomicFact
from symbiosis.core.memory.store_client import MemoryStoreClient

logger = logging.getLogger(__name__)


class FactPersister:
    def __init__(self, store: MemoryStoreClient | None, outbox: MemoryOutbox, settings: PipelineSettings) -> None:
        self.store = store
        self.outbox = outbox
        self.settings = settings

    def persist(self, entries: list[AtomicFact]) -> int:
        if self.store is None:
            return 0
        queued = 0
        for fact in entries:
            if fact.importance < self.settings.persist_min_importance:
                continue
            self.outbox.publish("store_atomic", partial(self.store.store_atomic, fact))
            queued += 1
        if queued:
            logger.info("Queued %d of %d facts for storage", queued, len(entries))
        return queued
