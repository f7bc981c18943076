from __future__ import annotations

import threading

from fakes import FakeStore, RecordingOutbox, make_settings
from symbiosis.core.memory.outbox import MemoryOutbox
from symbiosis.core.memory.schemas import AtomicFact
from symbiosis.core.memory.store_client import MemoryStoreError
from symbiosis.core.pipeline.persister import FactPersister


def _facts(*importances: int) -> list[AtomicFact]:
    return [AtomicFact(fact=f"fact {value}", importance=value, owner="Arvin") for value in importances]


def test_only_facts_at_or_above_threshold_are_stored() -> None:
    store = FakeStore()
    outbox = RecordingOutbox()
    persister = FactPersister(store, outbox, make_settings())

    queued = persister.persist(_facts(1, 2, 5))

    assert queued == 2
    assert [fact.importance for fact in store.stored] == [2, 5]
    assert outbox.published == ["store_atomic", "store_atomic"]


def test_no_store_means_nothing_is_queued() -> None:
    outbox = RecordingOutbox()
    persister = FactPersister(None, outbox, make_settings(memory_store_url=""))

    assert persister.persist(_facts(9)) == 0
    assert outbox.published == []


def test_detached_writes_run_in_order_and_failures_are_isolated() -> None:
    store = FakeStore()
    outbox = MemoryOutbox(name="test-outbox")
    calls: list[str] = []

    def broken() -> None:
        calls.append("broken")
        raise MemoryStoreError("memory_store:store_atomic: boom")

    def crashing() -> None:
        calls.append("crashing")
        raise RuntimeError("unexpected")

    outbox.publish("broken", broken)
    outbox.publish("crashing", crashing)
    FactPersister(store, outbox, make_settings()).persist(_facts(3, 4))

    assert outbox.drain(timeout=5.0)
    assert calls == ["broken", "crashing"]
    assert [fact.importance for fact in store.stored] == [3, 4]
    outbox.close()


def test_publish_does_not_wait_for_delivery() -> None:
    outbox = MemoryOutbox(name="test-outbox-async")
    release = threading.Event()
    done = threading.Event()

    def slow() -> None:
        release.wait(5.0)
        done.set()

    outbox.publish("slow", slow)
    assert not done.is_set()
    assert outbox.drain(timeout=0.05) is False

    release.set()
    assert outbox.drain(timeout=5.0)
    assert done.is_set()
    outbox.close()


def test_closed_outbox_drops_new_work() -> None:
    outbox = MemoryOutbox(name="test-outbox-closed")
    outbox.close()
    calls: list[str] = []

    outbox.publish("late", lambda: calls.append("late"))

    assert outbox.drain(timeout=1.0)
    assert calls == []
