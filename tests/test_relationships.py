from __future__ import annotations

from fakes import FakeStore, as_json, completion_for, make_settings, scripted
from symbiosis.core.memory.schemas import RetrievalResult
from symbiosis.core.pipeline.relationships import RELATIONSHIP_HEADER, RelationshipResolver


def test_expands_and_looks_up_relationships_for_self_identity() -> None:
    completion, client = completion_for(scripted(as_json({"keywords": ["dad", "father", "parent"]})))
    store = FakeStore(
        retrieve=lambda owner, keywords: RetrievalResult(found=True, relevant_memories=["[Subject: Ferdy] Ferdy is Arvin's father"])
    )
    resolver = RelationshipResolver(completion, store, make_settings())

    context = resolver.resolve("My dad hates spinach", model="low", credential="k")

    assert context == RELATIONSHIP_HEADER + "\n[Subject: Ferdy] Ferdy is Arvin's father"
    assert store.retrieve_calls == [("Arvin", ["dad", "father", "parent"])]
    assert client.calls[0]["model"] == "low"


def test_no_people_mentioned_skips_lookup() -> None:
    completion, _ = completion_for(scripted(as_json({"keywords": []})))
    store = FakeStore()
    resolver = RelationshipResolver(completion, store, make_settings())

    assert resolver.resolve("I hate spinach", model="low", credential="k") == ""
    assert store.retrieve_calls == []


def test_nothing_found_yields_empty_context() -> None:
    completion, _ = completion_for(scripted(as_json({"keywords": ["Brandon"]})))
    resolver = RelationshipResolver(completion, FakeStore(), make_settings())

    assert resolver.resolve("Brandon called", model="low", credential="k") == ""


def test_failures_degrade_to_empty_context() -> None:
    completion, client = completion_for(lambda messages, model: "no json here")
    resolver = RelationshipResolver(completion, FakeStore(), make_settings())
    assert resolver.resolve("My dad called", model="low", credential="k") == ""
    assert len(client.calls) == 2

    completion, _ = completion_for(scripted(as_json({"keywords": ["dad"]})))
    failing = FakeStore(fail={"retrieve_complex"})
    resolver = RelationshipResolver(completion, failing, make_settings())
    assert resolver.resolve("My dad called", model="low", credential="k") == ""


def test_skipped_without_memory_store() -> None:
    completion, client = completion_for(scripted())
    resolver = RelationshipResolver(completion, None, make_settings(memory_store_url=""))

    assert resolver.resolve("My dad called", model="low", credential="k") == ""
    assert client.calls == []
