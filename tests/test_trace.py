from __future__ import annotations

from symbiosis.core.observability.trace import Trace


def test_events_are_stamped_with_turn_identity() -> None:
    trace = Trace(utterance="hi", turn_id="t1", session_id="s1")

    trace.emit("AnalysisCompleted", {"entry_count": 2})
    trace.emit("FactsQueued", {"count": 1, "turn_id": "explicit"})

    assert trace.names() == ["AnalysisCompleted", "FactsQueued"]
    first = trace.events[0]["payload"]
    assert first["entry_count"] == 2
    assert first["turn_id"] == "t1"
    assert first["session_id"] == "s1"
    assert first["elapsed_ms"] >= 0
    assert trace.events[1]["payload"]["turn_id"] == "explicit"
