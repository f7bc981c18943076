from __future__ import annotations

import pytest

from symbiosis.core.config import DEFAULT_GENERATION_URL, PipelineSettings, load_settings


def test_defaults() -> None:
    settings = load_settings()

    assert settings.self_identity == "Arvin"
    assert settings.default_owner == "Arvin"
    assert settings.generation_url == DEFAULT_GENERATION_URL
    assert settings.completion_attempts == 2
    assert settings.time_gap_hours == 6.0
    assert settings.persist_min_importance == 2
    assert settings.intercept_min_importance == 6
    assert settings.memory_enabled is False


def test_default_owner_follows_self_identity() -> None:
    assert PipelineSettings(self_identity="Mira").default_owner == "Mira"
    assert PipelineSettings(self_identity="Mira", default_owner="Someone").default_owner == "Someone"


def test_persona_file_then_env_overrides(tmp_path, monkeypatch) -> None:
    persona = tmp_path / "persona.yaml"
    persona.write_text(
        "self_identity: Mira\nmemory_store_url: http://store.local/exec\ntime_gap_hours: 4\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("SYMBIOSIS_PERSONA_FILE", str(persona))
    monkeypatch.setenv("SYMBIOSIS_TIME_GAP_HOURS", "8.5")
    monkeypatch.setenv("SYMBIOSIS_STICKY_WORD_LIMIT", "not-a-number")
    monkeypatch.setenv("SYMBIOSIS_FALLBACK_STOPWORDS", "What, tell ,")

    settings = load_settings()

    assert settings.self_identity == "Mira"
    assert settings.default_owner == "Mira"
    assert settings.memory_enabled is True
    assert settings.time_gap_hours == 8.5
    assert settings.sticky_word_limit == 2
    assert settings.fallback_stopwords == ["what", "tell"]


def test_persona_file_must_be_a_mapping(tmp_path) -> None:
    persona = tmp_path / "persona.yaml"
    persona.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_settings(str(persona))
