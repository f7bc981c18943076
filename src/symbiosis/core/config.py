"""Pipeline settings.

Defaults are overridden by an optional YAML persona file and then by
``SYMBIOSIS_*`` environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator

DEFAULT_GENERATION_URL = "https://openrouter.ai/api/v1/chat/completions"


class PipelineSettings(BaseModel):
    self_identity: str = "Arvin"
    default_owner: str = ""
    generation_url: str = DEFAULT_GENERATION_URL
    app_title: str = "Symbiosis"
    referer: str = ""
    memory_store_url: str = ""
    llm_timeout_s: float = 45.0
    memory_timeout_s: float = 15.0
    completion_attempts: int = 2
    time_gap_hours: float = 6.0
    sticky_word_limit: int = 2
    analysis_history_chars: int = 600
    generation_history_chars: int = 800
    persist_min_importance: int = 2
    intercept_min_importance: int = 6
    fallback_stopwords: list[str] = Field(default_factory=lambda: ["what", "when", "where", "show", "list", "give"])

    @model_validator(mode="after")
    def _fill_default_owner(self) -> "PipelineSettings":
        if not self.default_owner.strip():
            self.default_owner = self.self_identity
        return self

    @property
    def memory_enabled(self) -> bool:
        return bool(self.memory_store_url.strip())


_ENV_FIELDS: dict[str, str] = {
    "SYMBIOSIS_SELF_IDENTITY": "self_identity",
    "SYMBIOSIS_DEFAULT_OWNER": "default_owner",
    "SYMBIOSIS_GENERATION_URL": "generation_url",
    "SYMBIOSIS_APP_TITLE": "app_title",
    "SYMBIOSIS_REFERER": "referer",
    "SYMBIOSIS_MEMORY_STORE_URL": "memory_store_url",
    "SYMBIOSIS_LLM_TIMEOUT_S": "llm_timeout_s",
    "SYMBIOSIS_MEMORY_TIMEOUT_S": "memory_timeout_s",
    "SYMBIOSIS_TIME_GAP_HOURS": "time_gap_hours",
    "SYMBIOSIS_STICKY_WORD_LIMIT": "sticky_word_limit",
    "SYMBIOSIS_PERSIST_MIN_IMPORTANCE": "persist_min_importance",
    "SYMBIOSIS_INTERCEPT_MIN_IMPORTANCE": "intercept_min_importance",
}


def _coerce(raw: str, default: Any) -> Any:
    if isinstance(default, int):
        try:
            return int(raw)
        except ValueError:
            return default
    if isinstance(default, float):
        try:
            return float(raw)
        except ValueError:
            return default
    return raw


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"persona file {path} must contain a mapping")
    return data


def load_settings(path: str | None = None) -> PipelineSettings:
    persona_path = path or os.getenv("SYMBIOSIS_PERSONA_FILE")
    data: dict[str, Any] = _load_yaml(Path(persona_path).expanduser()) if persona_path else {}

    defaults = PipelineSettings()
    for env_name, field_name in _ENV_FIELDS.items():
        raw = os.getenv(env_name)
        if raw is None:
            continue
        data[field_name] = _coerce(raw, getattr(defaults, field_name))

    stopwords = os.getenv("SYMBIOSIS_FALLBACK_STOPWORDS")
    if stopwords is not None:
        data["fallback_stopwords"] = [word.strip().lower() for word in stopwords.split(",") if word.strip()]

    return PipelineSettings.model_validate(data)
