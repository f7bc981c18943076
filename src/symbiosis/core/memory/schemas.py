from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class FactType(str, Enum):
    BIO = "Bio"
    PSYCH = "Psych"
    STATUS = "Status"
    LOG = "Log"


class Topic(str, Enum):
    IDENTITY = "Identity"
    PREFERENCE = "Preference"
    LOCATION = "Location"
    RELATIONSHIP = "Relationship"
    HISTORY = "History"
    WORK = "Work"
    DREAM = "Dream"
    HEALTH = "Health"
    TRIVIAL = "Trivial"


class Mood(str, Enum):
    NEUTRAL = "NEUTRAL"
    AFFECTIONATE = "AFFECTIONATE"
    CRYPTIC = "CRYPTIC"
    HATE = "HATE"
    JOYFUL = "JOYFUL"
    CURIOUS = "CURIOUS"
    SAD = "SAD"
    QUESTION = "QUESTION"
    CONCERNED = "CONCERNED"


GENERATION_MOODS = [mood.value for mood in Mood if mood is not Mood.CONCERNED]
CLARIFYING_MOODS = [Mood.CURIOUS.value, Mood.CONCERNED.value]


def _match_enum(enum_cls: type[Enum], value: Any, default: Enum) -> Enum:
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, list):
        value = value[0] if value else ""
    text = str(value or "").strip().casefold()
    for member in enum_cls:
        if member.value.casefold() == text:
            return member
    return default


def coerce_mood(value: Any) -> Mood:
    return _match_enum(Mood, value, Mood.NEUTRAL)  # type: ignore[return-value]


class ChatTurn(BaseModel):
    role: Role
    content: str
    timestamp: str | None = None


class AtomicFact(BaseModel):
    fact: str
    importance: int = Field(ge=1, le=10)
    owner: str
    type: FactType = FactType.LOG
    topics: Topic = Topic.TRIVIAL
    ambiguous: bool = False

    model_config = {"frozen": True}

    @field_validator("importance", mode="before")
    @classmethod
    def _clamp_importance(cls, value: Any) -> int:
        try:
            number = int(float(value))
        except (OverflowError, TypeError, ValueError):
            return 1
        return max(1, min(10, number))

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, value: Any) -> FactType:
        return _match_enum(FactType, value, FactType.LOG)  # type: ignore[return-value]

    @field_validator("topics", mode="before")
    @classmethod
    def _coerce_topic(cls, value: Any) -> Topic:
        return _match_enum(Topic, value, Topic.TRIVIAL)  # type: ignore[return-value]

    @field_validator("ambiguous", mode="before")
    @classmethod
    def _strict_true(cls, value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().casefold() == "true"
        return value is True

    @classmethod
    def from_model_output(cls, raw: Any, default_owner: str) -> "AtomicFact | None":
        if not isinstance(raw, dict):
            return None
        fact = str(raw.get("fact") or "").strip()
        if not fact:
            return None
        owner = str(raw.get("owner") or "").strip() or default_owner
        return cls.model_validate(
            {
                "fact": fact,
                "importance": raw.get("importance"),
                "owner": owner,
                "type": raw.get("type"),
                "topics": raw.get("topics"),
                "ambiguous": raw.get("ambiguous", False),
            }
        )

    def to_store_payload(self) -> dict[str, object]:
        return {
            "fact": self.fact,
            "importance": self.importance,
            "owner": self.owner,
            "type": self.type.value,
            "entities": self.owner,
            "topics": self.topics.value,
        }


class SearchRequest(BaseModel):
    owner: str
    keywords: list[str] = Field(default_factory=list)


class MoodBranch(BaseModel):
    label: str = ""
    mood: Mood = Mood.NEUTRAL
    leaves: list[str] = Field(default_factory=list)

    @field_validator("label", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("mood", mode="before")
    @classmethod
    def _coerce(cls, value: Any) -> Mood:
        return coerce_mood(value)

    @field_validator("leaves", mode="before")
    @classmethod
    def _words(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [str(item) for item in value]


class MoodRoot(BaseModel):
    label: str = ""
    mood: Mood = Mood.NEUTRAL
    branches: list[MoodBranch] = Field(default_factory=list)

    @field_validator("label", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("mood", mode="before")
    @classmethod
    def _coerce(cls, value: Any) -> Mood:
        return coerce_mood(value)

    @field_validator("branches", mode="before")
    @classmethod
    def _objects_only(cls, value: Any) -> list[Any]:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, dict)]


class MoodTree(BaseModel):
    """Reply plus sentiment tree.

    Root/branch/leaf limits and the one-uppercase-word label rule are only
    requested in the prompt; parsing accepts whatever shape comes back.
    """

    response: str
    mood: Mood = Mood.NEUTRAL
    roots: list[MoodRoot] = Field(default_factory=list)

    @field_validator("mood", mode="before")
    @classmethod
    def _coerce(cls, value: Any) -> Mood:
        return coerce_mood(value)

    @field_validator("roots", mode="before")
    @classmethod
    def _objects_only(cls, value: Any) -> list[Any]:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, dict)]


class Persona(BaseModel):
    bio: str = ""
    current_status: str = ""


class RetrievalResult(BaseModel):
    found: bool = False
    persona: Persona | None = None
    relevant_memories: list[str] = Field(default_factory=list)

    @field_validator("relevant_memories", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [str(item) for item in value]


class AnalysisResult(BaseModel):
    entries: list[AtomicFact] = Field(default_factory=list)
    search_keywords: list[str] = Field(default_factory=list)
    query_subject: str
