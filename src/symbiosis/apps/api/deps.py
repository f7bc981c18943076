from __future__ import annotations

import threading
from functools import lru_cache

from symbiosis.core.config import PipelineSettings, load_settings
from symbiosis.core.pipeline.orchestrator import MemoryPipeline
from symbiosis.core.pipeline.schemas import ChatSession


class SessionHolder:
    """The API's active session; turns against it run one at a time."""

    def __init__(self) -> None:
        self.session = ChatSession()
        self.lock = threading.Lock()


@lru_cache(maxsize=1)
def get_settings() -> PipelineSettings:
    return load_settings()


@lru_cache(maxsize=1)
def get_pipeline() -> MemoryPipeline:
    return MemoryPipeline(settings=get_settings())


@lru_cache(maxsize=1)
def get_session_holder() -> SessionHolder:
    return SessionHolder()
