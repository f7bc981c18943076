from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from types import MappingProxyType
from typing import Iterator, Mapping

_FIELDS = ("correlation_id", "session_id", "turn_id")

_log_fields: ContextVar[Mapping[str, str]] = ContextVar("symbiosis_log_fields", default=MappingProxyType({}))


@contextmanager
def log_context(
    correlation_id: str | None = None,
    session_id: str | None = None,
    turn_id: str | None = None,
) -> Iterator[None]:
    """Bind request/session/turn identifiers to every log line in scope.

    Only supplied identifiers are replaced, so a turn scope opened inside a
    request scope keeps the request's correlation id.
    """
    supplied = {"correlation_id": correlation_id, "session_id": session_id, "turn_id": turn_id}
    merged = dict(_log_fields.get())
    merged.update({key: value for key, value in supplied.items() if value is not None})
    token = _log_fields.set(MappingProxyType(merged))
    try:
        yield
    finally:
        _log_fields.reset(token)


def get_log_context() -> dict[str, str]:
    fields = _log_fields.get()
    return {key: fields[key] for key in _FIELDS if key in fields}
