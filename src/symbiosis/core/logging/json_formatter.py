from __future__ import annotations

import json
import logging
import traceback
from datetime import datetime, timezone

from .context import get_log_context
from .redact import redact_string


def _exception_fields(record: logging.LogRecord) -> dict[str, str]:
    exc_type, exc_value, exc_tb = record.exc_info or (None, None, None)
    return {
        "exc_type": exc_type.__name__ if exc_type else "Exception",
        "exc_msg": redact_string(str(exc_value)) if exc_value else "",
        "stack": redact_string("".join(traceback.format_exception(exc_type, exc_value, exc_tb))),
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per line; message text and string extras are redacted."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "ts_iso_utc": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": redact_string(record.getMessage()),
            **get_log_context(),
        }

        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            for key, value in extra_fields.items():
                payload[key] = redact_string(value) if isinstance(value, str) else value

        if record.exc_info:
            payload.update(_exception_fields(record))

        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=str)
