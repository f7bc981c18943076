from __future__ import annotations

import re

# Applied in order; the bearer rule runs after the assignment rule so
# "Authorization: Bearer <token>" collapses to a single mask.
_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"(?i)\b(api[_-]?key|credential|secret|token|key)(\s*[=:]\s*)(?!bearer\b)([^\s,;]+)"), r"\1\2***"),
    (re.compile(r"(?i)(bearer\s+)(\S+)"), r"\1***"),
    (re.compile(r"sk-[A-Za-z0-9_-]{8,}"), "sk-***"),
)


def redact_string(s: str) -> str:
    for pattern, replacement in _PATTERNS:
        s = pattern.sub(replacement, s)
    return s
