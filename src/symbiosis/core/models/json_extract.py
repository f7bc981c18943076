"""Pull the JSON object out of a chat completion.

Completions often arrive fenced in Markdown or wrapped in a sentence of
prose. Instead of slicing from the first ``{`` to the last ``}``, the text is
scanned for a balanced top-level object, and braces that sit inside JSON
string literals do not count toward the depth.
"""

from __future__ import annotations

import json
import re
from typing import Any

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


class JSONExtractionError(ValueError):
    pass


def strip_code_fences(raw: str) -> str:
    return _FENCE_RE.sub("", raw)


def _balanced_end(text: str, start: int) -> int | None:
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return None


def extract_json_object(raw: str) -> tuple[dict[str, Any], str]:
    """Return ``(parsed, cleaned)`` for the first parseable top-level object.

    ``cleaned`` is the exact source text of that object. Candidates that are
    unbalanced or fail to parse are skipped and scanning resumes at the next
    opening brace.
    """
    text = strip_code_fences(raw)
    start = text.find("{")
    while start != -1:
        end = _balanced_end(text, start)
        if end is not None:
            candidate = text[start : end + 1]
            try:
                parsed = json.loads(candidate)
            except json.JSONDecodeError:
                parsed = None
            if isinstance(parsed, dict):
                return parsed, candidate
        start = text.find("{", start + 1)
    raise JSONExtractionError("no JSON object found in completion")
