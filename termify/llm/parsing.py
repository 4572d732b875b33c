"""Best-effort extraction of JSON embedded in free-text model replies.

Models often wrap their answer in a markdown fence or surround it with prose.
``extract_json`` never raises; callers branch on ``JsonExtraction.ok``.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Optional

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)


class JsonShape(StrEnum):
    ARRAY = "array"
    OBJECT = "object"


_BRACKETS = {
    JsonShape.ARRAY: ("[", "]", list),
    JsonShape.OBJECT: ("{", "}", dict),
}


@dataclass(frozen=True)
class JsonExtraction:
    """Tagged parse result: ``value`` is set when ``ok``, ``error`` otherwise."""

    ok: bool
    value: Any = None
    error: Optional[str] = None

    @classmethod
    def success(cls, value: Any) -> JsonExtraction:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> JsonExtraction:
        return cls(ok=False, error=error)


def _balanced_span(text: str, start: int, opener: str, closer: str) -> Optional[str]:
    """Return text[start:end] where end closes the bracket opened at ``start``."""
    depth = 0
    in_string = False
    escaped = False
    for idx in range(start, len(text)):
        ch = text[idx]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == opener:
            depth += 1
        elif ch == closer:
            depth -= 1
            if depth == 0:
                return text[start : idx + 1]
    return None


def _parse_shaped(candidate: str, shape: JsonShape) -> JsonExtraction:
    _, _, expected = _BRACKETS[shape]
    try:
        value = json.loads(candidate)
    except json.JSONDecodeError as exc:
        return JsonExtraction.failure(f"invalid JSON: {exc}")
    if not isinstance(value, expected):
        return JsonExtraction.failure(f"expected a JSON {shape}, got {type(value).__name__}")
    return JsonExtraction.success(value)


def extract_json(reply: Optional[str], shape: JsonShape) -> JsonExtraction:
    """Pull a JSON array or object out of a model reply.

    Looks for a fenced code block first, then for the first balanced bracket
    span of the requested shape that parses.
    """
    if not reply or not reply.strip():
        return JsonExtraction.failure("empty reply")

    fenced = _FENCE_RE.search(reply)
    if fenced:
        return _parse_shaped(fenced.group(1), shape)

    opener, closer, _ = _BRACKETS[shape]
    last_error = f"no JSON {shape} found in reply"
    pos = reply.find(opener)
    while pos != -1:
        span = _balanced_span(reply, pos, opener, closer)
        if span is None:
            pos = reply.find(opener, pos + 1)
            continue
        result = _parse_shaped(span, shape)
        if result.ok:
            return result
        last_error = result.error or last_error
        pos = reply.find(opener, pos + 1)
    return JsonExtraction.failure(last_error)
