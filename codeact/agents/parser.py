"""Extraction of tool calls from free-form model text.

The text is scanned once, left to right. At each position at most one of
these shapes can start, and the shape that starts there consumes its whole
span, so a snippet is never reported twice:

- a fenced code block: ```` ```python\\n...\\n``` ````
- a user-input request: ``<tool>user_input</tool><input>...</input>``
- a JSON call: ``<|interpreter|>{"code": ..., "language": ...}`` or a bare
  ``{"code": ..., "language": ...}`` object

Malformed fragments are skipped silently.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterator

from ..types.types import ToolCall, ToolKind

logger = logging.getLogger(__name__)

INTERPRETER_MARKER = "<|interpreter|>"

FENCE_LANGUAGES = {
    "bash": ToolKind.BASH,
    "sh": ToolKind.BASH,
    "shell": ToolKind.BASH,
    "javascript": ToolKind.JAVASCRIPT,
    "js": ToolKind.JAVASCRIPT,
    "node": ToolKind.JAVASCRIPT,
    "python": ToolKind.PYTHON,
    "py": ToolKind.PYTHON,
    "python3": ToolKind.PYTHON,
}

JSON_LANGUAGES = {
    "bash": ToolKind.BASH,
    "javascript": ToolKind.JAVASCRIPT,
    "js": ToolKind.JAVASCRIPT,
    "python": ToolKind.PYTHON,
    "py": ToolKind.PYTHON,
}

_FENCE_RE = re.compile(r"```[ \t]*([\w+-]*)[^\n]*\n(.*?)```", re.DOTALL)
_USER_INPUT_RE = re.compile(
    r"<tool>\s*user_input\s*</tool>\s*<input>(.*?)</input>", re.DOTALL | re.IGNORECASE
)

_decoder = json.JSONDecoder()


def _json_call(obj: object) -> ToolCall | None:
    if not isinstance(obj, dict):
        return None
    code = obj.get("code")
    if not isinstance(code, str) or not code.strip():
        return None
    language = obj.get("language")
    kind = ToolKind.BASH
    if isinstance(language, str):
        kind = JSON_LANGUAGES.get(language.strip().lower(), ToolKind.BASH)
    return ToolCall(kind=kind, payload=code.strip())


def _scan(text: str) -> Iterator[tuple[int, int, ToolCall | None]]:
    """Yield ``(start, end, call)`` for every consumed span, in order.

    ``call`` is None for spans that were consumed but produce no call, such
    as fenced blocks in other languages.
    """
    pos = 0
    length = len(text)
    while pos < length:
        ch = text[pos]

        if ch == "`" and text.startswith("```", pos):
            m = _FENCE_RE.match(text, pos)
            if m is None:
                pos += 3
                continue
            kind = FENCE_LANGUAGES.get(m.group(1).lower())
            code = m.group(2).strip()
            call = ToolCall(kind=kind, payload=code) if kind is not None and code else None
            yield pos, m.end(), call
            pos = m.end()
            continue

        if ch == "<":
            m = _USER_INPUT_RE.match(text, pos)
            if m is not None:
                yield pos, m.end(), ToolCall(kind=ToolKind.USER_INPUT, payload=m.group(1).strip())
                pos = m.end()
                continue
            if text.startswith(INTERPRETER_MARKER, pos):
                start = pos
                pos += len(INTERPRETER_MARKER)
                while pos < length and text[pos].isspace():
                    pos += 1
                try:
                    obj, end = _decoder.raw_decode(text, pos)
                except ValueError:
                    logger.debug("Skipping malformed interpreter payload at offset %d", start)
                    yield start, pos, None
                    continue
                yield start, end, _json_call(obj)
                pos = end
                continue

        if ch == "{":
            try:
                obj, end = _decoder.raw_decode(text, pos)
            except ValueError:
                pos += 1
                continue
            if isinstance(obj, dict):
                yield pos, end, _json_call(obj)
                pos = end
                continue

        pos += 1


def parse_tool_calls(text: str) -> list[ToolCall]:
    """Extract tool calls from model text, in order of first appearance.

    Args:
        text: Raw assistant text.

    Returns:
        The recognised calls. Text without any recognised shape yields an
        empty list.
    """
    if not text:
        return []
    calls = [call for _, _, call in _scan(text) if call is not None]
    logger.debug("Parsed %d tool call(s)", len(calls))
    return calls


def strip_tool_calls(text: str) -> str:
    """Return ``text`` with every code block and tool-call span removed."""
    if not text:
        return ""
    parts: list[str] = []
    last = 0
    for start, end, _ in _scan(text):
        parts.append(text[last:start])
        last = end
    parts.append(text[last:])
    return "".join(parts)
