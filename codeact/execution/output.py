"""Output utilities for the execution framework.

Provides functions for truncating large outputs, stripping ANSI escape
codes and splitting captured streams into log lines.
"""

from __future__ import annotations

import re

# Default maximum output characters
DEFAULT_MAX_CHARS = 100_000

# Head portion of truncated output (20% of max)
HEAD_RATIO = 0.2

STDERR_PREFIX = "stderr: "

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*[a-zA-Z]")


def truncate_output(output: str, max_chars: int | None = None) -> tuple[str, bool]:
    """Truncate output that exceeds the maximum character limit.

    Keeps the first 20% characters (head) and last 80% characters (tail)
    of the max, with a truncation message in between.

    Args:
        output: The output string to potentially truncate.
        max_chars: Maximum character limit (default: 100,000).

    Returns:
        A tuple of (text, truncated) where truncated is True if output was truncated.
    """
    max_c = max_chars if max_chars is not None else DEFAULT_MAX_CHARS
    if len(output) <= max_c:
        return output, False

    head_size = int(max_c * HEAD_RATIO)
    tail_size = max_c - head_size
    omitted = len(output) - head_size - tail_size

    head = output[:head_size]
    tail = output[-tail_size:] if tail_size else ""
    text = f"{head}\n\n--- truncated {omitted} characters ---\n\n{tail}"

    return text, True


def strip_ansi(text: str) -> str:
    """Strip ANSI escape codes from text."""
    return _ANSI_RE.sub("", text)


def log_line(raw: bytes, stderr: bool = False) -> str | None:
    """Turn one captured line into a log entry.

    Blank lines yield None. Stderr lines get the ``stderr: `` prefix.
    """
    text = strip_ansi(raw.decode("utf-8", errors="replace")).strip()
    if not text:
        return None
    return f"{STDERR_PREFIX}{text}" if stderr else text
