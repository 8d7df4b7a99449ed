"""Security utilities for the execution framework.

Provides the security modes and the path and domain matching used to
evaluate sandbox policies.
"""

from __future__ import annotations

import os
import re
from enum import Enum

GLOB_CHARS = frozenset("*?")


class SecurityMode(str, Enum):
    """How much of the host a session may touch."""

    STRICT = "strict"
    MODERATE = "moderate"
    INQUIRE = "inquire"

    @property
    def description(self) -> str:
        return _MODE_DESCRIPTIONS[self]

    def requires_confirmation(self, operation: str) -> bool:
        """Whether ``operation`` ("read" or "write") must be confirmed by the user."""
        return self is SecurityMode.INQUIRE and operation == "write"


_MODE_DESCRIPTIONS = {
    SecurityMode.STRICT: "Strict mode: only files in the working directory can be modified",
    SecurityMode.MODERATE: (
        "Moderate mode: the working directory and common development caches can be modified"
    ),
    SecurityMode.INQUIRE: "Inquire mode: moderate access, file modifications require confirmation",
}


def match_glob(text: str, pattern: str) -> bool:
    """Match a text string against a simple glob pattern.

    Supports ``*`` (any sequence of characters) and ``?`` (one character).

    Args:
        text: The text to match.
        pattern: Glob pattern.

    Returns:
        Whether the text matches the pattern.
    """
    # Escape regex special chars except * and ?, then convert them
    escaped = re.sub(r"[.+^${}()|[\]\\]", lambda m: "\\" + m.group(), pattern)
    regex_str = "^" + escaped.replace("*", ".*").replace("?", ".") + "$"
    return bool(re.match(regex_str, text))


def expand_path(path: str) -> str:
    """Expand ``~`` and normalize a path without touching the filesystem."""
    return os.path.normpath(os.path.expanduser(path))


def is_within_restriction(resolved_path: str, restriction: str) -> bool:
    """Check whether a resolved path stays within a restriction directory.

    Args:
        resolved_path: The fully resolved path to check.
        restriction: The base directory the path must stay within.

    Returns:
        Whether the path is within the restriction.
    """
    base = os.path.abspath(restriction)
    if base == os.sep:
        return resolved_path.startswith(os.sep)
    return resolved_path == base or resolved_path.startswith(base + os.sep)


def path_matches(path: str, pattern: str) -> bool:
    """Check whether ``path`` is covered by a policy entry.

    Entries containing glob characters match with glob semantics; plain
    entries cover the path itself and everything below it.
    """
    resolved = os.path.abspath(expand_path(path))
    expanded = expand_path(pattern)
    if any(c in GLOB_CHARS for c in expanded):
        return match_glob(resolved, expanded)
    return is_within_restriction(resolved, expanded)


def domain_matches(host: str, pattern: str) -> bool:
    """Check whether ``host`` matches a domain entry.

    Matching is case-insensitive. ``*.example.com`` matches ``example.com``
    and any of its subdomains; other entries must match exactly.
    """
    host = host.strip().lower().rstrip(".")
    pattern = pattern.strip().lower().rstrip(".")
    if pattern.startswith("*."):
        suffix = pattern[2:]
        return host == suffix or host.endswith("." + suffix)
    return host == pattern
