"""Code execution tools: one per supported language."""

from __future__ import annotations

from pydantic import BaseModel, Field

from ..types.types import ToolCall, ToolKind
from .tool import Tool

# ── Input schema ──────────────────────────────────────────────────────


class CodeInput(BaseModel):
    """Input schema for the code tools."""

    code: str = Field(min_length=1, description="Source code to execute")


_DESCRIPTIONS = {
    ToolKind.BASH: (
        "Run a bash command in the working directory. Use this for shell commands, "
        "file system operations and installing packages."
    ),
    ToolKind.JAVASCRIPT: "Run a JavaScript program with Node.js in the working directory.",
    ToolKind.PYTHON: "Run a Python 3 program in the working directory.",
}


# ── Factory ───────────────────────────────────────────────────────────


def create_code_tool(kind: ToolKind) -> Tool:
    """Create the tool that runs code of one language.

    Args:
        kind: ToolKind.BASH, ToolKind.JAVASCRIPT or ToolKind.PYTHON.
    """
    if kind not in _DESCRIPTIONS:
        raise ValueError(f"No code tool for kind '{kind.value}'")

    def build(payload: CodeInput) -> ToolCall:
        return ToolCall(kind=kind, payload=payload.code.strip())

    return Tool(
        name=kind.value,
        description=_DESCRIPTIONS[kind],
        input_schema=CodeInput,
        build=build,
    )


def create_code_tools() -> list[Tool]:
    kinds = (ToolKind.BASH, ToolKind.JAVASCRIPT, ToolKind.PYTHON)
    return [create_code_tool(kind) for kind in kinds]
