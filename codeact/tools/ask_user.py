"""Ask-user tool -- lets the model pause the task and ask the user a question.

The resulting ToolCall has kind USER_INPUT; the task loop halts at
WaitingForInput and surfaces the question to the caller.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from ..types.types import ToolCall, ToolKind
from .tool import Tool

ASK_USER_TOOL_NAME = "ask_user"


class AskUserInput(BaseModel):
    """Input schema for the ask_user tool."""

    question: str = Field(description="The question to ask the user")


def create_ask_user_tool() -> Tool:
    """Create the ask_user tool for agent-to-user communication."""

    def build(payload: AskUserInput) -> ToolCall:
        return ToolCall(kind=ToolKind.USER_INPUT, payload=payload.question.strip())

    return Tool(
        name=ASK_USER_TOOL_NAME,
        description=(
            "Ask the user a question and wait for their answer. Use this when you need "
            "information or a decision only the user can provide."
        ),
        input_schema=AskUserInput,
        build=build,
    )
