"""Tools the model can call through structured tool calls."""

from .ask_user import AskUserInput, create_ask_user_tool
from .code_tools import CodeInput, create_code_tool, create_code_tools
from .tool import Tool, ToolRegistry


def default_registry() -> ToolRegistry:
    """Registry with the bash, javascript, python and ask_user tools."""
    return ToolRegistry([*create_code_tools(), create_ask_user_tool()])


__all__ = [
    "AskUserInput",
    "CodeInput",
    "Tool",
    "ToolRegistry",
    "create_ask_user_tool",
    "create_code_tool",
    "create_code_tools",
    "default_registry",
]
