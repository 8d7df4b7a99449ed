"""Tool class and registry for tools the model can call through structured tool calls."""

import logging
from collections.abc import Callable, Iterable
from typing import Any

from pydantic import BaseModel, ValidationError

from ..types.types import ToolCall

logger = logging.getLogger(__name__)


class Tool:
    """A tool the model can invoke by name.

    Invoking a tool does not run anything: it validates the model's
    arguments against ``input_schema`` and turns them into a ToolCall for
    the executor.

    Args:
        name: Name the model uses to call the tool.
        description: What the tool does, shown to the model.
        input_schema: Pydantic model the arguments must validate against.
        build: Turns validated arguments into a ToolCall.
    """

    def __init__(
        self,
        name: str,
        description: str,
        input_schema: type[BaseModel],
        build: Callable[[Any], ToolCall],
    ):
        self.name = name
        self.description = description
        self.input_schema = input_schema
        self._build = build

    def invoke(self, arguments: str | dict[str, Any] | None) -> ToolCall:
        """Validate ``arguments`` and produce a ToolCall.

        Raises:
            ValueError: If the arguments are not valid for this tool.
        """
        try:
            if isinstance(arguments, str):
                payload = self.input_schema.model_validate_json(arguments or "{}")
            else:
                payload = self.input_schema.model_validate(arguments or {})
        except ValidationError as e:
            raise ValueError(f"Invalid arguments for tool '{self.name}': {e}") from e
        return self._build(payload)

    def to_llm_tool_definition(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.input_schema.model_json_schema(),
            },
        }

    def __repr__(self) -> str:
        return f"Tool(name={self.name!r})"


class ToolRegistry:
    """Tools registered up front, looked up by name."""

    def __init__(self, tools: Iterable[Tool] | None = None):
        self._tools: dict[str, Tool] = {}
        for tool in tools or ():
            self.register(tool)

    def register(self, tool: Tool) -> Tool:
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool
        return tool

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def definitions(self) -> list[dict[str, Any]]:
        """Tool schemas in the format sent to the LLM."""
        return [tool.to_llm_tool_definition() for tool in self._tools.values()]

    def resolve(self, tool_calls: list[dict[str, Any]] | None) -> list[ToolCall]:
        """Turn structured tool calls from an LLM response into ToolCalls.

        Calls naming an unknown tool or carrying invalid arguments are
        dropped with a warning.
        """
        calls: list[ToolCall] = []
        for raw in tool_calls or []:
            function = raw.get("function") or {}
            name = function.get("name", "")
            tool = self._tools.get(name)
            if tool is None:
                logger.warning("Dropping call to unknown tool '%s'", name)
                continue
            arguments = function.get("arguments")
            try:
                calls.append(tool.invoke(arguments))
            except ValueError as e:
                logger.warning("Dropping call to tool '%s': %s", name, e)
        return calls
