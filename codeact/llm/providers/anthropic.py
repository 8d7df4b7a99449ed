"""Anthropic provider implementation using the Messages API."""

import json
import logging
import os
from typing import Any

from ...errors import ConfigurationError
from .base import LLMProvider, LLMResponse, register_provider

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-5"

# Messages API requires max_tokens
DEFAULT_MAX_TOKENS = 4096


def _convert_tools(tools: list[dict[str, Any]] | None) -> list[dict[str, Any]]:
    """Convert OpenAI-style function tools to Anthropic tool definitions."""
    converted = []
    for tool in tools or []:
        function = tool.get("function", tool)
        name = function.get("name")
        if not name:
            continue
        converted.append(
            {
                "name": name,
                "description": function.get("description", ""),
                "input_schema": function.get("parameters") or {"type": "object", "properties": {}},
            }
        )
    return converted


@register_provider("anthropic")
class AnthropicProvider(LLMProvider):
    """Anthropic provider for LLM calls."""

    def __init__(self, api_key: str | None = None, model: str | None = None):
        """
        Initialize Anthropic provider.

        Args:
            api_key: Anthropic API key. If not provided, uses ANTHROPIC_API_KEY env var.
            model: Default model. If not provided, uses ANTHROPIC_MODEL or claude-sonnet-4-5.
        """
        try:
            from anthropic import AsyncAnthropic
        except ImportError:
            raise ImportError(
                "Anthropic SDK not installed. Install it with: pip install codeact[anthropic]"
            ) from None

        self.api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not self.api_key:
            raise ConfigurationError(
                "Anthropic API key not provided. Set ANTHROPIC_API_KEY environment variable "
                "or pass api_key parameter."
            )

        self.default_model = model or os.getenv("ANTHROPIC_MODEL") or DEFAULT_MODEL
        self.client = AsyncAnthropic(api_key=self.api_key)

    async def generate(
        self,
        messages: list[dict[str, Any]],
        model: str,
        tools: list[dict[str, Any]] | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        **kwargs,
    ) -> LLMResponse:
        # Anthropic uses "system" parameter, not a system message
        system_parts = [m["content"] for m in messages if m.get("role") == "system"]
        processed_messages = [m for m in messages if m.get("role") != "system"]

        request_params: dict[str, Any] = {
            "model": model,
            "messages": processed_messages,
            "max_tokens": max_tokens if max_tokens is not None else DEFAULT_MAX_TOKENS,
        }
        if system_parts:
            request_params["system"] = "\n\n".join(system_parts)
        if temperature is not None:
            request_params["temperature"] = temperature

        converted_tools = _convert_tools(tools)
        if converted_tools:
            request_params["tools"] = converted_tools

        request_params.update(kwargs)

        try:
            response = await self.client.messages.create(**request_params)
            if not response:
                raise RuntimeError("Anthropic API returned no response")

            content_parts = []
            tool_calls = []
            for content_block in response.content:
                if content_block.type == "text":
                    content_parts.append(content_block.text)
                elif content_block.type == "tool_use":
                    input_data = content_block.input
                    if isinstance(input_data, dict):
                        arguments = json.dumps(input_data)
                    else:
                        arguments = str(input_data)
                    tool_calls.append(
                        {
                            "call_id": content_block.id,
                            "type": "function",
                            "function": {"name": content_block.name, "arguments": arguments},
                        }
                    )

            usage_data = response.usage
            input_tokens = usage_data.input_tokens if usage_data else 0
            output_tokens = usage_data.output_tokens if usage_data else 0
            usage = {
                "input_tokens": input_tokens,
                "output_tokens": output_tokens,
                "total_tokens": input_tokens + output_tokens,
            }

            return LLMResponse(
                content="".join(content_parts),
                usage=usage,
                tool_calls=tool_calls,
                model=getattr(response, "model", None) or model,
                stop_reason=getattr(response, "stop_reason", None),
            )

        except Exception as e:
            # Re-raise with more context
            raise RuntimeError(f"Anthropic Messages API call failed: {str(e)}") from e
