"""OpenAI provider implementation using the Chat Completions API.

Works with any OpenAI-compatible endpoint through ``base_url``.
"""

import logging
import os
from typing import Any

import httpx

from ...errors import ConfigurationError
from .base import LLMProvider, LLMResponse, register_provider

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"

# Request timeout in seconds
DEFAULT_TIMEOUT_SECONDS = 120.0


@register_provider("openai")
class OpenAIProvider(LLMProvider):
    """OpenAI provider for LLM calls over the Chat Completions API."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        """
        Initialize OpenAI provider.

        Args:
            api_key: API key. If not provided, uses LLM_API_KEY or OPENAI_API_KEY env var.
            base_url: Optional base URL for the API. If not provided, uses LLM_BASE_URL or
                     OPENAI_BASE_URL, falling back to OpenAI's URL.
            model: Default model. If not provided, uses LLM_MODEL or gpt-4o-mini.
            timeout: Request timeout in seconds.
        """
        # Import OpenAI SDK only when this provider is used (lazy loading)
        try:
            from openai import AsyncOpenAI
        except ImportError:
            raise ImportError(
                "OpenAI SDK not installed. Install it with: pip install codeact[openai]"
            ) from None

        self.api_key = api_key or os.getenv("LLM_API_KEY") or os.getenv("OPENAI_API_KEY")
        if not self.api_key:
            raise ConfigurationError(
                "OpenAI API key not provided. Set LLM_API_KEY or OPENAI_API_KEY environment "
                "variable or pass api_key parameter."
            )

        self.base_url = (
            base_url
            or os.getenv("LLM_BASE_URL")
            or os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
        )
        self.default_model = model or os.getenv("LLM_MODEL") or DEFAULT_MODEL

        self.client = AsyncOpenAI(
            api_key=self.api_key,
            base_url=self.base_url,
            http_client=httpx.AsyncClient(timeout=httpx.Timeout(timeout)),
        )

    async def generate(
        self,
        messages: list[dict[str, Any]],
        model: str,
        tools: list[dict[str, Any]] | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        **kwargs,
    ) -> LLMResponse:
        request_params: dict[str, Any] = {
            "model": model,
            "messages": list(messages),
        }

        if temperature is not None:
            request_params["temperature"] = temperature
        if max_tokens is not None:
            request_params["max_tokens"] = max_tokens
        if tools:
            request_params["tools"] = tools

        request_params.update(kwargs)

        try:
            usage = {
                "input_tokens": 0,
                "output_tokens": 0,
                "total_tokens": 0,
            }
            response_stop_reason = None
            tool_calls = []
            content = None

            response = await self.client.chat.completions.create(**request_params)
            if not response:
                raise RuntimeError("OpenAI API returned no response")

            if response.choices:
                choice = response.choices[0]
                if not choice.message:
                    raise RuntimeError("OpenAI API returned no message")

                content = choice.message.content or ""
                response_stop_reason = choice.finish_reason

                if choice.message.tool_calls:
                    for tool_call in choice.message.tool_calls:
                        tool_calls.append(
                            {
                                "call_id": tool_call.id,
                                "type": "function",
                                "function": {
                                    "name": tool_call.function.name,
                                    "arguments": tool_call.function.arguments,
                                },
                            }
                        )

            if response.usage:
                usage["input_tokens"] = response.usage.prompt_tokens
                usage["output_tokens"] = response.usage.completion_tokens
                usage["total_tokens"] = response.usage.total_tokens

            logger.debug(
                "OpenAI response: %d tool call(s), %s tokens",
                len(tool_calls),
                usage["total_tokens"],
            )

            return LLMResponse(
                content=content,
                usage=usage,
                tool_calls=tool_calls,
                model=response.model or model,
                stop_reason=response_stop_reason,
            )

        except Exception as e:
            # Re-raise with more context
            raise RuntimeError(f"OpenAI Chat Completions API call failed: {str(e)}") from e
