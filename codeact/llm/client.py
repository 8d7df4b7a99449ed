"""LLM client used by the task loop.

The task loop sends one ``LLMRequest`` per turn. ``ProviderLLMClient``
adapts a registered provider to that interface; tests and embedders can
supply their own ``LLMClient``.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

from ..errors import ConfigurationError
from ..types.types import ChatMessage
from .providers.base import LLMProvider, LLMResponse, get_provider

logger = logging.getLogger(__name__)


class LLMRequest(BaseModel):
    """One turn's request to the model."""

    system_prompt: str
    history: list[ChatMessage] = Field(default_factory=list)
    tools: list[dict[str, Any]] | None = Field(
        default=None, description="Tool schemas in OpenAI function format"
    )

    def to_messages(self) -> list[dict[str, str]]:
        return [{"role": "system", "content": self.system_prompt}] + [
            m.to_dict() for m in self.history
        ]


class LLMClient(ABC):
    """Anything that can answer an LLMRequest."""

    @abstractmethod
    async def complete(self, request: LLMRequest) -> LLMResponse:
        """Send ``request`` and return the model's response.

        Raises:
            Exception: Any transport failure. The task loop handles it.
        """


class ProviderLLMClient(LLMClient):
    """LLMClient backed by a registered LLM provider.

    Args:
        provider: Provider name ("openai", "anthropic") or an LLMProvider instance.
        model: Model identifier; defaults to the provider's default model.
        temperature: Optional sampling temperature.
        max_tokens: Optional completion token limit.
        **provider_kwargs: Passed to the provider constructor.

    Raises:
        ConfigurationError: If the provider is unknown or missing credentials.
    """

    def __init__(
        self,
        provider: str | LLMProvider = "openai",
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        **provider_kwargs,
    ):
        if isinstance(provider, LLMProvider):
            self.provider = provider
        else:
            try:
                self.provider = get_provider(provider, **provider_kwargs)
            except ValueError as e:
                raise ConfigurationError(str(e)) from e

        self.model = model or self.provider.default_model
        if not self.model:
            raise ConfigurationError("No model configured for the LLM client")
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def complete(self, request: LLMRequest) -> LLMResponse:
        logger.debug("Calling %s with %d history message(s)", self.model, len(request.history))
        return await self.provider.generate(
            messages=request.to_messages(),
            model=self.model,
            tools=request.tools,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
