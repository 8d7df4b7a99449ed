"""Base class for LLM providers."""

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

# Provider registry - providers register themselves here
_PROVIDER_REGISTRY: dict[str, type["LLMProvider"]] = {}

# Modules that register a provider when imported
_PROVIDER_MODULES = {
    "openai": ".openai",
    "anthropic": ".anthropic",
}


def register_provider(name: str):
    """
    Decorator to register an LLM provider class.

    Usage:
        @register_provider("openai")
        class OpenAIProvider(LLMProvider):
            ...

    Args:
        name: Provider name (e.g., "openai", "anthropic")
    """

    def decorator(cls: type["LLMProvider"]) -> type["LLMProvider"]:
        _PROVIDER_REGISTRY[name.lower()] = cls
        return cls

    return decorator


class LLMResponse(BaseModel):
    """Response from an LLM call.

    ``tool_calls`` holds structured calls in the form
    ``{"call_id", "type": "function", "function": {"name", "arguments"}}``.
    """

    content: str | None = None
    usage: dict[str, Any] | None = Field(default_factory=dict)
    tool_calls: list[dict[str, Any]] | None = Field(default_factory=list)
    model: str | None = None
    stop_reason: str | None = None


class LLMProvider(ABC):
    """Base class for LLM providers."""

    default_model: str = ""

    @abstractmethod
    async def generate(
        self,
        messages: list[dict[str, Any]],
        model: str,
        tools: list[dict[str, Any]] | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        **kwargs,
    ) -> LLMResponse:
        """
        Make a chat request to the LLM.

        Args:
            messages: List of message dicts with 'role' and 'content' keys.
                A leading 'system' message carries the system prompt.
            model: Model identifier (e.g., "gpt-4o-mini", "claude-sonnet-4-5")
            tools: Optional list of tool schemas in OpenAI function format
            temperature: Optional temperature parameter
            max_tokens: Optional max tokens parameter
            **kwargs: Provider-specific additional parameters

        Returns:
            LLMResponse with content, usage, tool_calls, model, and stop_reason

        Raises:
            RuntimeError: If the API call fails.
        """
        pass


def get_provider(provider_name: str, **kwargs) -> LLMProvider:
    """
    Get LLM provider instance by name from the registry.

    Providers are imported when requested, so a provider's SDK only needs to
    be installed when that provider is used.

    Args:
        provider_name: Name of the provider ("openai" or "anthropic")
        **kwargs: Provider-specific initialization parameters

    Returns:
        LLMProvider instance

    Raises:
        ValueError: If the provider is not found or not supported
        ImportError: If the provider's SDK is not installed
    """
    provider_name_lower = provider_name.lower()

    provider_class = _PROVIDER_REGISTRY.get(provider_name_lower)
    if provider_class:
        return provider_class(**kwargs)

    module_path = _PROVIDER_MODULES.get(provider_name_lower)
    if not module_path:
        available = ", ".join(sorted(_PROVIDER_MODULES))
        raise ValueError(
            f"Unknown LLM provider: {provider_name}. Supported providers: {available}."
        )

    # Importing the module triggers the @register_provider decorator
    try:
        if provider_name_lower == "openai":
            from . import openai  # noqa: F401
        elif provider_name_lower == "anthropic":
            from . import anthropic  # noqa: F401
    except ImportError as e:
        raise ImportError(
            f"Failed to import {provider_name} provider. "
            f"Install the required SDK with: pip install codeact[{provider_name_lower}]"
        ) from e

    provider_class = _PROVIDER_REGISTRY.get(provider_name_lower)
    if not provider_class:
        raise ValueError(
            f"Provider {provider_name} was imported but not registered. "
            f"This is likely a bug in the provider implementation."
        )

    return provider_class(**kwargs)
