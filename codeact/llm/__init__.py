"""LLM access for the task loop."""

from .client import LLMClient, LLMRequest, ProviderLLMClient
from .providers import LLMProvider, LLMResponse, get_provider, register_provider

__all__ = [
    "LLMClient",
    "LLMProvider",
    "LLMRequest",
    "LLMResponse",
    "ProviderLLMClient",
    "get_provider",
    "register_provider",
]
