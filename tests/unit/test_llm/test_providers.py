"""Unit tests for the LLM provider registry and providers."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from codeact.errors import ConfigurationError
from codeact.llm.providers.base import (
    _PROVIDER_REGISTRY,
    LLMProvider,
    LLMResponse,
    get_provider,
    register_provider,
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "LLM_API_KEY",
        "LLM_BASE_URL",
        "LLM_MODEL",
        "OPENAI_API_KEY",
        "OPENAI_BASE_URL",
        "ANTHROPIC_API_KEY",
        "ANTHROPIC_MODEL",
    ):
        monkeypatch.delenv(name, raising=False)


class TestLLMResponse:
    """Tests for LLMResponse model."""

    def test_defaults(self):
        """Test LLMResponse with default values."""
        response = LLMResponse()
        assert response.content is None
        assert response.usage == {}
        assert response.tool_calls == []


class TestRegistry:
    """Tests for register_provider and get_provider."""

    def test_register_and_get(self):
        """A registered provider is returned by name."""

        @register_provider("Scripted-Test")
        class ScriptedProvider(LLMProvider):
            async def generate(self, messages, model, tools=None, **kwargs):
                return LLMResponse(content="ok")

        try:
            assert isinstance(get_provider("scripted-test"), ScriptedProvider)
        finally:
            _PROVIDER_REGISTRY.pop("scripted-test", None)

    def test_unknown_provider(self):
        """Unknown names raise ValueError listing the supported providers."""
        with pytest.raises(ValueError, match="Supported providers: anthropic, openai"):
            get_provider("nonexistent")


class TestOpenAIProvider:
    """Tests for the OpenAI provider."""

    def test_missing_key_is_configuration_error(self, clean_env):
        """Construction without a key fails."""
        with pytest.raises(ConfigurationError, match="API key"):
            get_provider("openai")

    def test_reads_environment(self, clean_env, monkeypatch):
        """Key, base URL and model come from the LLM_* variables."""
        monkeypatch.setenv("LLM_API_KEY", "sk-test")
        monkeypatch.setenv("LLM_BASE_URL", "http://localhost:8000/v1")
        monkeypatch.setenv("LLM_MODEL", "local-model")

        provider = get_provider("openai")

        assert provider.api_key == "sk-test"
        assert provider.base_url == "http://localhost:8000/v1"
        assert provider.default_model == "local-model"

    def test_falls_back_to_openai_variables(self, clean_env, monkeypatch):
        """OPENAI_API_KEY works and the model defaults to gpt-4o-mini."""
        monkeypatch.setenv("OPENAI_API_KEY", "sk-openai")
        provider = get_provider("openai")
        assert provider.api_key == "sk-openai"
        assert provider.default_model == "gpt-4o-mini"

    @pytest.mark.asyncio
    async def test_generate_extracts_content_tool_calls_and_usage(self, clean_env):
        """The chat completion is turned into an LLMResponse."""
        provider = get_provider("openai", api_key="sk-test")
        tool_call = SimpleNamespace(
            id="call_1",
            function=SimpleNamespace(name="bash", arguments='{"code": "ls"}'),
        )
        completion = SimpleNamespace(
            choices=[
                SimpleNamespace(
                    message=SimpleNamespace(content="Listing.", tool_calls=[tool_call]),
                    finish_reason="tool_calls",
                )
            ],
            usage=SimpleNamespace(prompt_tokens=10, completion_tokens=5, total_tokens=15),
            model="gpt-4o-mini-2024",
        )
        provider.client = MagicMock()
        provider.client.chat.completions.create = AsyncMock(return_value=completion)

        response = await provider.generate(
            [{"role": "system", "content": "sys"}, {"role": "user", "content": "hi"}],
            model="gpt-4o-mini",
            tools=[{"type": "function", "function": {"name": "bash"}}],
            temperature=0.2,
        )

        assert response.content == "Listing."
        assert response.tool_calls == [
            {
                "call_id": "call_1",
                "type": "function",
                "function": {"name": "bash", "arguments": '{"code": "ls"}'},
            }
        ]
        assert response.usage == {"input_tokens": 10, "output_tokens": 5, "total_tokens": 15}
        assert response.model == "gpt-4o-mini-2024"
        assert response.stop_reason == "tool_calls"
        kwargs = provider.client.chat.completions.create.call_args.kwargs
        assert kwargs["temperature"] == 0.2
        assert kwargs["messages"][0] == {"role": "system", "content": "sys"}

    @pytest.mark.asyncio
    async def test_generate_wraps_errors(self, clean_env):
        """SDK errors become RuntimeError."""
        provider = get_provider("openai", api_key="sk-test")
        provider.client = MagicMock()
        provider.client.chat.completions.create = AsyncMock(side_effect=Exception("rate limited"))

        with pytest.raises(RuntimeError, match="rate limited"):
            await provider.generate([{"role": "user", "content": "hi"}], model="gpt-4o-mini")


class TestAnthropicProvider:
    """Tests for the Anthropic provider."""

    def test_missing_key_is_configuration_error(self, clean_env):
        """Construction without a key fails."""
        with pytest.raises(ConfigurationError, match="ANTHROPIC_API_KEY"):
            get_provider("anthropic")

    @pytest.mark.asyncio
    async def test_generate_moves_system_prompt_and_converts_tools(self, clean_env):
        """System messages become the system parameter; tools use input_schema."""
        provider = get_provider("anthropic", api_key="sk-ant")
        message = SimpleNamespace(
            content=[
                SimpleNamespace(type="text", text="Running."),
                SimpleNamespace(type="tool_use", id="tu_1", name="bash", input={"code": "ls"}),
            ],
            usage=SimpleNamespace(input_tokens=7, output_tokens=3),
            model="claude-test",
            stop_reason="tool_use",
        )
        provider.client = MagicMock()
        provider.client.messages.create = AsyncMock(return_value=message)

        response = await provider.generate(
            [{"role": "system", "content": "sys"}, {"role": "user", "content": "hi"}],
            model="claude-test",
            tools=[
                {
                    "type": "function",
                    "function": {
                        "name": "bash",
                        "description": "Run bash",
                        "parameters": {"type": "object", "properties": {}},
                    },
                }
            ],
        )

        kwargs = provider.client.messages.create.call_args.kwargs
        assert kwargs["system"] == "sys"
        assert kwargs["messages"] == [{"role": "user", "content": "hi"}]
        assert kwargs["max_tokens"] == 4096
        assert kwargs["tools"] == [
            {
                "name": "bash",
                "description": "Run bash",
                "input_schema": {"type": "object", "properties": {}},
            }
        ]
        assert response.content == "Running."
        assert response.tool_calls[0]["function"] == {
            "name": "bash",
            "arguments": '{"code": "ls"}',
        }
        assert response.usage["total_tokens"] == 10
