"""
Tests for the SDK-backed chat providers and the provider pool.

The SDK clients are replaced with AsyncMock objects so nothing leaves the process.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import anthropic
import httpx
import openai
import pytest

from medvoice.core.exceptions import (
    ProviderAuthenticationError,
    ProviderConnectionError,
    ProviderNotConfiguredError,
    ProviderRateLimitError,
    ProviderResponseError,
    UnsupportedProviderError,
)
from medvoice.core.providers import (
    AnthropicChatProvider,
    OpenAIChatProvider,
    ProviderPool,
    create_provider,
)

from conftest import make_llm_settings


def _make_mock_openai_client(response=None, error=None):
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=response, side_effect=error)
    client.close = AsyncMock()
    return client


def _make_openai_response(content="Hello there", tool_calls=None, usage=(20, 5)):
    message = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(
        choices=[SimpleNamespace(message=message, finish_reason="stop")],
        usage=SimpleNamespace(prompt_tokens=usage[0], completion_tokens=usage[1]) if usage else None,
        model="gpt-4-0613",
    )


def _make_mock_anthropic_client(response=None, error=None):
    client = MagicMock()
    client.messages.create = AsyncMock(return_value=response, side_effect=error)
    client.close = AsyncMock()
    return client


class TestOpenAIChatProvider:
    @pytest.mark.asyncio
    async def test_system_prompt_leads_message_list(self):
        provider = OpenAIChatProvider(api_key="sk-test", model="gpt-4")
        client = _make_mock_openai_client(_make_openai_response())
        provider._client = client

        result = await provider.chat(
            [{"role": "user", "content": "Hi"}],
            system="Be kind.",
            temperature=0.2,
            max_tokens=50,
        )

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["messages"] == [
            {"role": "system", "content": "Be kind."},
            {"role": "user", "content": "Hi"},
        ]
        assert kwargs["temperature"] == 0.2
        assert kwargs["max_tokens"] == 50
        assert "tools" not in kwargs

        assert result.content == "Hello there"
        assert result.usage.input_tokens == 20
        assert result.usage.output_tokens == 5
        assert result.usage.total_tokens == 25
        assert result.model == "gpt-4-0613"

    @pytest.mark.asyncio
    async def test_functions_sent_as_tools(self):
        provider = OpenAIChatProvider(api_key="sk-test")
        tool_call = SimpleNamespace(
            function=SimpleNamespace(name="book_appointment", arguments='{"day": "tue"}')
        )
        client = _make_mock_openai_client(
            _make_openai_response(content=None, tool_calls=[tool_call])
        )
        provider._client = client

        functions = [{"name": "book_appointment", "parameters": {"type": "object"}}]
        result = await provider.chat([{"role": "user", "content": "Book me"}], functions=functions)

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["tool_choice"] == "auto"
        assert kwargs["tools"][0]["function"]["name"] == "book_appointment"
        assert result.content == ""
        assert result.function_call == {"name": "book_appointment", "arguments": '{"day": "tue"}'}

    @pytest.mark.asyncio
    async def test_missing_usage_is_zero(self):
        provider = OpenAIChatProvider(api_key="sk-test")
        provider._client = _make_mock_openai_client(_make_openai_response(usage=None))
        result = await provider.chat([{"role": "user", "content": "Hi"}])
        assert result.usage.to_dict() == {"input_tokens": 0, "output_tokens": 0, "total_tokens": 0}

    @pytest.mark.asyncio
    async def test_empty_choices_is_response_error(self):
        provider = OpenAIChatProvider(api_key="sk-test")
        provider._client = _make_mock_openai_client(
            SimpleNamespace(choices=[], usage=None, model="gpt-4")
        )
        with pytest.raises(ProviderResponseError):
            await provider.chat([{"role": "user", "content": "Hi"}])

    @pytest.mark.asyncio
    async def test_authentication_error_is_mapped(self):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        error = openai.AuthenticationError(
            "bad key", response=httpx.Response(401, request=request), body=None
        )
        provider = OpenAIChatProvider(api_key="sk-bad")
        provider._client = _make_mock_openai_client(error=error)

        with pytest.raises(ProviderAuthenticationError) as exc_info:
            await provider.chat([{"role": "user", "content": "Hi"}])
        assert exc_info.value.provider == "openai"

    @pytest.mark.asyncio
    async def test_close_releases_client(self):
        provider = OpenAIChatProvider(api_key="sk-test")
        client = _make_mock_openai_client(_make_openai_response())
        provider._client = client
        await provider.close()
        client.close.assert_awaited_once()
        assert provider._client is None


class TestAnthropicChatProvider:
    @pytest.mark.asyncio
    async def test_system_is_separate_and_roles_collapse(self):
        response = SimpleNamespace(
            content=[
                SimpleNamespace(type="text", text="Of course. "),
                SimpleNamespace(type="tool_use", name="noop"),
                SimpleNamespace(type="text", text="Which day?"),
            ],
            stop_reason="end_turn",
            usage=SimpleNamespace(input_tokens=30, output_tokens=7),
            model="claude-3-opus-20240229",
        )
        provider = AnthropicChatProvider(api_key="ak-test")
        client = _make_mock_anthropic_client(response)
        provider._client = client

        result = await provider.chat(
            [
                {"role": "system", "content": "ignored role"},
                {"role": "assistant", "content": "Hello!"},
                {"role": "user", "content": "I need an appointment"},
            ],
            system="Clinic assistant.",
            temperature=0,
        )

        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["system"] == "Clinic assistant."
        assert kwargs["temperature"] == 0
        assert [m["role"] for m in kwargs["messages"]] == ["user", "assistant", "user"]

        assert result.content == "Of course. Which day?"
        assert result.finish_reason == "end_turn"
        assert result.usage.total_tokens == 37


def _sdk_error(sdk, kind, url):
    """Build the SDK exception a failed completion call raises."""
    request = httpx.Request("POST", url)
    if kind == "auth":
        return sdk.AuthenticationError("bad key", response=httpx.Response(401, request=request), body=None)
    if kind == "rate_limit":
        return sdk.RateLimitError("slow down", response=httpx.Response(429, request=request), body=None)
    if kind == "connection":
        return sdk.APIConnectionError(request=request)
    return sdk.APIStatusError("overloaded", response=httpx.Response(503, request=request), body=None)


ERROR_CASES = [
    ("auth", ProviderAuthenticationError),
    ("rate_limit", ProviderRateLimitError),
    ("connection", ProviderConnectionError),
    ("status", ProviderResponseError),
]


class TestErrorTranslation:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("kind,expected", ERROR_CASES)
    async def test_openai_errors(self, kind, expected):
        error = _sdk_error(openai, kind, "https://api.openai.com/v1/chat/completions")
        provider = OpenAIChatProvider(api_key="sk-test")
        provider._client = _make_mock_openai_client(error=error)

        with pytest.raises(expected) as exc_info:
            await provider.chat([{"role": "user", "content": "Hi"}])

        assert exc_info.value.provider == "openai"
        assert exc_info.value.__cause__ is error

    @pytest.mark.asyncio
    @pytest.mark.parametrize("kind,expected", ERROR_CASES)
    async def test_anthropic_errors(self, kind, expected):
        error = _sdk_error(anthropic, kind, "https://api.anthropic.com/v1/messages")
        provider = AnthropicChatProvider(api_key="ak-test")
        provider._client = _make_mock_anthropic_client(error=error)

        with pytest.raises(expected) as exc_info:
            await provider.chat([{"role": "user", "content": "Hi"}])

        assert exc_info.value.provider == "anthropic"
        assert exc_info.value.__cause__ is error

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "sdk,provider_cls,make_client,label",
        [
            (openai, OpenAIChatProvider, _make_mock_openai_client, "OpenAI"),
            (anthropic, AnthropicChatProvider, _make_mock_anthropic_client, "Anthropic"),
        ],
    )
    async def test_status_error_keeps_status_code(self, sdk, provider_cls, make_client, label):
        provider = provider_cls(api_key="key-test")
        provider._client = make_client(error=_sdk_error(sdk, "status", "https://llm.example/v1"))

        with pytest.raises(ProviderResponseError) as exc_info:
            await provider.chat([{"role": "user", "content": "Hi"}])

        assert exc_info.value.message == f"{label} API error: overloaded"
        assert exc_info.value.details["status_code"] == 503


class TestCreateProvider:
    def test_openai_aliases(self):
        settings = make_llm_settings()
        provider = create_provider("GPT", settings=settings)
        assert isinstance(provider, OpenAIChatProvider)
        assert provider.model_name == "gpt-4"

    def test_claude_alias(self):
        settings = make_llm_settings(anthropic_api_key="ak-test")
        provider = create_provider("claude", model="claude-3-haiku-20240307", settings=settings)
        assert isinstance(provider, AnthropicChatProvider)
        assert provider.model_name == "claude-3-haiku-20240307"

    def test_missing_key(self):
        with pytest.raises(ProviderNotConfiguredError):
            create_provider("anthropic", settings=make_llm_settings())

    def test_unknown_provider(self):
        with pytest.raises(UnsupportedProviderError, match="Unsupported provider: gemini"):
            create_provider("gemini", settings=make_llm_settings())


class TestProviderPool:
    def test_reuses_instance_per_provider_and_model(self):
        pool = ProviderPool(make_llm_settings(anthropic_api_key="ak-test"))

        first = pool.get_provider("openai")
        assert pool.get_provider("gpt", "gpt-4") is first
        assert pool.get_provider("openai", "gpt-4o") is not first
        assert pool.get_provider("claude") is pool.get_provider("anthropic")
        assert len(pool) == 3

    @pytest.mark.asyncio
    async def test_close_all_empties_pool(self):
        pool = ProviderPool(make_llm_settings())
        provider = pool.get_provider("openai")
        client = _make_mock_openai_client()
        provider._client = client

        await pool.close_all()

        client.close.assert_awaited_once()
        assert len(pool) == 0
