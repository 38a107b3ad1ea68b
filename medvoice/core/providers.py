# MedVoice - Multi-Tenant Healthcare Voice AI Backend
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Async LLM Providers (Official SDK Implementation)

Chat-completion adapters using official SDKs:
- openai.AsyncOpenAI for GPT
- anthropic.AsyncAnthropic for Claude

Both return the same provider-agnostic LLMResponse so the conversation
pipeline never branches on provider.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import anthropic
import openai

from .exceptions import (
    ProviderAuthenticationError,
    ProviderConnectionError,
    ProviderNotConfiguredError,
    ProviderRateLimitError,
    ProviderResponseError,
    UnsupportedProviderError,
)
from .settings import LLMSettings, get_settings

logger = logging.getLogger(__name__)

OPENAI_NAMES = ("openai", "gpt")
ANTHROPIC_NAMES = ("anthropic", "claude")


# ============================================================
# DATA MODELS
# ============================================================


@dataclass
class Usage:
    """Token usage statistics from provider response."""

    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    def to_dict(self) -> dict[str, int]:
        return {
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "total_tokens": self.total_tokens,
        }


@dataclass
class LLMResponse:
    """Response from an LLM provider."""

    content: str = ""
    function_call: dict[str, Any] | None = None
    finish_reason: str | None = None
    usage: Usage = field(default_factory=Usage)
    model: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": self.content,
            "functionCall": self.function_call,
            "finishReason": self.finish_reason,
            "usage": self.usage.to_dict(),
            "model": self.model,
        }


# ============================================================
# ABSTRACT PROVIDER
# ============================================================


class ChatProvider(ABC):
    """Abstract base for async chat-completion providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier."""
        pass

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Current model name."""
        pass

    @abstractmethod
    async def chat(
        self,
        messages: list[dict[str, Any]],
        system: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 1000,
        functions: list[dict[str, Any]] | None = None,
    ) -> LLMResponse:
        """Async chat completion."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close provider resources."""
        pass


# ============================================================
# OPENAI PROVIDER
# ============================================================


class OpenAIChatProvider(ChatProvider):
    """
    OpenAI GPT provider using the official async SDK.

    Usage:
        provider = OpenAIChatProvider(api_key="sk-...", model="gpt-4")
        response = await provider.chat([{"role": "user", "content": "Hello"}])
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4",
        organization: str | None = None,
        timeout: float = 60.0,
        max_retries: int = 2,
    ):
        self.model = model
        self.timeout = timeout
        self._api_key = api_key
        self._organization = organization
        self._max_retries = max_retries
        self._client: openai.AsyncOpenAI | None = None

    @property
    def name(self) -> str:
        return "openai"

    @property
    def model_name(self) -> str:
        return self.model

    def _get_client(self) -> openai.AsyncOpenAI:
        """Lazy client initialization."""
        if self._client is None:
            self._client = openai.AsyncOpenAI(
                api_key=self._api_key,
                organization=self._organization,
                timeout=self.timeout,
                max_retries=self._max_retries,
            )
        return self._client

    async def close(self) -> None:
        """Close the async client."""
        if self._client is not None:
            await self._client.close()
            self._client = None

    async def chat(
        self,
        messages: list[dict[str, Any]],
        system: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 1000,
        functions: list[dict[str, Any]] | None = None,
    ) -> LLMResponse:
        """Async chat completion with GPT."""
        client = self._get_client()

        openai_messages: list[dict[str, Any]] = []
        if system:
            openai_messages.append({"role": "system", "content": system})
        openai_messages.extend(
            {"role": msg.get("role", "user"), "content": str(msg.get("content", ""))}
            for msg in messages
        )

        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": openai_messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        if functions:
            kwargs["tools"] = self._convert_functions(functions)
            kwargs["tool_choice"] = "auto"

        try:
            response = await client.chat.completions.create(**kwargs)
        except openai.AuthenticationError as e:
            raise ProviderAuthenticationError(
                f"OpenAI authentication failed: {e}", provider=self.name
            ) from e
        except openai.RateLimitError as e:
            raise ProviderRateLimitError(
                f"OpenAI rate limit exceeded: {e}", provider=self.name
            ) from e
        except openai.APIConnectionError as e:
            raise ProviderConnectionError(
                f"Failed to connect to OpenAI: {e}", provider=self.name
            ) from e
        except openai.APIStatusError as e:
            raise ProviderResponseError(
                f"OpenAI API error: {e.message}", provider=self.name, status_code=e.status_code
            ) from e

        return self._parse_response(response)

    def _convert_functions(self, functions: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Convert agent function definitions to OpenAI tool format."""
        return [
            {
                "type": "function",
                "function": {
                    "name": fn["name"],
                    "description": fn.get("description", ""),
                    "parameters": fn.get("parameters", fn.get("input_schema", {})),
                },
            }
            for fn in functions
        ]

    def _parse_response(self, response) -> LLMResponse:
        """Parse OpenAI response."""
        if not response.choices:
            raise ProviderResponseError("OpenAI returned no choices", provider=self.name)

        choice = response.choices[0]
        message = choice.message

        function_call = None
        if message.tool_calls:
            tc = message.tool_calls[0]
            function_call = {"name": tc.function.name, "arguments": tc.function.arguments}

        usage = Usage()
        if response.usage is not None:
            usage = Usage(
                input_tokens=response.usage.prompt_tokens,
                output_tokens=response.usage.completion_tokens,
            )

        return LLMResponse(
            content=message.content or "",
            function_call=function_call,
            finish_reason=choice.finish_reason,
            usage=usage,
            model=response.model,
        )


# ============================================================
# ANTHROPIC PROVIDER
# ============================================================


class AnthropicChatProvider(ChatProvider):
    """
    Anthropic Claude provider using the official async SDK.

    Claude takes the system prompt as a separate parameter and only
    accepts user/assistant turns.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "claude-3-opus-20240229",
        timeout: float = 60.0,
        max_retries: int = 2,
    ):
        self.model = model
        self.timeout = timeout
        self._api_key = api_key
        self._max_retries = max_retries
        self._client: anthropic.AsyncAnthropic | None = None

    @property
    def name(self) -> str:
        return "anthropic"

    @property
    def model_name(self) -> str:
        return self.model

    def _get_client(self) -> anthropic.AsyncAnthropic:
        """Lazy client initialization."""
        if self._client is None:
            self._client = anthropic.AsyncAnthropic(
                api_key=self._api_key,
                timeout=self.timeout,
                max_retries=self._max_retries,
            )
        return self._client

    async def close(self) -> None:
        """Close the async client."""
        if self._client is not None:
            await self._client.close()
            self._client = None

    async def chat(
        self,
        messages: list[dict[str, Any]],
        system: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 1000,
        functions: list[dict[str, Any]] | None = None,
    ) -> LLMResponse:
        """
        Async chat completion with Claude.

        Agent functions are not forwarded; the agents that carry them are
        configured for OpenAI.
        """
        client = self._get_client()

        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "system": system or "",
            "messages": self._convert_messages(messages),
        }

        try:
            response = await client.messages.create(**kwargs)
        except anthropic.AuthenticationError as e:
            raise ProviderAuthenticationError(
                f"Anthropic authentication failed: {e}", provider=self.name
            ) from e
        except anthropic.RateLimitError as e:
            raise ProviderRateLimitError(
                f"Anthropic rate limit exceeded: {e}", provider=self.name
            ) from e
        except anthropic.APIConnectionError as e:
            raise ProviderConnectionError(
                f"Failed to connect to Anthropic: {e}", provider=self.name
            ) from e
        except anthropic.APIStatusError as e:
            raise ProviderResponseError(
                f"Anthropic API error: {e.message}", provider=self.name, status_code=e.status_code
            ) from e

        return self._parse_response(response)

    def _convert_messages(self, messages: list[dict[str, Any]]) -> list[dict[str, str]]:
        """Map every non-assistant role onto user."""
        return [
            {
                "role": "assistant" if msg.get("role") == "assistant" else "user",
                "content": str(msg.get("content", "")),
            }
            for msg in messages
        ]

    def _parse_response(self, response) -> LLMResponse:
        """Parse Anthropic response to internal format."""
        text_parts = [block.text for block in response.content if block.type == "text"]

        return LLMResponse(
            content="".join(text_parts),
            finish_reason=response.stop_reason,
            usage=Usage(
                input_tokens=response.usage.input_tokens,
                output_tokens=response.usage.output_tokens,
            ),
            model=response.model,
        )


# ============================================================
# PROVIDER FACTORY
# ============================================================


def create_provider(
    provider_name: str,
    model: str | None = None,
    settings: LLMSettings | None = None,
) -> ChatProvider:
    """
    Create a chat provider by name.

    Args:
        provider_name: Provider name (openai, anthropic, claude)
        model: Model override; defaults per provider
        settings: Optional LLM settings

    Raises:
        UnsupportedProviderError: Unknown provider name
        ProviderNotConfiguredError: Provider API key missing
    """
    if settings is None:
        settings = get_settings().llm

    name_lower = provider_name.lower()

    if name_lower in OPENAI_NAMES:
        if not settings.openai_api_key:
            raise ProviderNotConfiguredError(
                "OpenAI API key not configured", provider="openai"
            )
        return OpenAIChatProvider(
            api_key=settings.openai_api_key,
            model=model or settings.openai_model,
            organization=settings.openai_organization_id,
            timeout=float(settings.request_timeout),
            max_retries=settings.max_retries,
        )

    if name_lower in ANTHROPIC_NAMES:
        if not settings.anthropic_api_key:
            raise ProviderNotConfiguredError(
                "Anthropic API key not configured", provider="anthropic"
            )
        return AnthropicChatProvider(
            api_key=settings.anthropic_api_key,
            model=model or settings.anthropic_model,
            timeout=float(settings.request_timeout),
            max_retries=settings.max_retries,
        )

    raise UnsupportedProviderError(provider_name)


# ============================================================
# PROVIDER POOL (Connection Reuse)
# ============================================================


class ProviderPool:
    """
    Pool of providers for connection reuse.

    Maintains a single provider instance per (provider_name, model) tuple
    to reuse HTTP connections across requests.
    """

    def __init__(self, settings: LLMSettings | None = None):
        self.settings = settings or get_settings().llm
        self._providers: dict[str, ChatProvider] = {}

    def get_provider(self, provider_name: str, model: str | None = None) -> ChatProvider:
        """Get or create a provider instance."""
        name_lower = provider_name.lower()
        if name_lower in ANTHROPIC_NAMES:
            name_lower = "anthropic"
        elif name_lower in OPENAI_NAMES:
            name_lower = "openai"

        if model is None:
            model = (
                self.settings.anthropic_model
                if name_lower == "anthropic"
                else self.settings.openai_model
            )
        key = f"{name_lower}:{model}"

        if key not in self._providers:
            self._providers[key] = create_provider(name_lower, model, self.settings)
            logger.debug(f"Created provider {key}")

        return self._providers[key]

    def __len__(self) -> int:
        return len(self._providers)

    async def close_all(self) -> None:
        """Close all providers."""
        for provider in self._providers.values():
            await provider.close()
        self._providers.clear()


__all__ = [
    "Usage",
    "LLMResponse",
    "ChatProvider",
    "OpenAIChatProvider",
    "AnthropicChatProvider",
    "create_provider",
    "ProviderPool",
]
