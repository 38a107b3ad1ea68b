# MedVoice - Multi-Tenant Healthcare Voice AI Backend
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
AI Service

Provider-agnostic chat completion for agent conversations:
- Dispatch to OpenAI or Anthropic by name (pooled provider instances)
- Canned replies in mock mode, without touching any provider
- Agent prompt and transcript assembly for conversation turns
- Per-call logging and Prometheus accounting
"""

import logging
import time
from typing import Any

from ..core.exceptions import ProviderError
from ..core.prompts import (
    DEFAULT_MOCK_RESPONSE,
    MOCK_RESPONSES,
    AgentConfig,
    ConversationContext,
    build_message_history,
    build_system_prompt,
    coerce_max_tokens,
    coerce_temperature,
)
from ..core.providers import (
    ANTHROPIC_NAMES,
    OPENAI_NAMES,
    LLMResponse,
    ProviderPool,
    Usage,
)
from ..core.settings import LLMSettings, get_settings
from ..observability.logging import log_llm_request
from ..observability.metrics import get_metrics

logger = logging.getLogger(__name__)

MOCK_MODEL = "mock-model"
MOCK_INPUT_TOKENS = 50
MOCK_OUTPUT_TOKENS = 30


class AIService:
    """
    Entry point for every chat completion the backend makes.

    Usage:
        service = AIService()
        response = await service.process_conversation(
            agent_config=AgentConfig.from_agent(agent),
            conversation_history=conversation.transcript,
            user_message="I need to reschedule",
        )
    """

    def __init__(
        self,
        settings: LLMSettings | None = None,
        pool: ProviderPool | None = None,
    ):
        self.settings = settings or get_settings().llm
        self.pool = pool or ProviderPool(self.settings)

    @property
    def mock_mode(self) -> bool:
        return self.settings.mock_responses

    def default_model(self, provider: str) -> str:
        """Configured model for a provider when neither agent nor caller names one."""
        if (provider or "").lower() in ANTHROPIC_NAMES:
            return self.settings.anthropic_model
        return self.settings.openai_model

    # ============================================================
    # COMPLETION
    # ============================================================

    async def generate_response(
        self,
        messages: list[dict[str, Any]],
        provider: str = "openai",
        model: str | None = None,
        system_prompt: str | None = None,
        temperature: Any = 0.7,
        max_tokens: Any = 1000,
        functions: list[dict[str, Any]] | None = None,
        agent_type: str | None = None,
    ) -> LLMResponse:
        """
        Generate a reply with the named provider.

        Raises:
            UnsupportedProviderError: Unknown provider name
            ProviderNotConfiguredError: Provider API key missing
            ProviderError: Any failure reported by the provider
        """
        if self.mock_mode:
            return self.get_mock_response(agent_type)

        provider = (provider or "openai").lower()
        model = model or self.default_model(provider)
        temperature = coerce_temperature(temperature)
        max_tokens = coerce_max_tokens(max_tokens)

        start = time.perf_counter()
        try:
            chat_provider = self.pool.get_provider(provider, model)
            response = await chat_provider.chat(
                messages,
                system=system_prompt,
                temperature=temperature,
                max_tokens=max_tokens,
                functions=functions or None,
            )
        except ProviderError as e:
            duration = time.perf_counter() - start
            logger.error(f"AI service error ({provider}): {e}")
            log_llm_request(
                provider, model, 0, 0, duration * 1000, success=False, error=str(e), agent_type=agent_type
            )
            metrics = get_metrics()
            metrics.record_provider_request(provider, model, "error", duration)
            metrics.record_provider_error(provider, type(e).__name__)
            raise

        duration = time.perf_counter() - start
        log_llm_request(
            provider,
            response.model or model,
            response.usage.input_tokens,
            response.usage.output_tokens,
            duration * 1000,
            agent_type=agent_type,
        )
        get_metrics().record_provider_request(
            provider,
            model,
            "success",
            duration,
            tokens_input=response.usage.input_tokens,
            tokens_output=response.usage.output_tokens,
        )
        return response

    async def process_conversation(
        self,
        agent_config: AgentConfig,
        conversation_history: list[dict[str, Any]] | None,
        user_message: str | None,
        context: ConversationContext | None = None,
    ) -> LLMResponse:
        """Run one conversation turn for an agent."""
        system_prompt = build_system_prompt(agent_config, context)
        messages = build_message_history(conversation_history, user_message)

        return await self.generate_response(
            messages,
            provider=agent_config.provider,
            model=agent_config.model,
            system_prompt=system_prompt,
            temperature=agent_config.temperature,
            max_tokens=agent_config.max_tokens,
            functions=agent_config.functions,
            agent_type=agent_config.type,
        )

    def get_mock_response(self, agent_type: str | None = None) -> LLMResponse:
        """Canned reply for an agent type."""
        return LLMResponse(
            content=MOCK_RESPONSES.get(agent_type or "", DEFAULT_MOCK_RESPONSE),
            finish_reason="stop",
            usage=Usage(input_tokens=MOCK_INPUT_TOKENS, output_tokens=MOCK_OUTPUT_TOKENS),
            model=MOCK_MODEL,
        )

    # ============================================================
    # STATUS
    # ============================================================

    def is_configured(self, provider: str = "openai") -> bool:
        if self.mock_mode:
            return True

        name = (provider or "").lower()
        if name in OPENAI_NAMES:
            return bool(self.settings.openai_api_key)
        if name in ANTHROPIC_NAMES:
            return bool(self.settings.anthropic_api_key)
        return False

    def available_providers(self) -> list[str]:
        providers = []
        if self.settings.openai_api_key:
            providers.append("openai")
        if self.settings.anthropic_api_key:
            providers.append("anthropic")
        if self.mock_mode:
            providers.append("mock")
        return providers

    def status(self) -> dict[str, Any]:
        """Provider configuration summary (no secrets)."""
        providers = self.available_providers()
        return {
            "configured": len(providers) > 0,
            "providers": providers,
            "openai": {
                "configured": self.is_configured("openai"),
                "hasKey": bool(self.settings.openai_api_key),
                "hasOrgId": bool(self.settings.openai_organization_id),
            },
            "anthropic": {
                "configured": self.is_configured("anthropic"),
                "hasKey": bool(self.settings.anthropic_api_key),
            },
            "mockMode": self.mock_mode,
        }

    async def close(self) -> None:
        await self.pool.close_all()


# ============================================================
# GLOBAL AI SERVICE
# ============================================================

_ai_service: AIService | None = None


def get_ai_service() -> AIService:
    """Get the global AI service."""
    global _ai_service
    if _ai_service is None:
        _ai_service = AIService()
    return _ai_service


async def close_ai_service() -> None:
    global _ai_service
    if _ai_service is not None:
        await _ai_service.close()
    _ai_service = None


__all__ = [
    "AIService",
    "MOCK_MODEL",
    "get_ai_service",
    "close_ai_service",
]
