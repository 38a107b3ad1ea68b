# MedVoice - Multi-Tenant Healthcare Voice AI Backend
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Agent prompt assembly.

Turns a stored agent configuration plus conversation context into the
system prompt and message list handed to a chat provider.
"""

import json
import math
from dataclasses import dataclass
from typing import Any

from .settings import DEFAULT_MAX_TOKENS, DEFAULT_TEMPERATURE

DEFAULT_SYSTEM_PROMPT = "You are a helpful AI assistant."
DEFAULT_GREETING = "Hello! How can I help you today?"
DEFAULT_FALLBACK_MESSAGE = (
    "I apologize, but I'm experiencing technical difficulties. "
    "Please try again or contact support."
)
DEFAULT_MOCK_RESPONSE = "I understand. How can I help you today?"

# Role prompts prepended to the agent's own system prompt
AGENT_TYPE_PROMPTS: dict[str, str] = {
    "front_desk": (
        "You are a professional front desk assistant for a medical practice. "
        "Help patients with appointment scheduling, general inquiries, and routing "
        "calls appropriately."
    ),
    "medical_assistant": (
        "You are a medical assistant AI. Provide helpful information about "
        "appointments, medications, and general health questions. Always remind "
        "patients to consult with their healthcare provider for medical advice."
    ),
    "triage_nurse": (
        "You are a triage nurse AI assistant. Help assess patient needs and determine "
        "urgency. For medical emergencies, immediately direct patients to call 911 or "
        "go to the emergency room."
    ),
    "billing_specialist": (
        "You are a billing specialist AI assistant. Help patients understand their "
        "bills, payment options, insurance questions, and payment arrangements."
    ),
    "collections_specialist": (
        "You are a collections specialist AI assistant. Help patients resolve "
        "outstanding balances with empathy and professionalism."
    ),
}

# Canned replies used when mock mode is on
MOCK_RESPONSES: dict[str, str] = {
    "front_desk": (
        "Thank you for calling. I can help you schedule an appointment. "
        "What date and time works best for you?"
    ),
    "medical_assistant": (
        "I understand your concern. For medical advice, please consult with your "
        "healthcare provider. I can help with appointment scheduling or general questions."
    ),
    "triage_nurse": (
        "I understand you need medical assistance. Can you tell me more about your "
        "symptoms so I can help determine the appropriate level of care?"
    ),
    "billing_specialist": (
        "I can help you with billing questions. Would you like to discuss your account "
        "balance, payment options, or insurance coverage?"
    ),
    "collections_specialist": (
        "I'm here to help resolve your account balance. Let's work together to find a "
        "payment solution that works for you."
    ),
}


def coerce_temperature(value: Any, default: float = DEFAULT_TEMPERATURE) -> float:
    """Parse a temperature that may arrive as str/Decimal/None."""
    if value is None or value == "":
        return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(result):
        return default
    return result


def coerce_max_tokens(value: Any, default: int = DEFAULT_MAX_TOKENS) -> int:
    """Parse a token limit that may arrive as str/float/None."""
    if value is None or value == "":
        return default
    try:
        result = int(float(value)) if isinstance(value, str) else int(value)
    except (TypeError, ValueError, OverflowError):
        return default
    return result if result > 0 else default


@dataclass
class AgentConfig:
    """Snapshot of an agent's conversation settings."""

    provider: str = "openai"
    model: str | None = None
    system_prompt: str | None = None
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    type: str | None = None
    functions: list[dict[str, Any]] | None = None

    def __post_init__(self):
        self.provider = (self.provider or "openai").lower()
        self.temperature = coerce_temperature(self.temperature)
        self.max_tokens = coerce_max_tokens(self.max_tokens)

    @classmethod
    def from_agent(cls, agent) -> "AgentConfig":
        """Build from an AgentModel row."""
        return cls(
            provider=agent.provider or "openai",
            model=agent.model,
            system_prompt=agent.system_prompt,
            temperature=agent.temperature,
            max_tokens=agent.max_tokens,
            type=agent.type,
            functions=agent.functions or None,
        )


@dataclass
class ConversationContext:
    """Per-conversation facts folded into the system prompt."""

    patient_name: str | None = None
    patient_phone: str | None = None
    business_hours: dict[str, Any] | None = None


def build_system_prompt(
    agent_config: AgentConfig,
    context: ConversationContext | None = None,
) -> str:
    """
    Build the system prompt for an agent.

    The agent type's role prompt (if any) comes first, then the agent's own
    prompt, then patient and business-hours context.
    """
    context = context or ConversationContext()
    prompt = agent_config.system_prompt or DEFAULT_SYSTEM_PROMPT

    type_prompt = AGENT_TYPE_PROMPTS.get(agent_config.type or "")
    if type_prompt:
        prompt = f"{type_prompt}\n\n{prompt}"

    if context.patient_name:
        prompt += f"\n\nCurrent patient: {context.patient_name}"
    if context.business_hours:
        hours = json.dumps(context.business_hours, separators=(",", ":"))
        prompt += f"\n\nBusiness hours: {hours}"

    return prompt


def build_message_history(
    conversation_history: list[dict[str, Any]] | None,
    user_message: str | None = None,
) -> list[dict[str, str]]:
    """Flatten stored transcript turns into provider chat messages."""
    messages: list[dict[str, str]] = []

    if isinstance(conversation_history, list):
        for turn in conversation_history:
            if not isinstance(turn, dict):
                continue
            messages.append(
                {
                    "role": turn.get("role") or "user",
                    "content": turn.get("content") or turn.get("text") or "",
                }
            )

    if user_message:
        messages.append({"role": "user", "content": user_message})

    return messages


__all__ = [
    "DEFAULT_SYSTEM_PROMPT",
    "DEFAULT_GREETING",
    "DEFAULT_FALLBACK_MESSAGE",
    "DEFAULT_MOCK_RESPONSE",
    "AGENT_TYPE_PROMPTS",
    "MOCK_RESPONSES",
    "AgentConfig",
    "ConversationContext",
    "build_system_prompt",
    "build_message_history",
    "coerce_temperature",
    "coerce_max_tokens",
]
