# MedVoice - Multi-Tenant Healthcare Voice AI Backend
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Core building blocks: settings, errors, prompt assembly and LLM providers.
"""

from .exceptions import (
    MedVoiceError,
    ProviderError,
    ProviderNotConfiguredError,
    ResourceNotFoundError,
    TTSError,
    UnsupportedProviderError,
)
from .prompts import AgentConfig, ConversationContext, build_message_history, build_system_prompt
from .settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "MedVoiceError",
    "ProviderError",
    "ProviderNotConfiguredError",
    "UnsupportedProviderError",
    "TTSError",
    "ResourceNotFoundError",
    "AgentConfig",
    "ConversationContext",
    "build_system_prompt",
    "build_message_history",
]
