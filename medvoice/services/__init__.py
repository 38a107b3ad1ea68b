# MedVoice - Multi-Tenant Healthcare Voice AI Backend
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""Application services: AI dispatch, text-to-speech and conversations."""

from .ai_service import AIService, close_ai_service, get_ai_service
from .conversations import ConversationService
from .tts_service import SynthesisResult, TTSConfig, TTSService, close_tts_service, get_tts_service

__all__ = [
    "AIService",
    "get_ai_service",
    "close_ai_service",
    "ConversationService",
    "TTSConfig",
    "TTSService",
    "SynthesisResult",
    "get_tts_service",
    "close_tts_service",
]
