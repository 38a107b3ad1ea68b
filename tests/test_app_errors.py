"""
Tests for the domain error to HTTP status mapping.
"""

import pytest

from medvoice.core.exceptions import (
    MedVoiceError,
    ProviderConnectionError,
    ProviderNotConfiguredError,
    ResourceNotFoundError,
    TTSError,
    TTSNotConfiguredError,
    TTSNotImplementedError,
    UnsupportedProviderError,
    UnsupportedTTSProviderError,
)
from medvoice.gateway.app import status_code_for


class TestStatusCodeFor:
    @pytest.mark.parametrize(
        "error,expected",
        [
            (ResourceNotFoundError("conversation", "c1"), 404),
            (ProviderNotConfiguredError("no key", provider="openai"), 400),
            (UnsupportedProviderError("gemini"), 400),
            (TTSNotConfiguredError("no key", provider="elevenlabs"), 400),
            (UnsupportedTTSProviderError("espeak"), 400),
            (ProviderConnectionError("down", provider="openai"), 502),
            (TTSError("ElevenLabs API error: 500", provider="elevenlabs"), 502),
            (TTSNotImplementedError("Google TTS not yet implemented", provider="google"), 502),
            (MedVoiceError("unexpected"), 500),
        ],
    )
    def test_mapping(self, error, expected):
        assert status_code_for(error) == expected
