"""
Tests for environment-driven configuration.
"""

import pytest
from pydantic import ValidationError

from medvoice.core.settings import (
    LLMSettings,
    SecuritySettings,
    Settings,
    TTSSettings,
)


class TestLLMSettings:
    def test_bare_provider_key_names_are_accepted(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-from-env")
        monkeypatch.setenv("ANTHROPIC_API_KEY", "ak-from-env")
        settings = LLMSettings()
        assert settings.openai_api_key == "sk-from-env"
        assert settings.anthropic_api_key == "ak-from-env"

    def test_blank_keys_count_as_missing(self):
        settings = LLMSettings(openai_api_key="   ", anthropic_api_key="")
        assert settings.openai_api_key is None
        assert settings.anthropic_api_key is None

    def test_mock_flag_from_legacy_name(self, monkeypatch):
        monkeypatch.delenv("LLM_MOCK_RESPONSES", raising=False)
        monkeypatch.setenv("MOCK_AI_RESPONSES", "true")
        assert LLMSettings().mock_responses is True

    def test_default_models(self):
        settings = LLMSettings()
        assert settings.openai_model == "gpt-4"
        assert settings.anthropic_model == "claude-3-opus-20240229"


class TestTTSSettings:
    def test_elevenlabs_key_from_env(self, monkeypatch):
        monkeypatch.setenv("ELEVENLABS_API_KEY", "xi-env")
        assert TTSSettings().elevenlabs_api_key == "xi-env"

    def test_default_voice(self):
        assert TTSSettings().elevenlabs_voice_id == "21m00Tcm4TlvDq8ikWAM"


class TestSecuritySettings:
    def test_short_jwt_secret_rejected(self):
        with pytest.raises(ValidationError):
            SecuritySettings(jwt_secret_key="too-short")

    def test_long_jwt_secret_accepted(self):
        secret = "x" * 40
        assert SecuritySettings(jwt_secret_key=secret).jwt_secret_key == secret


class TestSettings:
    def test_defaults(self):
        settings = Settings()
        assert settings.app_name == "MedVoice"
        assert settings.port == 5000
        assert settings.environment == "testing"
        assert not settings.is_production

    def test_mock_mode_refused_in_production(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("LLM_MOCK_RESPONSES", "true")
        with pytest.raises(ValueError, match="MOCK_AI_RESPONSES"):
            Settings()

    def test_mock_mode_allowed_outside_production(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "development")
        monkeypatch.setenv("LLM_MOCK_RESPONSES", "true")
        settings = Settings()
        assert settings.is_development
        assert settings.llm.mock_responses is True
