# MedVoice - Multi-Tenant Healthcare Voice AI Backend
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Application Settings

Configuration management using pydantic-settings.
Supports environment variables and .env files.

Provider keys are also read from their conventional unprefixed names
(OPENAI_API_KEY, ANTHROPIC_API_KEY, ELEVENLABS_API_KEY, ...) so existing
deployment environments keep working.
"""

from functools import lru_cache

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Central model constants: change here to update everywhere
DEFAULT_OPENAI_MODEL = "gpt-4"
DEFAULT_ANTHROPIC_MODEL = "claude-3-opus-20240229"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 1000

DEFAULT_ELEVENLABS_VOICE_ID = "21m00Tcm4TlvDq8ikWAM"
DEFAULT_ELEVENLABS_MODEL_ID = "eleven_monolingual_v1"


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


class DatabaseSettings(BaseSettings):
    """Relational database configuration."""

    model_config = SettingsConfigDict(env_prefix="DATABASE_")

    url: str = Field(
        default="postgresql+asyncpg://localhost:5432/medvoice",
        description="Async SQLAlchemy connection URL",
    )
    pool_size: int = Field(default=10, ge=1, le=100)
    max_overflow: int = Field(default=20, ge=0, le=100)
    echo: bool = Field(default=False, description="Echo SQL queries")
    create_tables: bool = Field(
        default=False,
        description="Create tables from ORM metadata on startup (always on for SQLite)",
    )


class LLMSettings(BaseSettings):
    """LLM provider configuration."""

    model_config = SettingsConfigDict(env_prefix="LLM_", populate_by_name=True)

    default_provider: str = Field(default="openai")

    # OpenAI
    openai_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("LLM_OPENAI_API_KEY", "OPENAI_API_KEY"),
    )
    openai_organization_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("LLM_OPENAI_ORGANIZATION_ID", "OPENAI_ORGANIZATION_ID"),
    )
    openai_model: str = Field(default=DEFAULT_OPENAI_MODEL)

    # Anthropic
    anthropic_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("LLM_ANTHROPIC_API_KEY", "ANTHROPIC_API_KEY"),
    )
    anthropic_model: str = Field(default=DEFAULT_ANTHROPIC_MODEL)

    # Canned replies instead of provider calls (demos, local development)
    mock_responses: bool = Field(
        default=False,
        validation_alias=AliasChoices("LLM_MOCK_RESPONSES", "MOCK_AI_RESPONSES"),
    )

    # Limits
    default_temperature: float = Field(default=DEFAULT_TEMPERATURE, ge=0.0, le=2.0)
    default_max_tokens: int = Field(default=DEFAULT_MAX_TOKENS, ge=1)
    request_timeout: int = Field(default=60, description="Seconds")
    max_retries: int = Field(default=2, ge=0, le=10)

    @field_validator("openai_api_key", "openai_organization_id", "anthropic_api_key")
    @classmethod
    def strip_credentials(cls, v: str | None) -> str | None:
        return _blank_to_none(v)


class TTSSettings(BaseSettings):
    """Text-to-speech provider configuration."""

    model_config = SettingsConfigDict(env_prefix="TTS_", populate_by_name=True)

    elevenlabs_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("TTS_ELEVENLABS_API_KEY", "ELEVENLABS_API_KEY"),
    )
    elevenlabs_voice_id: str = Field(
        default=DEFAULT_ELEVENLABS_VOICE_ID,
        validation_alias=AliasChoices("TTS_ELEVENLABS_VOICE_ID", "ELEVENLABS_VOICE_ID"),
    )
    elevenlabs_model_id: str = Field(default=DEFAULT_ELEVENLABS_MODEL_ID)
    elevenlabs_base_url: str = Field(default="https://api.elevenlabs.io/v1")
    request_timeout: float = Field(default=30.0, description="Seconds")

    @field_validator("elevenlabs_api_key")
    @classmethod
    def strip_credentials(cls, v: str | None) -> str | None:
        return _blank_to_none(v)


class SecuritySettings(BaseSettings):
    """Security configuration."""

    model_config = SettingsConfigDict(env_prefix="SECURITY_")

    # JWT
    jwt_secret_key: str | None = Field(default=None, description="Secret key for JWT signing")
    jwt_algorithm: str = Field(default="HS256")
    jwt_access_token_expire_minutes: int = Field(default=60)

    # CORS
    cors_origins: list[str] = Field(default=["http://localhost:3000"])

    @field_validator("jwt_secret_key")
    @classmethod
    def validate_jwt_secret(cls, v: str | None) -> str | None:
        if v is not None and len(v) < 32:
            raise ValueError(
                f"JWT_SECRET_KEY must be at least 32 characters (got {len(v)}). "
                'Generate a secure key with: python -c "import secrets; print(secrets.token_urlsafe(64))"'
            )
        return v


class ObservabilitySettings(BaseSettings):
    """Observability configuration."""

    model_config = SettingsConfigDict(env_prefix="OBSERVABILITY_")

    service_name: str = Field(default="medvoice")
    metrics_namespace: str = Field(default="medvoice")

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")  # json or human


class Settings(BaseSettings):
    """
    Main application settings.

    Usage:
        settings = get_settings()
        print(settings.database.url)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="MedVoice")
    app_version: str = Field(default="1.0.0")
    debug: bool = Field(default=False)
    environment: str = Field(default="development")  # development, staging, production

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=5000)
    workers: int = Field(default=4)

    # Sub-settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    tts: TTSSettings = Field(default_factory=TTSSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_staging(self) -> bool:
        return self.environment == "staging"

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if self.is_production and self.llm.mock_responses:
            raise ValueError(
                "MOCK_AI_RESPONSES cannot be enabled in production environment. "
                "Patients would receive canned replies."
            )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once and cached for the application lifetime.
    """
    return Settings()


# ============================================================
# EXPORTS
# ============================================================

__all__ = [
    "DEFAULT_OPENAI_MODEL",
    "DEFAULT_ANTHROPIC_MODEL",
    "DEFAULT_TEMPERATURE",
    "DEFAULT_MAX_TOKENS",
    "DEFAULT_ELEVENLABS_VOICE_ID",
    "DEFAULT_ELEVENLABS_MODEL_ID",
    "Settings",
    "DatabaseSettings",
    "LLMSettings",
    "TTSSettings",
    "SecuritySettings",
    "ObservabilitySettings",
    "get_settings",
]
