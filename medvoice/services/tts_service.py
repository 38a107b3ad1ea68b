# MedVoice - Multi-Tenant Healthcare Voice AI Backend
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Text-to-Speech Service

Synthesizes agent replies to audio:
- ElevenLabs over httpx (base64 MP3 output)
- Google, AWS Polly and Azure are recognised but not implemented
- Voice catalogue lookup for ElevenLabs
"""

import base64
import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from ..core.exceptions import (
    TTSError,
    TTSNotConfiguredError,
    TTSNotImplementedError,
    UnsupportedTTSProviderError,
)
from ..core.settings import TTSSettings, get_settings
from ..observability.metrics import get_metrics

logger = logging.getLogger(__name__)

AUDIO_FORMAT = "audio/mpeg"

# ElevenLabs voice_settings defaults; each may be overridden through TTSConfig.config
ELEVENLABS_VOICE_DEFAULTS: dict[str, Any] = {
    "stability": 0.5,
    "similarity_boost": 0.75,
    "style": 0.0,
    "use_speaker_boost": True,
}


@dataclass
class TTSConfig:
    """Voice settings used for one synthesis call."""

    provider: str = "elevenlabs"
    voice_id: str | None = None
    voice_name: str | None = None
    language_code: str = "en-US"
    speaking_rate: float = 1.0
    pitch: float = 0.0
    volume_gain_db: float = 0.0
    config: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_model(cls, row) -> "TTSConfig":
        """Build from a TTSConfigurationModel row."""
        return cls(
            provider=row.provider,
            voice_id=row.voice_id,
            voice_name=row.voice_name,
            language_code=row.language_code or "en-US",
            speaking_rate=row.speaking_rate if row.speaking_rate is not None else 1.0,
            pitch=row.pitch if row.pitch is not None else 0.0,
            volume_gain_db=row.volume_gain_db if row.volume_gain_db is not None else 0.0,
            config=dict(row.config or {}),
        )

    @classmethod
    def default(cls, settings: TTSSettings | None = None) -> "TTSConfig":
        """ElevenLabs with the configured default voice."""
        settings = settings or get_settings().tts
        return cls(
            provider="elevenlabs",
            voice_id=settings.elevenlabs_voice_id,
            voice_name="Rachel",
        )

    def options(self) -> dict[str, Any]:
        """Flattened options; provider-specific config wins over voice fields."""
        return {
            "voice_id": self.voice_id,
            "voice_name": self.voice_name,
            "language_code": self.language_code,
            "speaking_rate": self.speaking_rate,
            "pitch": self.pitch,
            "volume_gain_db": self.volume_gain_db,
            **self.config,
        }


@dataclass
class SynthesisResult:
    """Base64-encoded audio from a TTS provider."""

    audio: str
    provider: str
    format: str = AUDIO_FORMAT

    def to_dict(self) -> dict[str, Any]:
        return {"audio": self.audio, "format": self.format, "provider": self.provider}


class TTSService:
    """
    Text-to-speech dispatcher.

    Usage:
        service = TTSService()
        result = await service.synthesize("Your appointment is confirmed.", TTSConfig.default())
    """

    def __init__(
        self,
        settings: TTSSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings or get_settings().tts
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._providers = {
            "elevenlabs": self.elevenlabs_synthesize,
            "google": self._google_synthesize,
            "aws": self._aws_synthesize,
            "azure": self._azure_synthesize,
        }

    @property
    def providers(self) -> list[str]:
        return list(self._providers)

    def _get_client(self) -> httpx.AsyncClient:
        """Lazy client initialization."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.settings.elevenlabs_base_url,
                timeout=httpx.Timeout(self.settings.request_timeout, connect=10.0),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _require_elevenlabs_key(self) -> str:
        if not self.settings.elevenlabs_api_key:
            raise TTSNotConfiguredError(
                "ElevenLabs API key is not configured", provider="elevenlabs"
            )
        return self.settings.elevenlabs_api_key

    # ============================================================
    # SYNTHESIS
    # ============================================================

    async def synthesize(self, text: str, config: TTSConfig) -> SynthesisResult:
        """
        Synthesize text with the provider named in config.

        Raises:
            UnsupportedTTSProviderError: Unknown provider name
            TTSNotImplementedError: Known provider without a backend
            TTSError: Provider failure
        """
        provider = config.provider
        handler = self._providers.get(provider)
        if handler is None:
            raise UnsupportedTTSProviderError(provider)

        try:
            audio = await handler(text, config.options())
        except TTSError as e:
            logger.error(f"TTS synthesis error ({provider}): {e}")
            get_metrics().record_tts_synthesis(provider, success=False)
            raise

        get_metrics().record_tts_synthesis(provider, success=True)
        logger.debug(f"Synthesized {len(text)} characters with {provider}")
        return SynthesisResult(audio=audio, provider=provider)

    async def elevenlabs_synthesize(self, text: str, options: dict[str, Any]) -> str:
        """POST /text-to-speech/{voice_id}; returns base64 audio."""
        api_key = self._require_elevenlabs_key()

        voice_id = options.get("voice_id") or self.settings.elevenlabs_voice_id
        voice_settings = {
            key: options[key] if options.get(key) is not None else default
            for key, default in ELEVENLABS_VOICE_DEFAULTS.items()
        }
        payload = {
            "text": text,
            "model_id": options.get("model_id") or self.settings.elevenlabs_model_id,
            "voice_settings": voice_settings,
        }

        response = await self._request(
            "POST",
            f"/text-to-speech/{voice_id}",
            api_key,
            accept=AUDIO_FORMAT,
            json=payload,
        )
        return base64.b64encode(response.content).decode("ascii")

    async def list_elevenlabs_voices(self) -> list[dict[str, Any]]:
        """GET /voices; returns the voices list."""
        api_key = self._require_elevenlabs_key()
        response = await self._request("GET", "/voices", api_key, accept="application/json")

        try:
            data = response.json()
        except ValueError as e:
            raise TTSError(
                "Failed to parse ElevenLabs voices response", provider="elevenlabs"
            ) from e
        return data.get("voices") or []

    async def _request(
        self,
        method: str,
        path: str,
        api_key: str,
        accept: str,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        client = self._get_client()
        try:
            response = await client.request(
                method,
                path,
                headers={"xi-api-key": api_key, "Accept": accept},
                json=json,
            )
        except httpx.HTTPError as e:
            raise TTSError(f"ElevenLabs request failed: {e}", provider="elevenlabs") from e

        if response.status_code != 200:
            raise TTSError(_elevenlabs_error_message(response), provider="elevenlabs")
        return response

    # ============================================================
    # UNIMPLEMENTED PROVIDERS
    # ============================================================

    async def _google_synthesize(self, text: str, options: dict[str, Any]) -> str:
        raise TTSNotImplementedError("Google TTS not yet implemented", provider="google")

    async def _aws_synthesize(self, text: str, options: dict[str, Any]) -> str:
        raise TTSNotImplementedError("AWS Polly TTS not yet implemented", provider="aws")

    async def _azure_synthesize(self, text: str, options: dict[str, Any]) -> str:
        raise TTSNotImplementedError("Azure TTS not yet implemented", provider="azure")


def _elevenlabs_error_message(response: httpx.Response) -> str:
    """Prefer the API's detail.message over the bare status code."""
    fallback = f"ElevenLabs API error: {response.status_code}"
    try:
        body = response.json()
    except ValueError:
        return fallback
    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, dict) and detail.get("message"):
        return detail["message"]
    return fallback


# ============================================================
# GLOBAL TTS SERVICE
# ============================================================

_tts_service: TTSService | None = None


def get_tts_service() -> TTSService:
    """Get the global TTS service."""
    global _tts_service
    if _tts_service is None:
        _tts_service = TTSService()
    return _tts_service


async def close_tts_service() -> None:
    global _tts_service
    if _tts_service is not None:
        await _tts_service.close()
    _tts_service = None


__all__ = [
    "AUDIO_FORMAT",
    "TTSConfig",
    "SynthesisResult",
    "TTSService",
    "get_tts_service",
    "close_tts_service",
]
