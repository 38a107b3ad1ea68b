# MedVoice - Multi-Tenant Healthcare Voice AI Backend
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Voice AI Routes (text-to-speech)

Provides endpoints for:
- Per-agent TTS configuration (read, create/update)
- Speech synthesis with an agent's voice or the default voice
- ElevenLabs voice catalogue
- Voice testing with explicit overrides
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ResourceNotFoundError
from ..data.postgres import get_db_session
from ..data.repositories import AgentRepository, TTSConfigurationRepository
from ..services.tts_service import TTSConfig, TTSService, get_tts_service
from .auth import CallerContext, get_current_caller

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/voice-ai", tags=["Voice AI"])


# ============================================================
# REQUEST MODELS
# ============================================================


class TTSConfigurationRequest(BaseModel):
    """Create or update an agent's TTS configuration."""

    agent_id: str = Field(..., min_length=1)
    provider: str = Field(..., min_length=1, max_length=50)
    voice_id: str | None = None
    voice_name: str | None = None
    language_code: str | None = None
    speaking_rate: float | None = Field(default=None, ge=0.25, le=4.0)
    pitch: float | None = Field(default=None, ge=-20, le=20)
    volume_gain_db: float | None = Field(default=None, ge=-96, le=16)
    config: dict[str, Any] | None = None


class SynthesizeRequest(BaseModel):
    text: str = Field(..., min_length=1)
    agent_id: str | None = None


class TTSTestRequest(BaseModel):
    text: str = Field(..., min_length=1)
    provider: str | None = None
    voice_id: str | None = None
    agent_id: str | None = None


# ============================================================
# CONFIGURATION
# ============================================================


@router.get("/tts/{agent_id}")
async def list_tts_configurations(
    agent_id: str,
    caller: CallerContext = Depends(get_current_caller),
    session: AsyncSession = Depends(get_db_session),
):
    rows = await TTSConfigurationRepository(session).list_for_agent(
        agent_id, caller.organization_id
    )
    return {"configurations": [row.to_dict() for row in rows]}


@router.post("/tts", status_code=status.HTTP_201_CREATED)
async def save_tts_configuration(
    request: TTSConfigurationRequest,
    caller: CallerContext = Depends(get_current_caller),
    session: AsyncSession = Depends(get_db_session),
):
    """Create the agent's TTS configuration, or update the existing one."""
    agent = await AgentRepository(session).get_for_organization(
        request.agent_id, caller.organization_id
    )
    if agent is None:
        raise ResourceNotFoundError("agent", request.agent_id)

    configuration, created = await TTSConfigurationRepository(session).upsert(
        organization_id=caller.organization_id,
        agent_id=agent.id,
        provider=request.provider,
        voice_id=request.voice_id or None,
        voice_name=request.voice_name or None,
        language_code=request.language_code or "en-US",
        speaking_rate=request.speaking_rate if request.speaking_rate is not None else 1.0,
        pitch=request.pitch if request.pitch is not None else 0.0,
        volume_gain_db=request.volume_gain_db if request.volume_gain_db is not None else 0.0,
        config=request.config,
    )
    logger.info(
        f"TTS configuration {'created' if created else 'updated'} for agent {agent.id}"
    )
    return {"configuration": configuration.to_dict()}


# ============================================================
# SYNTHESIS
# ============================================================


@router.post("/tts/synthesize")
async def synthesize_speech(
    request: SynthesizeRequest,
    caller: CallerContext = Depends(get_current_caller),
    session: AsyncSession = Depends(get_db_session),
    tts_service: TTSService = Depends(get_tts_service),
):
    """Synthesize with the agent's active voice, or the default ElevenLabs voice."""
    config = None
    if request.agent_id:
        row = await TTSConfigurationRepository(session).get_active_for_agent(
            request.agent_id, caller.organization_id
        )
        if row is not None:
            config = TTSConfig.from_model(row)

    result = await tts_service.synthesize(
        request.text, config or TTSConfig.default(tts_service.settings)
    )
    return {"success": True, **result.to_dict()}


@router.get("/tts/elevenlabs/voices")
async def list_elevenlabs_voices(
    caller: CallerContext = Depends(get_current_caller),
    tts_service: TTSService = Depends(get_tts_service),
):
    voices = await tts_service.list_elevenlabs_voices()
    return {"voices": voices}


@router.post("/tts/test")
async def test_tts(
    request: TTSTestRequest,
    caller: CallerContext = Depends(get_current_caller),
    session: AsyncSession = Depends(get_db_session),
    tts_service: TTSService = Depends(get_tts_service),
):
    """Synthesize with explicit provider/voice over the agent's latest configuration."""
    base = None
    if request.agent_id:
        row = await TTSConfigurationRepository(session).get_latest_for_agent(
            request.agent_id, caller.organization_id
        )
        if row is not None:
            base = TTSConfig.from_model(row)

    config = base or TTSConfig(voice_name="Test Voice")
    config.provider = request.provider or config.provider
    config.voice_id = (
        request.voice_id or config.voice_id or tts_service.settings.elevenlabs_voice_id
    )

    result = await tts_service.synthesize(request.text, config)
    return {"success": True, **result.to_dict(), "message": "TTS test successful"}


__all__ = ["router"]
