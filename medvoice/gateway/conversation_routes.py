# MedVoice - Multi-Tenant Healthcare Voice AI Backend
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Conversation Routes

Provides endpoints for:
- Listing and reading an organization's conversations
- Starting a conversation with an agent greeting
- Sending a patient message and receiving the agent reply
- Updating conversation status
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..data.postgres import get_db_session
from ..services.ai_service import AIService, get_ai_service
from ..services.conversations import ConversationService
from ..services.tts_service import TTSService, get_tts_service
from .auth import CallerContext, get_current_caller

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/conversations", tags=["Conversations"])


# ============================================================
# REQUEST MODELS
# ============================================================


class StartConversationRequest(BaseModel):
    """Request to start a conversation."""

    agent_id: str = Field(..., min_length=1)
    patient_name: str | None = Field(default=None, max_length=255)
    patient_phone: str | None = Field(default=None, max_length=50)
    metadata: dict[str, Any] | None = None


class MessageRequest(BaseModel):
    """Patient message for an active conversation."""

    message: str = Field(..., min_length=1, max_length=20000)


class StatusUpdateRequest(BaseModel):
    status: str = Field(..., min_length=1, max_length=50)


# ============================================================
# DEPENDENCIES
# ============================================================


def get_conversation_service(
    session: AsyncSession = Depends(get_db_session),
    ai_service: AIService = Depends(get_ai_service),
    tts_service: TTSService = Depends(get_tts_service),
) -> ConversationService:
    return ConversationService(session, ai_service, tts_service)


# ============================================================
# ROUTES
# ============================================================


@router.get("")
async def list_conversations(
    caller: CallerContext = Depends(get_current_caller),
    service: ConversationService = Depends(get_conversation_service),
):
    """The organization's 100 most recent conversations."""
    conversations = await service.list_conversations(caller.organization_id)
    return {"conversations": conversations}


@router.get("/{conversation_id}")
async def get_conversation(
    conversation_id: str,
    caller: CallerContext = Depends(get_current_caller),
    service: ConversationService = Depends(get_conversation_service),
):
    conversation = await service.get(conversation_id, caller.organization_id)
    return {"conversation": conversation}


@router.post("", status_code=status.HTTP_201_CREATED)
async def start_conversation(
    request: StartConversationRequest,
    caller: CallerContext = Depends(get_current_caller),
    service: ConversationService = Depends(get_conversation_service),
):
    """Start a conversation; the transcript opens with the agent greeting."""
    return await service.start(
        organization_id=caller.organization_id,
        user_id=caller.user_id,
        agent_id=request.agent_id,
        patient_name=request.patient_name,
        patient_phone=request.patient_phone,
        metadata=request.metadata,
    )


@router.post("/{conversation_id}/message")
async def send_message(
    conversation_id: str,
    request: MessageRequest,
    caller: CallerContext = Depends(get_current_caller),
    service: ConversationService = Depends(get_conversation_service),
):
    """Send a message and get the agent reply (with audio when TTS is configured)."""
    return await service.send_message(
        conversation_id=conversation_id,
        organization_id=caller.organization_id,
        user_id=caller.user_id,
        message=request.message,
    )


@router.patch("/{conversation_id}/status")
async def update_conversation_status(
    conversation_id: str,
    request: StatusUpdateRequest,
    caller: CallerContext = Depends(get_current_caller),
    service: ConversationService = Depends(get_conversation_service),
):
    conversation = await service.update_status(
        conversation_id, caller.organization_id, request.status
    )
    return {"conversation": conversation}


__all__ = ["router", "get_conversation_service"]
