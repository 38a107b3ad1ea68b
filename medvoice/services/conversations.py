# MedVoice - Multi-Tenant Healthcare Voice AI Backend
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Conversation workflow.

Starts conversations with an agent greeting, runs message turns through the
AI service (with a fallback reply when the provider fails), attaches
best-effort TTS audio, and keeps the audit trail.
"""

import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ResourceNotFoundError
from ..core.prompts import (
    DEFAULT_FALLBACK_MESSAGE,
    DEFAULT_GREETING,
    AgentConfig,
    ConversationContext,
)
from ..data.models import AgentModel, ConversationModel
from ..data.repositories import (
    AgentRepository,
    AuditLogRepository,
    ConversationRepository,
    TTSConfigurationRepository,
)
from ..observability.logging import audit_logger
from ..observability.metrics import get_metrics
from .ai_service import AIService
from .tts_service import AUDIO_FORMAT, TTSConfig, TTSService

logger = logging.getLogger(__name__)

AUDIT_CONVERSATION_MESSAGE = "CONVERSATION_MESSAGE"
GREETING_PROMPT = "Hello"


def _timestamp() -> str:
    return datetime.now(UTC).isoformat()


class ConversationService:
    """Organization-scoped conversation operations for one request."""

    def __init__(
        self,
        session: AsyncSession,
        ai_service: AIService,
        tts_service: TTSService,
    ):
        self.session = session
        self.ai = ai_service
        self.tts = tts_service
        self.conversations = ConversationRepository(session)
        self.agents = AgentRepository(session)
        self.tts_configs = TTSConfigurationRepository(session)
        self.audit = AuditLogRepository(session)

    async def list_conversations(self, organization_id: str, limit: int = 100) -> list[dict[str, Any]]:
        rows = await self.conversations.list_by_organization(organization_id, limit=limit)
        return [row.to_dict() for row in rows]

    async def get(self, conversation_id: str, organization_id: str) -> dict[str, Any]:
        conversation = await self._load(conversation_id, organization_id)
        return conversation.to_dict(include_agent_config=True)

    async def start(
        self,
        organization_id: str,
        user_id: str | None,
        agent_id: str,
        patient_name: str | None = None,
        patient_phone: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Create an active conversation whose transcript opens with the greeting."""
        agent = await self.agents.get_for_organization(agent_id, organization_id)
        if agent is None:
            raise ResourceNotFoundError("agent", agent_id)

        conversation = await self.conversations.create(
            organization_id=organization_id,
            agent=agent,
            user_id=user_id,
            patient_name=patient_name,
            patient_phone=patient_phone,
            metadata=metadata,
        )

        greeting = await self._greeting_for(agent, patient_name)
        transcript = [{"role": "assistant", "content": greeting, "timestamp": _timestamp()}]
        await self.conversations.update_transcript(conversation, transcript)

        logger.info(f"Conversation {conversation.id} started with agent {agent.id}")
        return {"conversation": conversation.to_dict(), "greeting": greeting}

    async def _greeting_for(self, agent: AgentModel, patient_name: str | None) -> str:
        if agent.greeting_message:
            return agent.greeting_message
        if not agent.system_prompt:
            return DEFAULT_GREETING

        try:
            response = await self.ai.process_conversation(
                AgentConfig.from_agent(agent),
                conversation_history=[],
                user_message=GREETING_PROMPT,
                context=ConversationContext(patient_name=patient_name),
            )
        except Exception as e:
            logger.warning(f"Greeting generation failed for agent {agent.id}: {e}")
            return DEFAULT_GREETING
        return response.content or DEFAULT_GREETING

    async def send_message(
        self,
        conversation_id: str,
        organization_id: str,
        user_id: str | None,
        message: str,
    ) -> dict[str, Any]:
        """
        Run one turn: store the user message, ask the agent, store the reply.

        Provider failures never fail the turn; the agent's fallback message is
        stored with the error instead.
        """
        conversation = await self._load(conversation_id, organization_id)
        agent = conversation.agent
        agent_config = AgentConfig.from_agent(agent) if agent else AgentConfig()

        transcript = list(conversation.transcript or [])
        transcript.append({"role": "user", "content": message, "timestamp": _timestamp()})

        context = ConversationContext(
            patient_name=conversation.patient_name,
            patient_phone=conversation.patient_phone,
            business_hours=agent.business_hours if agent else None,
        )

        audio = None
        usage = None
        error = None

        try:
            response = await self.ai.process_conversation(
                agent_config,
                conversation_history=transcript[:-1],
                user_message=message,
                context=context,
            )
        except Exception as e:
            logger.error(f"AI processing error for conversation {conversation.id}: {e}")
            error = str(e)
            content = (agent.fallback_message if agent else None) or DEFAULT_FALLBACK_MESSAGE
            transcript.append(
                {
                    "role": "assistant",
                    "content": content,
                    "timestamp": _timestamp(),
                    "error": error,
                }
            )
            get_metrics().record_conversation_message("fallback")
        else:
            content = response.content
            usage = response.usage.to_dict()
            audio = await self._synthesize_reply(conversation, content)
            transcript.append(
                {
                    "role": "assistant",
                    "content": content,
                    "timestamp": _timestamp(),
                    "usage": usage,
                    "model": response.model,
                    "audio": audio,
                }
            )
            get_metrics().record_conversation_message("ai")

        await self.conversations.update_transcript(conversation, transcript)

        details = {"message_length": len(message), "has_error": error is not None}
        await self.audit.record(
            action=AUDIT_CONVERSATION_MESSAGE,
            resource_type="conversations",
            resource_id=conversation.id,
            details=details,
            user_id=user_id,
            organization_id=organization_id,
        )
        audit_logger.log(
            action=AUDIT_CONVERSATION_MESSAGE,
            resource_type="conversations",
            resource_id=conversation.id,
            details=details,
            success=error is None,
            agent_id=conversation.agent_id,
        )

        return {
            "message": content,
            "transcript": transcript,
            "usage": usage,
            "error": error,
            "audio": audio,
        }

    async def _synthesize_reply(
        self, conversation: ConversationModel, text: str
    ) -> dict[str, str] | None:
        """Audio for the reply when the agent has an active TTS configuration."""
        if not conversation.agent_id or not text:
            return None
        try:
            row = await self.tts_configs.get_active_for_agent(
                conversation.agent_id, conversation.organization_id
            )
            if row is None:
                return None
            result = await self.tts.synthesize(text, TTSConfig.from_model(row))
        except Exception as e:
            logger.warning(f"TTS synthesis failed for conversation {conversation.id}: {e}")
            return None
        return {"data": result.audio, "format": AUDIO_FORMAT}

    async def update_status(
        self, conversation_id: str, organization_id: str, status: str
    ) -> dict[str, Any]:
        conversation = await self.conversations.update_status(
            conversation_id, organization_id, status
        )
        if conversation is None:
            raise ResourceNotFoundError("conversation", conversation_id)
        logger.info(f"Conversation {conversation.id} status -> {status}")
        return conversation.to_dict()

    async def _load(self, conversation_id: str, organization_id: str) -> ConversationModel:
        conversation = await self.conversations.get_for_organization(
            conversation_id, organization_id
        )
        if conversation is None:
            raise ResourceNotFoundError("conversation", conversation_id)
        return conversation


__all__ = [
    "AUDIT_CONVERSATION_MESSAGE",
    "ConversationService",
]
