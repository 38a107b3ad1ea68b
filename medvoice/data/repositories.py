# MedVoice - Multi-Tenant Healthcare Voice AI Backend
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Repository pattern for organization-scoped persistence.

Every repository is constructed with an AsyncSession and provides
typed query methods. Every get/list that touches tenant data takes the
caller's organization_id and filters on it.
"""

import uuid
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import (
    AgentModel,
    AuditLogModel,
    ConversationModel,
    OrganizationModel,
    TTSConfigurationModel,
    UserModel,
)


def _utcnow() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# OrganizationRepository / UserRepository
# ---------------------------------------------------------------------------


class OrganizationRepository:
    """CRUD for the organizations table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, name: str) -> OrganizationModel:
        org = OrganizationModel(id=str(uuid.uuid4()), name=name)
        self.session.add(org)
        await self.session.flush()
        return org

    async def get_by_id(self, organization_id: str) -> OrganizationModel | None:
        result = await self.session.execute(
            select(OrganizationModel).where(OrganizationModel.id == str(organization_id))
        )
        return result.scalar_one_or_none()


class UserRepository:
    """CRUD for the users table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        email: str,
        organization_id: str | None = None,
        role: str = "user",
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> UserModel:
        user = UserModel(
            id=str(uuid.uuid4()),
            organization_id=organization_id,
            email=email.lower(),
            role=role,
            first_name=first_name,
            last_name=last_name,
            is_active=True,
        )
        self.session.add(user)
        await self.session.flush()
        return user

    async def get_by_id(self, user_id: str) -> UserModel | None:
        result = await self.session.execute(select(UserModel).where(UserModel.id == str(user_id)))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> UserModel | None:
        result = await self.session.execute(
            select(UserModel).where(UserModel.email == email.lower())
        )
        return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# AgentRepository
# ---------------------------------------------------------------------------


class AgentRepository:
    """Read access to ai_agents, always scoped to an organization."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, organization_id: str, name: str, **fields: Any) -> AgentModel:
        agent = AgentModel(
            id=str(uuid.uuid4()),
            organization_id=organization_id,
            name=name,
            **fields,
        )
        self.session.add(agent)
        await self.session.flush()
        return agent

    async def get_for_organization(
        self, agent_id: str, organization_id: str
    ) -> AgentModel | None:
        result = await self.session.execute(
            select(AgentModel).where(
                AgentModel.id == str(agent_id),
                AgentModel.organization_id == str(organization_id),
            )
        )
        return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# ConversationRepository
# ---------------------------------------------------------------------------


class ConversationRepository:
    """CRUD for conversations. The agent is eagerly joined on every load."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        organization_id: str,
        agent: AgentModel,
        user_id: str | None = None,
        patient_name: str | None = None,
        patient_phone: str | None = None,
        metadata: dict | None = None,
    ) -> ConversationModel:
        conversation = ConversationModel(
            id=str(uuid.uuid4()),
            organization_id=organization_id,
            agent_id=agent.id,
            user_id=user_id,
            patient_name=patient_name or None,
            patient_phone=patient_phone or None,
            status="active",
            transcript=[],
            metadata_=metadata or {},
        )
        conversation.agent = agent
        self.session.add(conversation)
        await self.session.flush()
        return conversation

    async def list_by_organization(
        self, organization_id: str, limit: int = 100
    ) -> Sequence[ConversationModel]:
        result = await self.session.execute(
            select(ConversationModel)
            .where(ConversationModel.organization_id == str(organization_id))
            .order_by(ConversationModel.created_at.desc())
            .limit(limit)
        )
        return result.scalars().all()

    async def get_for_organization(
        self, conversation_id: str, organization_id: str
    ) -> ConversationModel | None:
        result = await self.session.execute(
            select(ConversationModel).where(
                ConversationModel.id == str(conversation_id),
                ConversationModel.organization_id == str(organization_id),
            )
        )
        return result.scalar_one_or_none()

    async def update_transcript(
        self, conversation: ConversationModel, transcript: list[dict]
    ) -> ConversationModel:
        # Assign a new list so the JSON column is flagged dirty.
        conversation.transcript = list(transcript)
        conversation.updated_at = _utcnow()
        await self.session.flush()
        return conversation

    async def update_status(
        self, conversation_id: str, organization_id: str, status: str
    ) -> ConversationModel | None:
        conversation = await self.get_for_organization(conversation_id, organization_id)
        if conversation is None:
            return None
        conversation.status = status
        conversation.updated_at = _utcnow()
        await self.session.flush()
        return conversation


# ---------------------------------------------------------------------------
# TTSConfigurationRepository
# ---------------------------------------------------------------------------


class TTSConfigurationRepository:
    """Per-agent text-to-speech configuration."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_for_agent(
        self, agent_id: str, organization_id: str
    ) -> Sequence[TTSConfigurationModel]:
        result = await self.session.execute(
            select(TTSConfigurationModel)
            .where(
                TTSConfigurationModel.agent_id == str(agent_id),
                TTSConfigurationModel.organization_id == str(organization_id),
            )
            .order_by(TTSConfigurationModel.created_at.desc())
        )
        return result.scalars().all()

    async def get_latest_for_agent(
        self, agent_id: str, organization_id: str, active_only: bool = False
    ) -> TTSConfigurationModel | None:
        query = select(TTSConfigurationModel).where(
            TTSConfigurationModel.agent_id == str(agent_id),
            TTSConfigurationModel.organization_id == str(organization_id),
        )
        if active_only:
            query = query.where(TTSConfigurationModel.is_active.is_(True))
        result = await self.session.execute(
            query.order_by(TTSConfigurationModel.created_at.desc()).limit(1)
        )
        return result.scalar_one_or_none()

    async def get_active_for_agent(
        self, agent_id: str, organization_id: str
    ) -> TTSConfigurationModel | None:
        return await self.get_latest_for_agent(agent_id, organization_id, active_only=True)

    async def upsert(
        self,
        organization_id: str,
        agent_id: str,
        provider: str,
        voice_id: str | None = None,
        voice_name: str | None = None,
        language_code: str = "en-US",
        speaking_rate: float = 1.0,
        pitch: float = 0.0,
        volume_gain_db: float = 0.0,
        config: dict | None = None,
    ) -> tuple[TTSConfigurationModel, bool]:
        """Update the agent's configuration in place, or insert one.

        Returns (configuration, created).
        """
        values = {
            "provider": provider,
            "voice_id": voice_id,
            "voice_name": voice_name,
            "language_code": language_code,
            "speaking_rate": speaking_rate,
            "pitch": pitch,
            "volume_gain_db": volume_gain_db,
            "config": config or {},
        }

        existing = await self.get_latest_for_agent(agent_id, organization_id)
        if existing is not None:
            for key, value in values.items():
                setattr(existing, key, value)
            existing.updated_at = _utcnow()
            await self.session.flush()
            return existing, False

        configuration = TTSConfigurationModel(
            id=str(uuid.uuid4()),
            organization_id=organization_id,
            agent_id=agent_id,
            is_active=True,
            **values,
        )
        self.session.add(configuration)
        await self.session.flush()
        return configuration, True


# ---------------------------------------------------------------------------
# AuditLogRepository
# ---------------------------------------------------------------------------


class AuditLogRepository:
    """Append-only audit trail."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def record(
        self,
        action: str,
        resource_type: str | None = None,
        resource_id: str | None = None,
        details: dict | None = None,
        user_id: str | None = None,
        organization_id: str | None = None,
    ) -> AuditLogModel:
        entry = AuditLogModel(
            id=str(uuid.uuid4()),
            organization_id=organization_id,
            user_id=user_id,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            details=details or {},
        )
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def list_for_resource(
        self, resource_type: str, resource_id: str
    ) -> Sequence[AuditLogModel]:
        result = await self.session.execute(
            select(AuditLogModel)
            .where(
                AuditLogModel.resource_type == resource_type,
                AuditLogModel.resource_id == str(resource_id),
            )
            .order_by(AuditLogModel.created_at)
        )
        return result.scalars().all()
