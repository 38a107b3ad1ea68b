# MedVoice - Multi-Tenant Healthcare Voice AI Backend
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""Persistence layer: async engine, ORM models and repositories."""

from .models import (
    AgentModel,
    AuditLogModel,
    Base,
    ConversationModel,
    OrganizationModel,
    TTSConfigurationModel,
    UserModel,
)
from .postgres import (
    close_database,
    get_database,
    get_db_session,
    get_session_factory,
    init_database,
)
from .repositories import (
    AgentRepository,
    AuditLogRepository,
    ConversationRepository,
    OrganizationRepository,
    TTSConfigurationRepository,
    UserRepository,
)

__all__ = [
    "Base",
    "OrganizationModel",
    "UserModel",
    "AgentModel",
    "ConversationModel",
    "TTSConfigurationModel",
    "AuditLogModel",
    "init_database",
    "close_database",
    "get_database",
    "get_db_session",
    "get_session_factory",
    "OrganizationRepository",
    "UserRepository",
    "AgentRepository",
    "ConversationRepository",
    "TTSConfigurationRepository",
    "AuditLogRepository",
]
