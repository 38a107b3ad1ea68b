# MedVoice - Multi-Tenant Healthcare Voice AI Backend
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
MedVoice - Multi-Tenant Healthcare Voice AI Backend

AI voice agents for medical practices: organizations configure agents
(prompt, provider, model, voice), and patients hold conversations with them.

Quick Start:
    medvoice serve

Architecture:

    gateway (FastAPI routers, JWT auth)
        -> services (conversations, AI dispatch, text-to-speech)
            -> core (settings, prompts, OpenAI / Anthropic providers)
            -> data (SQLAlchemy async models and repositories)
    observability (structured logging, audit events, Prometheus metrics)
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
