# MedVoice - Multi-Tenant Healthcare Voice AI Backend
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""HTTP gateway: FastAPI application, authentication and routers."""

from .app import app, create_app

__all__ = ["app", "create_app"]
