# MedVoice - Multi-Tenant Healthcare Voice AI Backend
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Observability - logging, metrics and request middleware.
"""

from .logging import (
    AuditLogger,
    audit_logger,
    clear_request_context,
    configure_logging,
    get_request_context,
    log_llm_request,
    mask_sensitive_data,
    set_request_context,
)
from .metrics import MetricsRegistry, get_metrics, init_metrics
from .middleware import RequestContextMiddleware

__all__ = [
    "AuditLogger",
    "audit_logger",
    "clear_request_context",
    "configure_logging",
    "get_request_context",
    "log_llm_request",
    "mask_sensitive_data",
    "set_request_context",
    "MetricsRegistry",
    "get_metrics",
    "init_metrics",
    "RequestContextMiddleware",
]
