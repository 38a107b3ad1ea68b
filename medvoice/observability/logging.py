# MedVoice - Multi-Tenant Healthcare Voice AI Backend
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Observability - Structured Logging

Log output for the MedVoice API. Each line carries the request's
correlation id and the organization/user resolved by authentication.

Patient data never reaches the log stream in clear text:
- credential and identifier fields (keys, tokens, phone numbers, DOB) are redacted
- conversation content (turn text, transcripts, synthesized audio) is
  replaced by its size
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

# ============================================================
# REQUEST CONTEXT
# ============================================================

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
organization_id_var: ContextVar[str | None] = ContextVar("organization_id", default=None)
user_id_var: ContextVar[str | None] = ContextVar("user_id", default=None)

_CONTEXT_VARS: dict[str, ContextVar[str | None]] = {
    "request_id": request_id_var,
    "organization_id": organization_id_var,
    "user_id": user_id_var,
}


def set_request_context(
    request_id: str | None = None,
    organization_id: str | None = None,
    user_id: str | None = None,
) -> None:
    """Bind ids for the current request. Omitted ids keep their value."""
    values = {"request_id": request_id, "organization_id": organization_id, "user_id": user_id}
    for name, value in values.items():
        if value:
            _CONTEXT_VARS[name].set(value)


def clear_request_context() -> None:
    for var in _CONTEXT_VARS.values():
        var.set(None)


def get_request_context() -> dict[str, str | None]:
    return {name: var.get() for name, var in _CONTEXT_VARS.items()}


# ============================================================
# MASKING
# ============================================================

REDACTED = "[REDACTED]"

# Substrings of keys whose values are dropped
SENSITIVE_FIELDS = frozenset(
    {
        "password",
        "secret",
        "token",
        "api_key",
        "apikey",
        "authorization",
        "credential",
        "private_key",
        "jwt",
        "bearer",
        "ssn",
        "social_security",
        "phone",
        "date_of_birth",
        "dob",
    }
)

# Exact keys holding conversation content; only the size is logged
CONTENT_FIELDS = frozenset(
    {
        "content",
        "text",
        "transcript",
        "greeting",
        "patient_name",
        "audio",
        "audio_base64",
    }
)

_KEY_PREFIXES = ("sk-", "xi-", "Bearer ", "eyJ")


def summarize_content(value: Any) -> str:
    """Size-only stand-in for conversation content."""
    if isinstance(value, list):
        return f"[turns: {len(value)}]"
    if isinstance(value, str | bytes):
        return f"[chars: {len(value)}]"
    if isinstance(value, dict) and isinstance(value.get("data"), str):
        return f"[audio chars: {len(value['data'])}]"
    return REDACTED


def mask_sensitive_data(data: Any, depth: int = 0, max_depth: int = 10) -> Any:
    """Copy of ``data`` safe to log: credentials redacted, content summarized."""
    if depth > max_depth:
        return "[MAX_DEPTH_EXCEEDED]"
    if isinstance(data, dict):
        return {key: _mask_field(str(key).lower(), value, depth, max_depth) for key, value in data.items()}
    if isinstance(data, list | tuple):
        return [mask_sensitive_data(item, depth + 1, max_depth) for item in data]
    if isinstance(data, str) and len(data) > 20 and data.startswith(_KEY_PREFIXES):
        return f"{data[:8]}...{REDACTED}"
    return data


def _mask_field(key: str, value: Any, depth: int, max_depth: int) -> Any:
    # Counts and flags (tokens_input, has_token) are not secrets
    if any(fragment in key for fragment in SENSITIVE_FIELDS) and not isinstance(value, int | float):
        return REDACTED
    if key in CONTENT_FIELDS and value is not None:
        return summarize_content(value)
    return mask_sensitive_data(value, depth + 1, max_depth)


# ============================================================
# FORMATTERS
# ============================================================

# Attributes every LogRecord has; anything else came in through ``extra=``
_RECORD_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime"}


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {key: value for key, value in record.__dict__.items() if key not in _RECORD_ATTRS}


class JSONFormatter(logging.Formatter):
    """One JSON object per line for log aggregation."""

    def __init__(self, mask_sensitive: bool = True):
        super().__init__()
        self.mask_sensitive = mask_sensitive

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        entry.update({name: value for name, value in get_request_context().items() if value})

        if record.exc_info and record.exc_info[0] is not None:
            entry["error"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "stack": self.formatException(record.exc_info),
            }

        extra = _extra_fields(record)
        if extra:
            entry["extra"] = mask_sensitive_data(extra) if self.mask_sensitive else extra

        return json.dumps(entry, default=str)


class HumanFormatter(logging.Formatter):
    """Console format: time, level, logger, [req/org] prefix, message."""

    # ANSI codes; INFO and DEBUG stay uncolored
    LEVEL_COLORS = {
        logging.WARNING: "33",
        logging.ERROR: "31",
        logging.CRITICAL: "1;31",
    }

    def __init__(self, use_colors: bool = True):
        super().__init__(datefmt="%H:%M:%S")
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        context = get_request_context()
        tags = [
            f"{label}={context[name][:8]}"
            for name, label in (("request_id", "req"), ("organization_id", "org"))
            if context[name]
        ]
        prefix = f"[{' '.join(tags)}] " if tags else ""

        line = (
            f"{self.formatTime(record, self.datefmt)} {record.levelname:<8} "
            f"{record.name}: {prefix}{record.getMessage()}"
        )
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"

        color = self.LEVEL_COLORS.get(record.levelno)
        if self.use_colors and color:
            line = f"\033[{color}m{line}\033[0m"
        return line


# Third-party loggers held at WARNING; the request log covers their traffic
_QUIET_LOGGERS = (
    "httpx",
    "httpcore",
    "openai",
    "anthropic",
    "asyncio",
    "sqlalchemy.engine",
    "uvicorn.access",
)


def configure_logging(
    level: str = "INFO",
    format: str = "json",
    mask_sensitive: bool = True,
    use_colors: bool = True,
) -> None:
    """Install a single stdout handler on the root logger."""
    if format == "json":
        formatter: logging.Formatter = JSONFormatter(mask_sensitive=mask_sensitive)
    else:
        formatter = HumanFormatter(use_colors=use_colors and sys.stdout.isatty())

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


# ============================================================
# DOMAIN EVENTS
# ============================================================


class AuditLogger:
    """
    Audit events on the ``medvoice.audit`` logger.

    The ``audit_logs`` table is the durable record; these lines mirror it
    for log pipelines, keyed by action and resource.
    """

    def __init__(self, name: str = "medvoice.audit"):
        self._logger = logging.getLogger(name)

    def log(
        self,
        action: str,
        resource_type: str,
        resource_id: str | None = None,
        details: dict[str, Any] | None = None,
        success: bool = True,
        agent_id: str | None = None,
    ) -> None:
        self._logger.log(
            logging.INFO if success else logging.WARNING,
            f"AUDIT {action} {resource_type}/{resource_id or '-'}",
            extra={
                "audit_event": True,
                "action": action,
                "resource_type": resource_type,
                "resource_id": resource_id,
                "agent_id": agent_id,
                "success": success,
                "details": details or {},
            },
        )


audit_logger = AuditLogger()


def log_request_end(
    method: str,
    path: str,
    request_id: str,
    status_code: int,
    duration_ms: float,
) -> None:
    if status_code >= 500:
        level = logging.ERROR
    elif status_code >= 400:
        level = logging.WARNING
    else:
        level = logging.INFO
    logging.getLogger("medvoice.request").log(
        level,
        f"{method} {path} -> {status_code} ({duration_ms:.1f}ms)",
        extra={
            "http_method": method,
            "http_path": path,
            "http_status": status_code,
            "duration_ms": round(duration_ms, 2),
            "request_id": request_id,
        },
    )


def log_llm_request(
    provider: str,
    model: str,
    tokens_input: int,
    tokens_output: int,
    duration_ms: float,
    success: bool = True,
    error: str | None = None,
    agent_type: str | None = None,
) -> None:
    """One line per completion attempt; prompt and reply text are never logged."""
    outcome = "ok" if success else "failed"
    logging.getLogger("medvoice.llm").log(
        logging.INFO if success else logging.WARNING,
        f"LLM {provider}/{model} {outcome} in {duration_ms:.0f}ms ({tokens_input}+{tokens_output} tokens)",
        extra={
            "llm_provider": provider,
            "llm_model": model,
            "agent_type": agent_type,
            "tokens_input": tokens_input,
            "tokens_output": tokens_output,
            "duration_ms": round(duration_ms, 2),
            "success": success,
            "error": error,
        },
    )


__all__ = [
    "request_id_var",
    "organization_id_var",
    "user_id_var",
    "set_request_context",
    "clear_request_context",
    "get_request_context",
    "SENSITIVE_FIELDS",
    "CONTENT_FIELDS",
    "summarize_content",
    "mask_sensitive_data",
    "JSONFormatter",
    "HumanFormatter",
    "configure_logging",
    "AuditLogger",
    "audit_logger",
    "log_request_end",
    "log_llm_request",
]
