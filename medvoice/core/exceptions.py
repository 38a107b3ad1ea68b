# MedVoice - Multi-Tenant Healthcare Voice AI Backend
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Exception Hierarchy

Structured exceptions for MedVoice.
All exceptions include context via `details` dict.
"""

from typing import Any


class MedVoiceError(Exception):
    """
    Base exception for all MedVoice errors.

    Attributes:
        message: Human-readable error message
        details: Additional context as key-value pairs
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


# ============================================================
# PROVIDER ERRORS
# ============================================================


class ProviderError(MedVoiceError):
    """Base class for LLM provider errors."""

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        original_error: Exception | None = None,
        **kwargs,
    ):
        details = kwargs.get("details", {})
        if provider:
            details["provider"] = provider
        if original_error:
            details["original_error"] = str(original_error)
        self.provider = provider
        super().__init__(message, details)


class UnsupportedProviderError(ProviderError):
    """Provider name is not one we can dispatch to."""

    def __init__(self, provider: str, **kwargs):
        super().__init__(f"Unsupported provider: {provider}", provider=provider, **kwargs)


class ProviderNotConfiguredError(ProviderError):
    """Provider credentials are missing."""

    pass


class ProviderConnectionError(ProviderError):
    """Failed to connect to provider."""

    pass


class ProviderAuthenticationError(ProviderError):
    """Provider authentication failed (invalid API key)."""

    pass


class ProviderRateLimitError(ProviderError):
    """Provider rate limit exceeded."""

    pass


class ProviderResponseError(ProviderError):
    """Invalid or unexpected response from provider."""

    def __init__(self, message: str, status_code: int | None = None, **kwargs):
        super().__init__(message, **kwargs)
        if status_code is not None:
            self.details["status_code"] = status_code


# ============================================================
# TTS ERRORS
# ============================================================


class TTSError(MedVoiceError):
    """Base class for text-to-speech errors."""

    def __init__(self, message: str, provider: str | None = None, **kwargs):
        details = kwargs.get("details", {})
        if provider:
            details["provider"] = provider
        self.provider = provider
        super().__init__(message, details)


class UnsupportedTTSProviderError(TTSError):
    """TTS provider name is unknown."""

    def __init__(self, provider: str | None, **kwargs):
        super().__init__(f"Unsupported TTS provider: {provider}", provider=provider, **kwargs)


class TTSNotImplementedError(TTSError):
    """TTS provider is known but has no synthesis backend yet."""

    pass


class TTSNotConfiguredError(TTSError):
    """TTS provider credentials are missing."""

    pass


# ============================================================
# RESOURCE ERRORS
# ============================================================


class ResourceNotFoundError(MedVoiceError):
    """Requested resource does not exist for the caller's organization."""

    def __init__(self, resource_type: str, resource_id: str | None = None, **kwargs):
        details = {"resource_type": resource_type, **kwargs.get("details", {})}
        if resource_id is not None:
            details["resource_id"] = str(resource_id)
        self.resource_type = resource_type
        super().__init__(f"{resource_type.capitalize()} not found", details)


__all__ = [
    "MedVoiceError",
    "ProviderError",
    "UnsupportedProviderError",
    "ProviderNotConfiguredError",
    "ProviderConnectionError",
    "ProviderAuthenticationError",
    "ProviderRateLimitError",
    "ProviderResponseError",
    "TTSError",
    "UnsupportedTTSProviderError",
    "TTSNotImplementedError",
    "TTSNotConfiguredError",
    "ResourceNotFoundError",
]
