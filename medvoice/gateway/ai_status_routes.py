# MedVoice - Multi-Tenant Healthcare Voice AI Backend
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
AI Status Routes

Provider configuration summary and a one-shot completion check.
"""

import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..core.prompts import DEFAULT_SYSTEM_PROMPT
from ..services.ai_service import AIService, get_ai_service
from .auth import CallerContext, get_current_caller

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/ai-status", tags=["AI Status"])

TEST_TEMPERATURE = 0.7
TEST_MAX_TOKENS = 100


class AITestRequest(BaseModel):
    provider: str = Field(default="openai", min_length=1)
    message: str = Field(default="Hello, how are you?", min_length=1)


@router.get("")
async def get_ai_status(ai_service: AIService = Depends(get_ai_service)):
    """Which providers are configured (no secrets)."""
    return ai_service.status()


@router.post("/test")
async def test_ai(
    request: Request,
    payload: AITestRequest | None = None,
    caller: CallerContext = Depends(get_current_caller),
    ai_service: AIService = Depends(get_ai_service),
):
    """Run a short completion against a provider."""
    payload = payload or AITestRequest()
    provider = payload.provider.lower()

    if not ai_service.is_configured(provider):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": f"AI provider {provider} is not configured",
                "status_code": status.HTTP_400_BAD_REQUEST,
                "request_id": getattr(request.state, "request_id", None),
                "availableProviders": ai_service.available_providers(),
            },
        )

    response = await ai_service.generate_response(
        [{"role": "user", "content": payload.message}],
        provider=provider,
        system_prompt=DEFAULT_SYSTEM_PROMPT,
        temperature=TEST_TEMPERATURE,
        max_tokens=TEST_MAX_TOKENS,
    )
    logger.info(f"AI test completed for {provider} by user {caller.user_id}")

    return {
        "success": True,
        "provider": provider,
        "message": payload.message,
        "response": response.content,
        "usage": response.usage.to_dict(),
        "model": response.model,
    }


__all__ = ["router"]
