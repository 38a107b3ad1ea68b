# MedVoice - Multi-Tenant Healthcare Voice AI Backend
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Authentication

Provides:
- JWT access token generation and validation
- Caller resolution (user -> organization) for route handlers
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import jwt
from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.settings import SecuritySettings, get_settings
from ..data.postgres import get_db_session
from ..data.repositories import UserRepository
from ..observability.logging import set_request_context

logger = logging.getLogger(__name__)


@dataclass
class TokenPayload:
    """Decoded JWT token payload."""

    sub: str  # Subject (user ID)
    exp: datetime
    iat: datetime | None = None
    jti: str | None = None

    # Optional claims
    email: str | None = None
    role: str | None = None


@dataclass
class CallerContext:
    """The authenticated user and the organization every query is scoped to."""

    user_id: str
    organization_id: str
    email: str | None = None
    role: str | None = None


class AuthenticationError(Exception):
    """Authentication failed."""

    pass


class TokenExpiredError(AuthenticationError):
    """Token has expired."""

    pass


class TokenInvalidError(AuthenticationError):
    """Token is invalid."""

    pass


class JWTService:
    """
    JWT token generation and validation.

    Usage:
        jwt_service = JWTService(settings)
        token = jwt_service.create_access_token(user_id, email=email)
        payload = jwt_service.decode_token(token)
    """

    # Known insecure default values that must be rejected
    INSECURE_SECRETS = frozenset(
        {
            "your-secret-key",
            "changeme",
            "secret",
            "jwt-secret",
            "supersecret",
            "development",
            "change-me",
            "your_secret_key",
        }
    )

    def __init__(self, settings: SecuritySettings | None = None):
        self.settings = settings or get_settings().security
        self.algorithm = self.settings.jwt_algorithm
        self.secret_key = self.settings.jwt_secret_key
        self.access_token_expire = timedelta(minutes=self.settings.jwt_access_token_expire_minutes)

        self._validate_secret_key()

    def _validate_secret_key(self) -> None:
        """
        Validate JWT secret key meets security requirements.

        Raises:
            ValueError: If secret key is missing, short or a known default
        """
        if not self.secret_key:
            raise ValueError(
                "SECURITY_JWT_SECRET_KEY environment variable is required. "
                'Generate one with: python -c "import secrets; print(secrets.token_urlsafe(32))"'
            )

        if len(self.secret_key) < 32:
            raise ValueError(
                f"SECURITY_JWT_SECRET_KEY must be at least 32 characters "
                f"(current length: {len(self.secret_key)})."
            )

        if self.secret_key.lower() in self.INSECURE_SECRETS:
            raise ValueError(
                f"SECURITY_JWT_SECRET_KEY is using an insecure default value "
                f"'{self.secret_key[:8]}...'."
            )

    def create_access_token(
        self,
        user_id: str,
        email: str | None = None,
        role: str | None = None,
        expires_delta: timedelta | None = None,
    ) -> str:
        """Create an access token for a user."""
        now = datetime.now(UTC)
        expire = now + (expires_delta or self.access_token_expire)

        payload = {
            "sub": user_id,
            "iat": now,
            "exp": expire,
            "jti": secrets.token_hex(16),
        }
        if email:
            payload["email"] = email
        if role:
            payload["role"] = role

        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def decode_token(self, token: str) -> TokenPayload:
        """
        Decode and validate a JWT token.

        Tokens carrying the user id as `userId` instead of `sub` are accepted.

        Raises:
            TokenExpiredError: Token has expired
            TokenInvalidError: Token is invalid
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"require": ["exp"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except jwt.InvalidTokenError as e:
            raise TokenInvalidError(f"Invalid token: {e}") from e

        subject = payload.get("sub") or payload.get("userId")
        if not subject:
            raise TokenInvalidError("Token has no subject")

        iat = payload.get("iat")
        return TokenPayload(
            sub=str(subject),
            exp=datetime.fromtimestamp(payload["exp"], tz=UTC),
            iat=datetime.fromtimestamp(iat, tz=UTC) if iat else None,
            jti=payload.get("jti"),
            email=payload.get("email"),
            role=payload.get("role"),
        )


# ============================================================
# GLOBAL JWT SERVICE
# ============================================================

_jwt_service: JWTService | None = None


def get_jwt_service() -> JWTService:
    """Get the global JWT service."""
    global _jwt_service
    if _jwt_service is None:
        _jwt_service = JWTService()
    return _jwt_service


# ============================================================
# FASTAPI DEPENDENCIES
# ============================================================


async def get_current_user(
    authorization: str | None = Header(None),
) -> TokenPayload:
    """FastAPI dependency: extract and validate JWT from Authorization header."""
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing Authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid Authorization header format. Use: Bearer <token>",
        )

    try:
        return get_jwt_service().decode_token(parts[1])
    except TokenExpiredError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
        ) from e
    except TokenInvalidError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        ) from e


async def get_current_caller(
    token: TokenPayload = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> CallerContext:
    """FastAPI dependency: resolve the token's user and their organization.

    Usage in routes:
        caller: CallerContext = Depends(get_current_caller)
    """
    user = await UserRepository(session).get_by_id(token.sub)
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )

    if not user.organization_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is not a member of an organization",
        )

    set_request_context(organization_id=user.organization_id, user_id=user.id)
    return CallerContext(
        user_id=user.id,
        organization_id=user.organization_id,
        email=user.email,
        role=user.role,
    )


__all__ = [
    "TokenPayload",
    "CallerContext",
    "AuthenticationError",
    "TokenExpiredError",
    "TokenInvalidError",
    "JWTService",
    "get_jwt_service",
    "get_current_user",
    "get_current_caller",
]
