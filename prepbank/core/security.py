"""Access-token verification.

Tokens are issued by the auth service; this API only checks them.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

import jwt

from prepbank.core.config import settings

TOKEN_TYPE = "access"


class TokenError(Exception):
    """The bearer token is missing, malformed, expired or not an access token."""


@dataclass(frozen=True)
class AccessClaims:
    user_id: UUID
    role: str
    expires_at: datetime


def _secret() -> str:
    if not settings.JWT_SECRET:
        raise TokenError("JWT_SECRET is not configured")
    return settings.JWT_SECRET


def decode_access_token(token: str) -> AccessClaims:
    """
    Verify a token and return its claims.

    Raises:
        TokenError: signature, expiry, type or claim problems
    """
    try:
        payload = jwt.decode(
            token,
            _secret(),
            algorithms=[settings.JWT_ALG],
            options={"require": ["sub", "role", "exp"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise TokenError("Token has expired") from e
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}") from e

    if payload.get("type") != TOKEN_TYPE:
        raise TokenError("Token is not an access token")
    try:
        user_id = UUID(payload["sub"])
    except ValueError as e:
        raise TokenError("Token subject is not a user id") from e
    return AccessClaims(
        user_id=user_id,
        role=payload["role"],
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )
