"""Authentication and role dependencies for admin routes."""

from typing import Annotated

from fastapi import Depends, Header, status
from sqlalchemy.orm import Session

from prepbank.core.app_exceptions import AppError
from prepbank.core.security import TokenError, decode_access_token
from prepbank.db.session import get_db
from prepbank.models.user import User, UserRole

ADMIN_ROLES = (UserRole.ADMIN, UserRole.TUTOR)

_BEARER_HEADERS = {"WWW-Authenticate": "Bearer"}


def _unauthorized(message: str) -> AppError:
    return AppError(
        status.HTTP_401_UNAUTHORIZED, "UNAUTHORIZED", message, headers=_BEARER_HEADERS
    )


def bearer_token(authorization: str | None) -> str:
    """Extract the token from ``Bearer <token>``."""
    if not authorization:
        raise _unauthorized("Authorization header missing")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise _unauthorized("Invalid authorization header format. Expected: Bearer <token>")
    return token.strip()


def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
    db: Session = Depends(get_db),
) -> User:
    """Active user named by the bearer token; the token's role must still be current."""
    try:
        claims = decode_access_token(bearer_token(authorization))
    except TokenError as e:
        raise _unauthorized(str(e)) from e

    user = db.get(User, claims.user_id)
    if user is None:
        raise _unauthorized("User not found")
    if not user.is_active:
        raise AppError(status.HTTP_403_FORBIDDEN, "FORBIDDEN", "User account is inactive")
    if user.role != claims.role:
        raise _unauthorized("Token role is out of date. Please sign in again.")
    return user


def require_roles(*allowed_roles: UserRole):
    """Dependency factory: 403 unless the current user holds one of ``allowed_roles``."""
    allowed = {role.value for role in allowed_roles}

    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise AppError(
                status.HTTP_403_FORBIDDEN,
                "FORBIDDEN",
                "Access denied",
                {"required_roles": sorted(allowed)},
            )
        return current_user

    return role_checker


require_admin = require_roles(*ADMIN_ROLES)
