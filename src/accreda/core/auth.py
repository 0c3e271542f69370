"""
Authentication and Authorization Module

FastAPI dependencies that turn a Bearer JWT into a ``CurrentUser``.

Tokens are issued by the platform's identity provider. The application
role lives in ``app_metadata.role`` (falling back to the top-level ``role``
claim), so EITs, supervisors and admins share one token format.

SECURITY NOTE:
- Development mode test tokens are ONLY accepted when PYTHON_ENV=development
- Production environments MUST set PYTHON_ENV=production to disable them
"""

import logging
import os
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from accreda.core.config import settings
from accreda.core.security import decode_token

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"

security = HTTPBearer(
    auto_error=True,
    description="JWT Bearer token for authentication",
)


@dataclass
class CurrentUser:
    """
    An authenticated platform user, populated from JWT claims.

    Attributes:
        id: User's unique identifier (matches eit_profiles.id for EITs)
        email: User's email address
        role: Application role (eit, supervisor or admin)
    """

    id: UUID
    email: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE

    def __str__(self) -> str:
        return f"CurrentUser(id={self.id}, email={self.email}, role={self.role})"


def _is_dev_mode_safe() -> bool:
    """
    Check if development mode test tokens may be accepted.

    Both the settings object and the raw PYTHON_ENV variable must agree
    that this is a development environment.
    """
    env_var = os.getenv("PYTHON_ENV", "").lower()

    is_safe = (
        settings.is_development
        and not settings.is_production
        and env_var not in ("production", "staging")
    )

    if is_safe:
        logger.warning(
            "SECURITY: Development auth mode is ENABLED. This MUST NOT be used in production!"
        )

    return is_safe


_DEVELOPMENT_MODE = _is_dev_mode_safe()

_DEV_ADMIN = CurrentUser(
    id=UUID("00000000-0000-0000-0000-000000000001"),
    email="admin@accreda.dev",
    role=ADMIN_ROLE,
)


def _unauthorized(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


def _user_from_claims(payload: dict) -> CurrentUser:
    """
    Build a CurrentUser from decoded JWT claims.

    Raises:
        HTTPException 401: If the subject claim is missing or malformed
    """
    try:
        user_id_str = payload.get("sub")
        if not user_id_str:
            raise ValueError("Missing 'sub' claim in token")

        app_metadata = payload.get("app_metadata") or {}
        role = app_metadata.get("role") or payload.get("role") or "eit"

        return CurrentUser(
            id=UUID(user_id_str),
            email=payload.get("email", ""),
            role=role,
        )
    except (ValueError, AttributeError) as e:
        logger.warning(f"Invalid token claims: {e}")
        raise _unauthorized(
            "INVALID_TOKEN_CLAIMS", "Token contains invalid or missing claims."
        ) from e


async def _validate_jwt_token(token: str) -> CurrentUser:
    """
    Validate a JWT and extract the user.

    Raises:
        HTTPException 401: If the token is invalid or expired
    """
    if _DEVELOPMENT_MODE:
        if token in ("dev-token", "test-token"):
            logger.debug("Development mode: Using test admin token")
            return _DEV_ADMIN

        # Accept UUID tokens as EIT user IDs for local testing
        try:
            user_id = UUID(token)
            return CurrentUser(
                id=user_id,
                email=f"eit-{str(user_id)[:8]}@accreda.dev",
                role="eit",
            )
        except ValueError:
            pass

    payload = decode_token(token)

    if payload is None:
        logger.warning("Invalid or expired JWT token")
        raise _unauthorized("INVALID_TOKEN", "Invalid or expired authentication token.")

    return _user_from_claims(payload)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> CurrentUser:
    """
    FastAPI dependency returning the authenticated user.

    Raises:
        HTTPException 401: If the token is missing, invalid, or expired
    """
    user = await _validate_jwt_token(credentials.credentials)
    logger.debug(f"Authenticated user: {user.id}")
    return user


async def get_current_admin_user(
    user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """
    FastAPI dependency requiring the admin role.

    Raises:
        HTTPException 403: If the user is not an admin
    """
    if not user.is_admin:
        logger.warning(
            f"Access denied: User {user.id} has role '{user.role}', but '{ADMIN_ROLE}' is required"
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "ADMIN_ACCESS_REQUIRED",
                "message": "Admin access is required for this endpoint.",
            },
        )

    return user


__all__ = [
    "ADMIN_ROLE",
    "CurrentUser",
    "get_current_user",
    "get_current_admin_user",
]
