"""
Security Utilities

JWT decoding for tokens issued by the platform's identity provider.
This service never mints user tokens itself.
"""

import logging
from typing import Any

from jose import JWTError, jwt

from accreda.core.config import settings

logger = logging.getLogger(__name__)


def decode_token(token: str) -> dict[str, Any] | None:
    """
    Decode and verify a JWT.

    Checks the signature, the expiry and (when configured) the audience.

    Args:
        token: Encoded JWT from the Authorization header

    Returns:
        The claims dict, or None if the token is invalid or expired
    """
    options = {"verify_aud": settings.jwt_audience is not None}
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            options=options,
        )
    except JWTError as e:
        logger.debug(f"JWT decode failed: {e}")
        return None
