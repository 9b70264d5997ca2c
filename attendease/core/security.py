"""
Access token verification.

Tokens are issued by the identity service; this backend only verifies
them and reads the subject (user id) and role claims.
"""

from typing import Any, Dict

import jwt

from attendease.config.settings import settings
from attendease.config.logging import get_logger
from attendease.core.exceptions import InvalidTokenError, TokenExpiredError

logger = get_logger(__name__)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Verify and decode an access token.

    Raises:
        InvalidTokenError: If the token is malformed, tampered or has no subject
        TokenExpiredError: If the token has expired
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except jwt.ExpiredSignatureError:
        raise TokenExpiredError("Token has expired")
    except jwt.InvalidTokenError as e:
        logger.warning(f"Token verification failed: {str(e)}")
        raise InvalidTokenError("Invalid token", reason=str(e))

    if not payload.get("sub"):
        raise InvalidTokenError("Invalid token payload", reason="missing subject")

    return payload
