from typing import Any

from jose import jwt, JWTError

from plantpal.config import settings
from plantpal.errors import AuthenticationError

BEARER_PREFIX = "Bearer "


def strip_bearer(value: str) -> str:
    """Return the credential without an optional ``Bearer `` prefix."""
    if value.startswith(BEARER_PREFIX):
        return value[len(BEARER_PREFIX):].strip()
    return value


def verify_token(token: str) -> dict[str, Any]:
    """Returns the decoded claims, raises AuthenticationError otherwise."""
    try:
        return jwt.decode(
            token,
            settings.AUTH_ACCESS_TOKEN_SECRET,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError as e:
        raise AuthenticationError(f"Invalid or expired token: {e}") from e
