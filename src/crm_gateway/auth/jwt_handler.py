"""JWT access-token handling.

Tokens are issued by the external identity provider and signed with the
shared JWT_SECRET (HS256). This service only verifies them; create_access_token
exists for local development and tests.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from config.settings import settings
from src.crm_common.errors import NotAuthenticatedError
from src.crm_gateway.auth.identity import AuthenticatedIdentity

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"
_ACCESS_EXPIRE = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)


def create_access_token(
    user_id: str, email: str | None = None, name: str | None = None
) -> str:
    """Issue a short-lived access token (default: 30 min)."""
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        "sub": user_id,
        "type": "access",
        "iat": now,
        "exp": now + _ACCESS_EXPIRE,
    }
    if email:
        payload["email"] = email
    if name:
        payload["name"] = name
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def decode_token(token: str) -> dict[str, Any]:
    """Decode and validate an access token.

    Raises:
        NotAuthenticatedError: signature invalid, token expired, or not an access token.
    """
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise NotAuthenticatedError() from None

    if payload.get("type") != "access":
        raise NotAuthenticatedError()
    return payload


def identity_from_token(token: str) -> AuthenticatedIdentity:
    payload = decode_token(token)
    user_id = payload.get("sub")
    if not user_id:
        raise NotAuthenticatedError()
    return AuthenticatedIdentity(
        user_id=str(user_id),
        email=payload.get("email"),
        name=payload.get("name"),
    )
