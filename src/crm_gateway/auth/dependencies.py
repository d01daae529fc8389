"""FastAPI dependencies resolving the caller's identity from the Bearer token.

Usage in any protected router:
    from src.crm_gateway.auth.dependencies import require_identity

    @router.get("/protected")
    async def protected(identity: AuthenticatedIdentity = Depends(require_identity)):
        ...
"""

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from src.crm_common.errors import NotAuthenticatedError
from src.crm_gateway.auth.identity import AuthenticatedIdentity
from src.crm_gateway.auth.jwt_handler import identity_from_token

# auto_error=False: a missing token yields None and the service layer decides
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token", auto_error=False)


async def get_current_identity(
    token: str | None = Depends(oauth2_scheme),
) -> AuthenticatedIdentity | None:
    """Decode the Bearer token if one was sent; None when the header is absent.

    A token that is present but invalid or expired raises NotAuthenticatedError (401).
    """
    if not token:
        return None
    return identity_from_token(token)


async def require_identity(
    identity: AuthenticatedIdentity | None = Depends(get_current_identity),
) -> AuthenticatedIdentity:
    if identity is None:
        raise NotAuthenticatedError()
    return identity
