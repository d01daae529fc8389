"""FastAPI dependency: get_current_profile.

Resolves (and lazily creates) the user_profiles row for the Bearer identity.
Routers that act on behalf of a profile depend on this instead of the raw identity.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.crm_common.database import get_db_session
from src.crm_gateway.auth.dependencies import get_current_identity
from src.crm_gateway.auth.identity import AuthenticatedIdentity
from src.crm_profile.application.service import ProfileApplicationService
from src.crm_profile.domain.models import Profile

profile_service = ProfileApplicationService()


async def get_current_profile(
    identity: Annotated[AuthenticatedIdentity | None, Depends(get_current_identity)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> Profile:
    return await profile_service.get_or_create_profile(db, identity)
