"""Admin application service: role changes and client-to-agent assignment."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.crm_common.enums import ProfileRole
from src.crm_common.errors import (
    ClientNotFoundError,
    InvalidRoleError,
    ProfileNotFoundError,
    UnauthorizedError,
)
from src.crm_profile.domain.models import Profile
from src.crm_profile.domain.repository import ProfileRepositoryProtocol
from src.crm_profile.infrastructure.persistence import ProfileRepository

logger = logging.getLogger(__name__)


def _require_admin(actor: Profile) -> None:
    if not actor.is_admin:
        raise UnauthorizedError("Admin role required")


class AdminService:
    def __init__(self, repo: ProfileRepositoryProtocol | None = None) -> None:
        self._repo: ProfileRepositoryProtocol = repo or ProfileRepository()

    async def set_role(
        self, db: AsyncSession, admin: Profile, profile_id: str, role: str
    ) -> Profile:
        _require_admin(admin)
        try:
            new_role = ProfileRole(role)
        except ValueError:
            raise InvalidRoleError(role) from None

        target = await self._repo.get_profile_by_id(db, profile_id)
        if target is None:
            raise ProfileNotFoundError(profile_id)

        try:
            updated = await self._repo.update_profile(db, profile_id, {"role": new_role.value})
            if updated is None:
                raise ProfileNotFoundError(profile_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Admin %s changed role of %s: %s -> %s", admin.id, profile_id, target.role, new_role.value
        )
        return updated

    async def assign_agent(
        self, db: AsyncSession, admin: Profile, client_id: str, agent_id: str | None
    ) -> Profile:
        """Attach a client to an agent; agent_id=None detaches it."""
        _require_admin(admin)

        client = await self._repo.get_profile_by_id(db, client_id)
        if client is None or not client.is_client:
            raise ClientNotFoundError(client_id)

        if agent_id is not None:
            agent = await self._repo.get_profile_by_id(db, agent_id)
            if agent is None:
                raise ProfileNotFoundError(agent_id)
            if not agent.is_agent:
                raise InvalidRoleError(agent.role)

        try:
            updated = await self._repo.update_profile(db, client_id, {"agent_id": agent_id})
            if updated is None:
                raise ClientNotFoundError(client_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info("Admin %s assigned client %s to agent %s", admin.id, client_id, agent_id)
        return updated
