"""ProfileApplicationService — resolves the caller's profile and lists dependents.

The authenticated identity is always passed in explicitly by the caller.
Writes (lazy profile creation, self-update) commit or roll back here; list
operations are read-only and run without an explicit transaction.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.crm_common.enums import ProfileRole
from src.crm_common.errors import (
    DuplicateProfileError,
    NotAuthenticatedError,
    ProfileNotFoundError,
)
from src.crm_gateway.auth.identity import AuthenticatedIdentity
from src.crm_profile.application.schemas import (
    ProfileUpdateRequest,
    TransactionItem,
    TransactionListResponse,
    cursor_decode,
    cursor_encode,
)
from src.crm_profile.domain.models import Profile
from src.crm_profile.domain.repository import ProfileRepositoryProtocol
from src.crm_profile.infrastructure.persistence import ProfileRepository

logger = logging.getLogger(__name__)


class ProfileApplicationService:
    def __init__(self, repo: ProfileRepositoryProtocol | None = None) -> None:
        self._repo: ProfileRepositoryProtocol = repo or ProfileRepository()

    async def get_or_create_profile(
        self, db: AsyncSession, identity: AuthenticatedIdentity | None
    ) -> Profile:
        """Return the caller's profile, creating a client profile on first access.

        Two concurrent first accesses race on UNIQUE (user_id); the loser gets
        DuplicateProfileError from the repository and re-reads the winner's row.
        """
        if identity is None:
            raise NotAuthenticatedError()

        profile = await self._repo.get_profile_by_user_id(db, identity.user_id)
        if profile is not None:
            return profile

        try:
            profile = await self._repo.create_profile(
                db,
                identity.user_id,
                identity.display_name,
                identity.email,
                ProfileRole.CLIENT.value,
            )
            await db.commit()
        except DuplicateProfileError:
            await db.rollback()
            logger.info("Profile for user %s created concurrently; re-reading", identity.user_id)
            existing = await self._repo.get_profile_by_user_id(db, identity.user_id)
            if existing is None:
                raise
            return existing
        except Exception:
            await db.rollback()
            raise

        logger.info("Created client profile %s for user %s", profile.id, identity.user_id)
        return profile

    async def update_own_profile(
        self, db: AsyncSession, profile: Profile, body: ProfileUpdateRequest
    ) -> Profile:
        changes = body.model_dump(exclude_unset=True)
        try:
            updated = await self._repo.update_profile(db, profile.id, changes)
            if updated is None:
                raise ProfileNotFoundError(profile.id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return updated

    async def list_clients(self, db: AsyncSession, profile: Profile) -> list[Profile]:
        """Clients assigned to the agent; empty for any other role."""
        if not profile.is_agent:
            return []
        return await self._repo.list_clients_of_agent(db, profile.id)

    async def list_transactions(
        self,
        db: AsyncSession,
        profile: Profile,
        cursor: str | None = None,
        limit: int = 50,
        tx_type: str | None = None,
    ) -> TransactionListResponse:
        """Transactions where the profile is client or agent, most recent first."""
        decoded = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        txs = await self._repo.list_transactions_for_profile(
            db, profile.id, decoded, limit + 1, tx_type
        )
        has_more = len(txs) > limit
        page = txs[:limit]

        next_cursor = None
        if has_more and page and page[-1].created_at is not None:
            next_cursor = cursor_encode(page[-1].created_at, page[-1].id)
        return TransactionListResponse(
            items=[TransactionItem.from_transaction(t) for t in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )
