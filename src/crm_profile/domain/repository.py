"""Repository Protocol — dependency inversion for testability.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from datetime import datetime
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.crm_profile.domain.models import CreditTransaction, Profile


class ProfileRepositoryProtocol(Protocol):
    async def get_profile_by_user_id(
        self, db: AsyncSession, user_id: str
    ) -> Profile | None: ...

    async def get_profile_by_id(
        self, db: AsyncSession, profile_id: str
    ) -> Profile | None: ...

    async def create_profile(
        self,
        db: AsyncSession,
        user_id: str,
        name: str | None,
        email: str | None,
        role: str,
    ) -> Profile: ...

    async def update_profile(
        self, db: AsyncSession, profile_id: str, changes: dict[str, Any]
    ) -> Profile | None: ...

    async def list_clients_of_agent(
        self, db: AsyncSession, agent_id: str
    ) -> list[Profile]: ...

    async def list_transactions_for_profile(
        self,
        db: AsyncSession,
        profile_id: str,
        cursor: tuple[datetime, str] | None,
        limit: int,
        tx_type: str | None,
    ) -> list[CreditTransaction]: ...
