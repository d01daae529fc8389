"""Repository Protocol for balance-mutating ledger writes.

Every method applies the balance change and inserts the matching
credit_transactions row inside the caller's transaction. Nothing is
committed here.
"""

from decimal import Decimal
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.crm_profile.domain.models import CreditTransaction, Profile


class LedgerRepositoryProtocol(Protocol):
    async def apply_load(
        self,
        db: AsyncSession,
        client_id: str,
        agent_id: str,
        amount: Decimal,
        receipt_number: str,
        notes: str | None,
        metadata: dict[str, Any] | None = None,
    ) -> tuple[Profile, CreditTransaction]: ...

    async def apply_withdraw(
        self,
        db: AsyncSession,
        client_id: str,
        agent_id: str,
        amount: Decimal,
        receipt_number: str,
        notes: str | None,
        metadata: dict[str, Any] | None = None,
    ) -> tuple[Profile, CreditTransaction]: ...
