"""CreditLedgerService — records credit loads/withdrawals against client balances.

Each operation is one database transaction: the guarded balance UPDATE and
the credit_transactions INSERT commit together or roll back together.
Operations on the same client inside this process are also serialized by a
per-client asyncio.Lock; across processes the in-place SQL increment is what
prevents lost updates.

Operations are intentionally NOT idempotent: there is no dedup key, so two
identical calls record two transactions.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.crm_common.enums import TransactionType
from src.crm_common.errors import InvalidAmountError, UnsupportedTransactionTypeError
from src.crm_ledger.application.schemas import (
    LedgerOperationResponse,
    LoadCreditsRequest,
    WithdrawCreditsRequest,
)
from src.crm_ledger.domain.packages import get_package
from src.crm_ledger.domain.repository import LedgerRepositoryProtocol
from src.crm_ledger.domain.rules import check_acting_agent, validate_ledger_request
from src.crm_ledger.infrastructure.persistence import LedgerRepository
from src.crm_profile.domain.models import CreditTransaction, Profile

logger = logging.getLogger(__name__)


class CreditLedgerService:
    def __init__(self, repo: LedgerRepositoryProtocol | None = None) -> None:
        self._repo: LedgerRepositoryProtocol = repo or LedgerRepository()
        self._client_locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    async def load_credits(
        self,
        db: AsyncSession,
        agent: Profile,
        client_id: str,
        amount: Decimal | int | str | None,
        receipt_number: str | None,
        notes: str | None = None,
    ) -> CreditTransaction:
        _, tx = await self.record(
            db, agent, TransactionType.LOAD, client_id, amount, receipt_number, notes
        )
        return tx

    async def withdraw_credits(
        self,
        db: AsyncSession,
        agent: Profile,
        client_id: str,
        amount: Decimal | int | str | None,
        receipt_number: str | None,
        notes: str | None = None,
    ) -> CreditTransaction:
        _, tx = await self.record(
            db, agent, TransactionType.WITHDRAW, client_id, amount, receipt_number, notes
        )
        return tx

    async def record(
        self,
        db: AsyncSession,
        agent: Profile,
        tx_type: TransactionType,
        client_id: str,
        amount: Decimal | int | str | None,
        receipt_number: str | None,
        notes: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> tuple[Profile, CreditTransaction]:
        """Validate, then apply one ledger operation. Returns (updated client, transaction)."""
        value, receipt = validate_ledger_request(agent, amount, receipt_number)

        if tx_type == TransactionType.LOAD:
            apply = self._repo.apply_load
        elif tx_type == TransactionType.WITHDRAW:
            apply = self._repo.apply_withdraw
        elif tx_type == TransactionType.TRANSFER:
            # No counterparty profile is modeled for transfers.
            raise UnsupportedTransactionTypeError(tx_type.value)
        else:
            raise UnsupportedTransactionTypeError(str(tx_type))

        async with self._client_lock(client_id):
            try:
                client, tx = await apply(
                    db, client_id, agent.id, value, receipt, notes, metadata
                )
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info(
            "Recorded %s of %s for client %s by agent %s (tx=%s receipt=%s)",
            tx.type,
            tx.amount,
            client_id,
            agent.id,
            tx.id,
            receipt,
        )
        return client, tx

    @asynccontextmanager
    async def _client_lock(self, client_id: str) -> AsyncIterator[None]:
        """Hold the per-client lock; the entry is dropped once nobody holds or awaits it."""
        lock = self._client_locks.setdefault(client_id, asyncio.Lock())
        self._lock_users[client_id] = self._lock_users.get(client_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[client_id] -= 1
            if not self._lock_users[client_id]:
                del self._lock_users[client_id]
                del self._client_locks[client_id]

    async def submit_load(
        self, db: AsyncSession, agent: Profile, body: LoadCreditsRequest
    ) -> LedgerOperationResponse:
        """API entry point: resolves an optional package into the amount."""
        check_acting_agent(agent)
        amount: Decimal | None = body.amount
        metadata: dict[str, Any] = {}
        if body.package_id:
            package = get_package(body.package_id)
            if body.amount is not None and body.amount != package.credits:
                raise InvalidAmountError(body.amount)
            amount = package.credits
            metadata = {"package_id": package.id, "package_price": package.price}

        client, tx = await self.record(
            db,
            agent,
            TransactionType.LOAD,
            str(body.client_id),
            amount,
            body.receipt_number,
            body.notes,
            metadata,
        )
        return LedgerOperationResponse.from_result(client, tx)

    async def submit_withdraw(
        self, db: AsyncSession, agent: Profile, body: WithdrawCreditsRequest
    ) -> LedgerOperationResponse:
        client, tx = await self.record(
            db,
            agent,
            TransactionType.WITHDRAW,
            str(body.client_id),
            body.amount,
            body.receipt_number,
            body.notes,
        )
        return LedgerOperationResponse.from_result(client, tx)
