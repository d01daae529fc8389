"""LedgerRepository — concrete implementation of LedgerRepositoryProtocol.

All balance-mutating operations use an atomic PostgreSQL UPDATE ... RETURNING
that increments in place (balance = balance + :amount). Application code never
reads a balance and writes back a computed sum.

A result of 0 rows means a business constraint was violated; the row is then
re-read only to pick the right error (missing client, other agent's client,
insufficient funds, a total past the column maximum).

Transaction ownership: the CALLER commits after the ledger row is inserted,
so the balance change and its credit_transactions row land together or not at all.
"""

import json
from decimal import Decimal
from typing import Any, NoReturn

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.crm_common.enums import ProfileRole, TransactionStatus, TransactionType
from src.crm_common.errors import (
    ClientNotFoundError,
    InsufficientBalanceError,
    InternalError,
    InvalidAmountError,
    UnauthorizedError,
)
from src.crm_ledger.domain.rules import MAX_CREDITS
from src.crm_profile.domain.models import CreditTransaction, Profile
from src.crm_profile.infrastructure.persistence import (
    PROFILE_COLUMNS,
    TRANSACTION_COLUMNS,
    row_to_profile,
    row_to_transaction,
)

# ---------------------------------------------------------------------------
# SQL: user_profiles balance mutations
# ---------------------------------------------------------------------------

_LOAD_SQL = text(f"""
    UPDATE user_profiles
    SET balance              = balance + :amount,
        total_loaded         = total_loaded + :amount,
        withdrawable_balance = withdrawable_balance + :amount,
        updated_at = NOW()
    WHERE id = CAST(:client_id AS uuid)
      AND role = 'client'
      AND (agent_id IS NULL OR agent_id = CAST(:agent_id AS uuid))
      -- total_loaded is never below balance or withdrawable_balance
      AND total_loaded + :amount <= :max_credits
    RETURNING {PROFILE_COLUMNS}
""")

_WITHDRAW_SQL = text(f"""
    UPDATE user_profiles
    SET balance              = balance - :amount,
        withdrawable_balance = withdrawable_balance - :amount,
        updated_at = NOW()
    WHERE id = CAST(:client_id AS uuid)
      AND role = 'client'
      AND (agent_id IS NULL OR agent_id = CAST(:agent_id AS uuid))
      AND withdrawable_balance >= :amount
      AND balance >= :amount
    RETURNING {PROFILE_COLUMNS}
""")

_GET_CLIENT_SQL = text(f"""
    SELECT {PROFILE_COLUMNS}
    FROM user_profiles
    WHERE id = CAST(:client_id AS uuid)
""")

# ---------------------------------------------------------------------------
# SQL: credit_transactions (append-only)
# ---------------------------------------------------------------------------

_INSERT_TRANSACTION_SQL = text(f"""
    INSERT INTO credit_transactions
        (client_id, agent_id, amount, type, receipt_number, notes, status, metadata)
    VALUES
        (CAST(:client_id AS uuid), CAST(:agent_id AS uuid), :amount, :type,
         :receipt_number, :notes, :status, CAST(:metadata AS jsonb))
    RETURNING {TRANSACTION_COLUMNS}
""")


class LedgerRepository:
    """Every balance change is a single atomic UPDATE at the SQL level."""

    async def apply_load(
        self,
        db: AsyncSession,
        client_id: str,
        agent_id: str,
        amount: Decimal,
        receipt_number: str,
        notes: str | None,
        metadata: dict[str, Any] | None = None,
    ) -> tuple[Profile, CreditTransaction]:
        result = await db.execute(
            _LOAD_SQL,
            {
                "client_id": client_id,
                "agent_id": agent_id,
                "amount": amount,
                "max_credits": MAX_CREDITS,
            },
        )
        row = result.fetchone()
        if row is None:
            await self._raise_for_rejected_client(
                db, client_id, agent_id, amount, TransactionType.LOAD
            )
        client = row_to_profile(row)
        tx = await self._insert_transaction(
            db, client_id, agent_id, amount, TransactionType.LOAD, receipt_number, notes, metadata
        )
        return client, tx

    async def apply_withdraw(
        self,
        db: AsyncSession,
        client_id: str,
        agent_id: str,
        amount: Decimal,
        receipt_number: str,
        notes: str | None,
        metadata: dict[str, Any] | None = None,
    ) -> tuple[Profile, CreditTransaction]:
        result = await db.execute(
            _WITHDRAW_SQL, {"client_id": client_id, "agent_id": agent_id, "amount": amount}
        )
        row = result.fetchone()
        if row is None:
            await self._raise_for_rejected_client(
                db, client_id, agent_id, amount, TransactionType.WITHDRAW
            )
        client = row_to_profile(row)
        tx = await self._insert_transaction(
            db,
            client_id,
            agent_id,
            amount,
            TransactionType.WITHDRAW,
            receipt_number,
            notes,
            metadata,
        )
        return client, tx

    async def _insert_transaction(
        self,
        db: AsyncSession,
        client_id: str,
        agent_id: str,
        amount: Decimal,
        tx_type: TransactionType,
        receipt_number: str,
        notes: str | None,
        metadata: dict[str, Any] | None,
    ) -> CreditTransaction:
        result = await db.execute(
            _INSERT_TRANSACTION_SQL,
            {
                "client_id": client_id,
                "agent_id": agent_id,
                "amount": amount,
                "type": tx_type.value,
                "receipt_number": receipt_number,
                "notes": notes,
                "status": TransactionStatus.COMPLETED.value,
                "metadata": json.dumps(metadata or {}),
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Transaction insert returned no rows")
        return row_to_transaction(row)

    async def _raise_for_rejected_client(
        self,
        db: AsyncSession,
        client_id: str,
        agent_id: str,
        amount: Decimal,
        tx_type: TransactionType,
    ) -> NoReturn:
        """Classify why a guarded UPDATE matched no row. Always raises."""
        result = await db.execute(_GET_CLIENT_SQL, {"client_id": client_id})
        row = result.fetchone()
        if row is None or row.role != ProfileRole.CLIENT.value:
            raise ClientNotFoundError(client_id)
        if row.agent_id is not None and str(row.agent_id) != agent_id:
            raise UnauthorizedError("Client is assigned to another agent")
        if tx_type == TransactionType.LOAD and row.total_loaded + amount > MAX_CREDITS:
            raise InvalidAmountError(amount)
        raise InsufficientBalanceError(amount, row.withdrawable_balance)
