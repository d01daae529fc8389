"""In-memory test doubles shared by unit tests."""

import asyncio
from dataclasses import replace
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from src.crm_common.errors import (
    ClientNotFoundError,
    InsufficientBalanceError,
    InvalidAmountError,
    UnauthorizedError,
)
from src.crm_ledger.domain.rules import MAX_CREDITS
from src.crm_profile.domain.models import CreditTransaction, Profile


class InMemoryLedgerRepository:
    """Same contract as LedgerRepository, state kept in dicts."""

    def __init__(self, profiles: list[Profile]) -> None:
        self.profiles = {p.id: p for p in profiles}
        self.transactions: list[CreditTransaction] = []

    def _check_client(self, client_id: str, agent_id: str) -> Profile:
        client = self.profiles.get(client_id)
        if client is None or not client.is_client:
            raise ClientNotFoundError(client_id)
        if client.agent_id is not None and client.agent_id != agent_id:
            raise UnauthorizedError("Client is assigned to another agent")
        return client

    async def apply_load(
        self,
        db: Any,
        client_id: str,
        agent_id: str,
        amount: Decimal,
        receipt_number: str,
        notes: str | None,
        metadata: dict[str, Any] | None = None,
    ) -> tuple[Profile, CreditTransaction]:
        client = self._check_client(client_id, agent_id)
        if client.total_loaded + amount > MAX_CREDITS:
            raise InvalidAmountError(amount)
        balance = client.balance
        await asyncio.sleep(0)  # yield between read and write
        client.balance = balance + amount
        client.total_loaded += amount
        client.withdrawable_balance += amount
        return replace(client), self._record(client_id, agent_id, amount, "load", receipt_number, notes, metadata)

    async def apply_withdraw(
        self,
        db: Any,
        client_id: str,
        agent_id: str,
        amount: Decimal,
        receipt_number: str,
        notes: str | None,
        metadata: dict[str, Any] | None = None,
    ) -> tuple[Profile, CreditTransaction]:
        client = self._check_client(client_id, agent_id)
        if client.withdrawable_balance < amount or client.balance < amount:
            raise InsufficientBalanceError(amount, client.withdrawable_balance)
        client.balance -= amount
        client.withdrawable_balance -= amount
        return replace(client), self._record(client_id, agent_id, amount, "withdraw", receipt_number, notes, metadata)

    def _record(
        self,
        client_id: str,
        agent_id: str,
        amount: Decimal,
        tx_type: str,
        receipt_number: str,
        notes: str | None,
        metadata: dict[str, Any] | None,
    ) -> CreditTransaction:
        tx = CreditTransaction(
            id=f"tx-{len(self.transactions) + 1}",
            client_id=client_id,
            agent_id=agent_id,
            amount=amount,
            type=tx_type,
            status="completed",
            receipt_number=receipt_number,
            notes=notes,
            metadata=metadata or {},
            created_at=datetime.now(UTC),
        )
        self.transactions.append(tx)
        return tx
