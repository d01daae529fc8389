"""Unit tests for CreditLedgerService.

Most tests use an in-memory repository that mimics the guarded SQL updates;
a few use AsyncMock to assert on exactly what reaches the repository.
"""

import asyncio
import uuid
from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock

import pytest

from src.crm_common.enums import TransactionType
from src.crm_common.errors import (
    ClientNotFoundError,
    InsufficientBalanceError,
    InvalidAmountError,
    MissingReceiptError,
    PackageNotFoundError,
    UnauthorizedError,
    UnsupportedTransactionTypeError,
)
from src.crm_ledger.application.schemas import LoadCreditsRequest, WithdrawCreditsRequest
from src.crm_ledger.application.service import CreditLedgerService
from src.crm_profile.domain.models import Profile
from tests.fakes import InMemoryLedgerRepository

AGENT = Profile(id="a-1", user_id="user-a1", role="agent", name="Agente Uno")
OTHER_AGENT = Profile(id="a-2", user_id="user-a2", role="agent")
CLIENT_ID = str(uuid.UUID(int=1))


def _client(**kw: Any) -> Profile:
    return Profile(id=CLIENT_ID, user_id="user-c1", role="client", name="Carla", **kw)


@pytest.fixture
def repo() -> InMemoryLedgerRepository:
    return InMemoryLedgerRepository([_client(), AGENT, OTHER_AGENT])


@pytest.fixture
def svc(repo: InMemoryLedgerRepository) -> CreditLedgerService:
    return CreditLedgerService(repo=repo)  # type: ignore[arg-type]


class TestLoadCredits:
    async def test_load_updates_all_counters(
        self, svc: CreditLedgerService, repo: InMemoryLedgerRepository
    ) -> None:
        db = AsyncMock()
        tx = await svc.load_credits(db, AGENT, CLIENT_ID, 500, "R-1")

        client = repo.profiles[CLIENT_ID]
        assert client.balance == Decimal("500.00")
        assert client.total_loaded == Decimal("500.00")
        assert client.withdrawable_balance == Decimal("500.00")
        assert tx.type == "load"
        assert tx.status == "completed"
        assert tx.amount == Decimal("500.00")
        assert tx.agent_id == AGENT.id
        assert tx.receipt_number == "R-1"
        db.commit.assert_awaited_once()

    async def test_non_agent_rejected_before_storage(self) -> None:
        mock_repo = AsyncMock()
        svc = CreditLedgerService(repo=mock_repo)
        client_actor = _client()

        with pytest.raises(UnauthorizedError):
            await svc.load_credits(AsyncMock(), client_actor, CLIENT_ID, 500, "R-1")
        mock_repo.apply_load.assert_not_awaited()

    @pytest.mark.parametrize(
        "amount", [0, -10, None, "abc", "0.005", Decimal("1e13"), Decimal("1e30")]
    )
    async def test_invalid_amount(self, amount: Any) -> None:
        mock_repo = AsyncMock()
        svc = CreditLedgerService(repo=mock_repo)

        with pytest.raises(InvalidAmountError):
            await svc.load_credits(AsyncMock(), AGENT, CLIENT_ID, amount, "R-1")
        mock_repo.apply_load.assert_not_awaited()

    async def test_missing_receipt(self) -> None:
        mock_repo = AsyncMock()
        svc = CreditLedgerService(repo=mock_repo)

        with pytest.raises(MissingReceiptError):
            await svc.load_credits(AsyncMock(), AGENT, CLIENT_ID, 100, "  ")
        mock_repo.apply_load.assert_not_awaited()

    async def test_unknown_client_rolls_back(self, repo: InMemoryLedgerRepository) -> None:
        svc = CreditLedgerService(repo=repo)  # type: ignore[arg-type]
        db = AsyncMock()

        with pytest.raises(ClientNotFoundError):
            await svc.load_credits(db, AGENT, str(uuid.UUID(int=99)), 100, "R-1")
        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()
        assert repo.transactions == []

    async def test_load_past_column_maximum_rolls_back(self) -> None:
        full = Decimal("999999999999.00")
        repo = InMemoryLedgerRepository(
            [_client(balance=full, total_loaded=full, withdrawable_balance=full), AGENT]
        )
        svc = CreditLedgerService(repo=repo)  # type: ignore[arg-type]
        db = AsyncMock()

        with pytest.raises(InvalidAmountError):
            await svc.load_credits(db, AGENT, CLIENT_ID, 1, "R-1")
        db.rollback.assert_awaited_once()
        assert repo.profiles[CLIENT_ID].balance == full
        assert repo.transactions == []

    async def test_agent_profile_is_not_a_client(self, svc: CreditLedgerService) -> None:
        with pytest.raises(ClientNotFoundError):
            await svc.load_credits(AsyncMock(), AGENT, OTHER_AGENT.id, 100, "R-1")

    async def test_client_of_another_agent_rejected(self) -> None:
        repo = InMemoryLedgerRepository([_client(agent_id=OTHER_AGENT.id), AGENT])
        svc = CreditLedgerService(repo=repo)  # type: ignore[arg-type]

        with pytest.raises(UnauthorizedError):
            await svc.load_credits(AsyncMock(), AGENT, CLIENT_ID, 100, "R-1")
        assert repo.profiles[CLIENT_ID].balance == Decimal("0")

    async def test_not_idempotent(
        self, svc: CreditLedgerService, repo: InMemoryLedgerRepository
    ) -> None:
        await svc.load_credits(AsyncMock(), AGENT, CLIENT_ID, 100, "R-1")
        await svc.load_credits(AsyncMock(), AGENT, CLIENT_ID, 100, "R-1")

        assert len(repo.transactions) == 2
        assert repo.profiles[CLIENT_ID].balance == Decimal("200.00")


class TestConcurrency:
    async def test_concurrent_loads_do_not_lose_updates(
        self, svc: CreditLedgerService, repo: InMemoryLedgerRepository
    ) -> None:
        await asyncio.gather(
            *(svc.load_credits(AsyncMock(), AGENT, CLIENT_ID, 50, f"R-{i}") for i in range(10))
        )

        client = repo.profiles[CLIENT_ID]
        assert client.balance == Decimal("500.00")
        assert client.total_loaded == Decimal("500.00")
        assert len(repo.transactions) == 10

    async def test_client_locks_released_after_concurrent_loads(
        self, svc: CreditLedgerService
    ) -> None:
        await asyncio.gather(
            *(svc.load_credits(AsyncMock(), AGENT, CLIENT_ID, 10, f"R-{i}") for i in range(5))
        )

        assert svc._client_locks == {}
        assert svc._lock_users == {}

    async def test_client_locks_released_after_failures(self, svc: CreditLedgerService) -> None:
        for i in range(20):
            with pytest.raises(ClientNotFoundError):
                await svc.load_credits(AsyncMock(), AGENT, str(uuid.UUID(int=100 + i)), 10, "R-1")

        assert svc._client_locks == {}
        assert svc._lock_users == {}


class TestWithdrawCredits:
    async def test_load_then_withdraw_scenario(
        self, svc: CreditLedgerService, repo: InMemoryLedgerRepository
    ) -> None:
        await svc.load_credits(AsyncMock(), AGENT, CLIENT_ID, 500, "R-1")
        tx = await svc.withdraw_credits(AsyncMock(), AGENT, CLIENT_ID, 250, "W-1")

        client = repo.profiles[CLIENT_ID]
        assert tx.type == "withdraw"
        assert client.balance == Decimal("250.00")
        assert client.total_loaded == Decimal("500.00")
        assert client.withdrawable_balance == Decimal("250.00")

        db = AsyncMock()
        with pytest.raises(InsufficientBalanceError):
            await svc.withdraw_credits(db, AGENT, CLIENT_ID, 300, "W-2")
        db.rollback.assert_awaited_once()
        assert client.balance == Decimal("250.00")
        assert len(repo.transactions) == 2

    async def test_withdraw_from_empty_balance(self, svc: CreditLedgerService) -> None:
        with pytest.raises(InsufficientBalanceError):
            await svc.withdraw_credits(AsyncMock(), AGENT, CLIENT_ID, 1, "W-1")


class TestRecord:
    async def test_transfer_is_unsupported(self) -> None:
        mock_repo = AsyncMock()
        svc = CreditLedgerService(repo=mock_repo)

        with pytest.raises(UnsupportedTransactionTypeError):
            await svc.record(AsyncMock(), AGENT, TransactionType.TRANSFER, CLIENT_ID, 10, "T-1")
        mock_repo.apply_load.assert_not_awaited()
        mock_repo.apply_withdraw.assert_not_awaited()

    async def test_validated_values_reach_repository(self) -> None:
        mock_repo = AsyncMock()
        mock_repo.apply_load.return_value = (_client(), AsyncMock())
        svc = CreditLedgerService(repo=mock_repo)
        db = AsyncMock()

        await svc.record(db, AGENT, TransactionType.LOAD, CLIENT_ID, "12.5", " R-7 ", "nota")

        mock_repo.apply_load.assert_awaited_once_with(
            db, CLIENT_ID, AGENT.id, Decimal("12.50"), "R-7", "nota", None
        )


class TestSubmitLoad:
    async def test_package_sets_amount_and_metadata(
        self, svc: CreditLedgerService, repo: InMemoryLedgerRepository
    ) -> None:
        body = LoadCreditsRequest(client_id=CLIENT_ID, package_id="premium", receipt_number="R-9")

        resp = await svc.submit_load(AsyncMock(), AGENT, body)

        assert resp.client_balance == Decimal("500.00")
        assert resp.client_balance_display == "500 fichas"
        assert resp.transaction.amount == Decimal("500.00")
        assert repo.transactions[0].metadata == {"package_id": "premium", "package_price": 4500}

    async def test_package_amount_mismatch(self, svc: CreditLedgerService) -> None:
        body = LoadCreditsRequest(
            client_id=CLIENT_ID, package_id="basic", amount=Decimal("50"), receipt_number="R-1"
        )
        with pytest.raises(InvalidAmountError):
            await svc.submit_load(AsyncMock(), AGENT, body)

    async def test_unknown_package(self, svc: CreditLedgerService) -> None:
        body = LoadCreditsRequest(client_id=CLIENT_ID, package_id="platinum", receipt_number="R-1")
        with pytest.raises(PackageNotFoundError):
            await svc.submit_load(AsyncMock(), AGENT, body)

    async def test_role_checked_before_package(self, svc: CreditLedgerService) -> None:
        body = LoadCreditsRequest(client_id=CLIENT_ID, package_id="platinum", receipt_number="R-1")
        with pytest.raises(UnauthorizedError):
            await svc.submit_load(AsyncMock(), _client(), body)

    async def test_submit_withdraw(
        self, svc: CreditLedgerService, repo: InMemoryLedgerRepository
    ) -> None:
        await svc.load_credits(AsyncMock(), AGENT, CLIENT_ID, 100, "R-1")
        body = WithdrawCreditsRequest(client_id=CLIENT_ID, amount=Decimal("40"), receipt_number="W-1")

        resp = await svc.submit_withdraw(AsyncMock(), AGENT, body)

        assert resp.client_balance == Decimal("60.00")
        assert resp.client_withdrawable_balance == Decimal("60.00")
        assert resp.client_total_loaded == Decimal("100.00")
