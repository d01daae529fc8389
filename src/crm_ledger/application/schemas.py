"""Pydantic schemas for crm_ledger API."""

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from src.crm_common.credits import credits_to_display, price_to_display
from src.crm_ledger.domain.packages import CreditPackage
from src.crm_profile.application.schemas import TransactionItem
from src.crm_profile.domain.models import CreditTransaction, Profile

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------
# amount/receipt are deliberately unconstrained here: the service validates
# them after the role check so error precedence is the same for every caller.


class LoadCreditsRequest(BaseModel):
    client_id: UUID
    amount: Decimal | None = Field(None, description="Fichas to load; omit when using package_id")
    package_id: str | None = Field(None, description="Predefined package id (basic, premium, ...)")
    receipt_number: str = Field("", max_length=128)
    notes: str | None = Field(None, max_length=2000)


class WithdrawCreditsRequest(BaseModel):
    client_id: UUID
    amount: Decimal | None = None
    receipt_number: str = Field("", max_length=128)
    notes: str | None = Field(None, max_length=2000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LedgerOperationResponse(BaseModel):
    transaction: TransactionItem
    client_id: str
    client_balance: Decimal
    client_balance_display: str
    client_total_loaded: Decimal
    client_withdrawable_balance: Decimal

    @classmethod
    def from_result(
        cls, client: Profile, tx: CreditTransaction
    ) -> "LedgerOperationResponse":
        return cls(
            transaction=TransactionItem.from_transaction(tx),
            client_id=client.id,
            client_balance=client.balance,
            client_balance_display=credits_to_display(client.balance),
            client_total_loaded=client.total_loaded,
            client_withdrawable_balance=client.withdrawable_balance,
        )


class CreditPackageItem(BaseModel):
    id: str
    name: str
    credits: Decimal
    price: int
    price_display: str
    description: str

    @classmethod
    def from_package(cls, p: CreditPackage) -> "CreditPackageItem":
        return cls(
            id=p.id,
            name=p.name,
            credits=p.credits,
            price=p.price,
            price_display=price_to_display(p.price),
            description=credits_to_display(p.credits),
        )
