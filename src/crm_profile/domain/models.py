"""Domain models for crm_profile — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from src.crm_common.enums import ProfileRole, ProfileStatus


@dataclass
class Profile:
    id: str
    user_id: str
    role: str                              # ProfileRole value
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    avatar_url: str | None = None
    balance: Decimal = Decimal("0")
    total_loaded: Decimal = Decimal("0")   # never decreases
    withdrawable_balance: Decimal = Decimal("0")
    status: str = ProfileStatus.ACTIVE.value
    agent_id: str | None = None
    google_contact_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_agent(self) -> bool:
        return self.role == ProfileRole.AGENT

    @property
    def is_admin(self) -> bool:
        return self.role == ProfileRole.ADMIN

    @property
    def is_client(self) -> bool:
        return self.role == ProfileRole.CLIENT


@dataclass
class CreditTransaction:
    """Append-only audit record of a balance-changing event."""

    id: str
    client_id: str
    agent_id: str
    amount: Decimal                  # always positive; direction comes from type
    type: str                        # TransactionType value
    status: str                      # TransactionStatus value
    receipt_number: str | None = None
    notes: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
