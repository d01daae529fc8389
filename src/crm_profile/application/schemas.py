"""Pydantic schemas and cursor utilities for crm_profile API."""

import base64
import json
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.crm_common.credits import credits_to_display
from src.crm_common.datetime_utils import to_iso
from src.crm_profile.domain.models import CreditTransaction, Profile

# ---------------------------------------------------------------------------
# Cursor-based pagination utilities
# ---------------------------------------------------------------------------


def cursor_encode(created_at: datetime, tx_id: str) -> str:
    """Encode the (created_at, id) sort key into an opaque Base64 cursor string."""
    payload = json.dumps({"created_at": created_at.isoformat(), "id": tx_id})
    return base64.urlsafe_b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> tuple[datetime, str] | None:
    """Decode a cursor back to (created_at, id). Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.urlsafe_b64decode(cursor.encode()).decode())
        return datetime.fromisoformat(payload["created_at"]), str(payload["id"])
    except Exception:
        return None


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class ProfileUpdateRequest(BaseModel):
    """Self-service profile edit. Balance, role and agent fields are rejected."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(None, max_length=255)
    phone: str | None = Field(None, max_length=64)
    avatar_url: str | None = None
    metadata: dict[str, Any] | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ProfileResponse(BaseModel):
    id: str
    user_id: str
    role: str
    name: str | None
    email: str | None
    phone: str | None
    avatar_url: str | None
    balance: Decimal
    balance_display: str
    total_loaded: Decimal
    withdrawable_balance: Decimal
    status: str
    agent_id: str | None
    google_contact_id: str | None
    metadata: dict[str, Any]
    created_at: str
    updated_at: str

    @classmethod
    def from_profile(cls, p: Profile) -> "ProfileResponse":
        return cls(
            id=p.id,
            user_id=p.user_id,
            role=p.role,
            name=p.name,
            email=p.email,
            phone=p.phone,
            avatar_url=p.avatar_url,
            balance=p.balance,
            balance_display=credits_to_display(p.balance),
            total_loaded=p.total_loaded,
            withdrawable_balance=p.withdrawable_balance,
            status=p.status,
            agent_id=p.agent_id,
            google_contact_id=p.google_contact_id,
            metadata=p.metadata,
            created_at=to_iso(p.created_at),
            updated_at=to_iso(p.updated_at),
        )


class TransactionItem(BaseModel):
    id: str
    client_id: str
    agent_id: str
    amount: Decimal
    amount_display: str
    type: str
    status: str
    receipt_number: str | None
    notes: str | None
    created_at: str  # ISO8601 string

    @classmethod
    def from_transaction(cls, t: CreditTransaction) -> "TransactionItem":
        return cls(
            id=t.id,
            client_id=t.client_id,
            agent_id=t.agent_id,
            amount=t.amount,
            amount_display=credits_to_display(t.amount),
            type=t.type,
            status=t.status,
            receipt_number=t.receipt_number,
            notes=t.notes,
            created_at=to_iso(t.created_at),
        )


class TransactionListResponse(BaseModel):
    items: list[TransactionItem]
    next_cursor: str | None
    has_more: bool
