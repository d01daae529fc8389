"""ProfileRepository — concrete implementation of ProfileRepositoryProtocol.

Reads and identity-level writes on user_profiles, plus the read side of
credit_transactions. Balance columns are NEVER written here; they are only
mutated by src.crm_ledger.infrastructure.persistence.

Transaction ownership: the CALLER (application service) commits or rolls back.
"""

import json
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.crm_common.database import is_unique_violation
from src.crm_common.errors import DuplicateProfileError, InternalError
from src.crm_profile.domain.models import CreditTransaction, Profile
from src.crm_profile.infrastructure.db_models import UserProfileORM

PROFILE_COLUMNS = """
    id, user_id, role, name, email, phone, avatar_url,
    balance, total_loaded, withdrawable_balance, status, agent_id,
    google_contact_id, metadata, created_at, updated_at
"""

TRANSACTION_COLUMNS = """
    id, client_id, agent_id, amount, type, receipt_number, notes,
    status, metadata, created_at
"""

# Columns a caller may change through update_profile. Balance columns are excluded.
UPDATABLE_PROFILE_COLUMNS = frozenset(
    {"name", "phone", "avatar_url", "metadata", "role", "agent_id", "status"}
)

_GET_BY_USER_ID_SQL = text(f"""
    SELECT {PROFILE_COLUMNS}
    FROM user_profiles
    WHERE user_id = :user_id
""")

_INSERT_PROFILE_SQL = text(f"""
    INSERT INTO user_profiles (user_id, name, email, role)
    VALUES (:user_id, :name, :email, :role)
    RETURNING {PROFILE_COLUMNS}
""")

_LIST_CLIENTS_SQL = text(f"""
    SELECT {PROFILE_COLUMNS}
    FROM user_profiles
    WHERE agent_id = CAST(:agent_id AS uuid)
    ORDER BY created_at DESC, id DESC
""")

_LIST_TRANSACTIONS_SQL = text(f"""
    SELECT {TRANSACTION_COLUMNS}
    FROM credit_transactions
    WHERE (client_id = CAST(:profile_id AS uuid) OR agent_id = CAST(:profile_id AS uuid))
      AND (CAST(:cursor_created_at AS timestamptz) IS NULL
           OR (created_at, id) < (CAST(:cursor_created_at AS timestamptz),
                                  CAST(:cursor_id AS uuid)))
      AND (CAST(:tx_type AS varchar) IS NULL OR type = CAST(:tx_type AS varchar))
    ORDER BY created_at DESC, id DESC
    LIMIT :limit
""")


def _load_json(value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, str):
        return dict(json.loads(value))
    return dict(value)


def row_to_profile(row: Any) -> Profile:
    return Profile(
        id=str(row.id),
        user_id=row.user_id,
        role=row.role,
        name=row.name,
        email=row.email,
        phone=row.phone,
        avatar_url=row.avatar_url,
        balance=row.balance,
        total_loaded=row.total_loaded,
        withdrawable_balance=row.withdrawable_balance,
        status=row.status,
        agent_id=str(row.agent_id) if row.agent_id else None,
        google_contact_id=row.google_contact_id,
        metadata=_load_json(row.metadata),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def orm_to_profile(model: UserProfileORM) -> Profile:
    return Profile(
        id=str(model.id),
        user_id=model.user_id,
        role=model.role,
        name=model.name,
        email=model.email,
        phone=model.phone,
        avatar_url=model.avatar_url,
        balance=model.balance,
        total_loaded=model.total_loaded,
        withdrawable_balance=model.withdrawable_balance,
        status=model.status,
        agent_id=str(model.agent_id) if model.agent_id else None,
        google_contact_id=model.google_contact_id,
        metadata=_load_json(model.metadata_),
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def row_to_transaction(row: Any) -> CreditTransaction:
    return CreditTransaction(
        id=str(row.id),
        client_id=str(row.client_id),
        agent_id=str(row.agent_id),
        amount=row.amount,
        type=row.type,
        status=row.status,
        receipt_number=row.receipt_number,
        notes=row.notes,
        metadata=_load_json(row.metadata),
        created_at=row.created_at,
    )


class ProfileRepository:
    """Concrete repository over user_profiles / credit_transactions."""

    async def get_profile_by_user_id(
        self, db: AsyncSession, user_id: str
    ) -> Profile | None:
        result = await db.execute(_GET_BY_USER_ID_SQL, {"user_id": user_id})
        row = result.fetchone()
        return row_to_profile(row) if row else None

    async def get_profile_by_id(
        self, db: AsyncSession, profile_id: str
    ) -> Profile | None:
        result = await db.execute(
            select(UserProfileORM)
            .where(UserProfileORM.id == UUID(profile_id))
            # Rows are also written with raw SQL; never serve a stale identity-map copy.
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return orm_to_profile(model) if model else None

    async def create_profile(
        self,
        db: AsyncSession,
        user_id: str,
        name: str | None,
        email: str | None,
        role: str,
    ) -> Profile:
        """Insert a profile row; the UNIQUE (user_id) constraint arbitrates races."""
        try:
            result = await db.execute(
                _INSERT_PROFILE_SQL,
                {"user_id": user_id, "name": name, "email": email, "role": role},
            )
        except IntegrityError as exc:
            if is_unique_violation(exc, "uq_user_profiles_user_id"):
                raise DuplicateProfileError(user_id) from exc
            raise
        row = result.fetchone()
        if row is None:
            raise InternalError("Profile insert returned no rows")
        return row_to_profile(row)

    async def update_profile(
        self, db: AsyncSession, profile_id: str, changes: dict[str, Any]
    ) -> Profile | None:
        unknown = set(changes) - UPDATABLE_PROFILE_COLUMNS
        if unknown:
            raise InternalError(f"Refusing to update columns: {sorted(unknown)}")
        if not changes:
            return await self.get_profile_by_id(db, profile_id)

        assignments = []
        params: dict[str, Any] = {"profile_id": profile_id}
        for column in sorted(changes):
            value = changes[column]
            if column == "metadata":
                assignments.append("metadata = CAST(:metadata AS jsonb)")
                value = json.dumps(value or {})
            elif column == "agent_id":
                assignments.append("agent_id = CAST(:agent_id AS uuid)")
            else:
                assignments.append(f"{column} = :{column}")
            params[column] = value

        sql = text(f"""
            UPDATE user_profiles
            SET {", ".join(assignments)}, updated_at = NOW()
            WHERE id = CAST(:profile_id AS uuid)
            RETURNING {PROFILE_COLUMNS}
        """)
        result = await db.execute(sql, params)
        row = result.fetchone()
        return row_to_profile(row) if row else None

    async def list_clients_of_agent(
        self, db: AsyncSession, agent_id: str
    ) -> list[Profile]:
        result = await db.execute(_LIST_CLIENTS_SQL, {"agent_id": agent_id})
        return [row_to_profile(row) for row in result.fetchall()]

    async def list_transactions_for_profile(
        self,
        db: AsyncSession,
        profile_id: str,
        cursor: tuple[datetime, str] | None,
        limit: int,
        tx_type: str | None,
    ) -> list[CreditTransaction]:
        cursor_created_at, cursor_id = cursor if cursor else (None, None)
        result = await db.execute(
            _LIST_TRANSACTIONS_SQL,
            {
                "profile_id": profile_id,
                "cursor_created_at": cursor_created_at,
                "cursor_id": cursor_id,
                "tx_type": tx_type,
                "limit": limit,
            },
        )
        return [row_to_transaction(row) for row in result.fetchall()]
