"""crm_profile REST API — the caller's own profile, clients and transactions."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.crm_common.database import get_db_session
from src.crm_common.enums import TransactionType
from src.crm_common.response import ApiResponse, success_response
from src.crm_profile.api.dependencies import get_current_profile, profile_service
from src.crm_profile.application.schemas import ProfileResponse, ProfileUpdateRequest
from src.crm_profile.domain.models import Profile

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("/me")
async def get_me(
    profile: Annotated[Profile, Depends(get_current_profile)],
    request: Request,
) -> ApiResponse:
    data = ProfileResponse.from_profile(profile)
    return success_response(data.model_dump(mode="json"), request)


@router.patch("/me")
async def update_me(
    body: ProfileUpdateRequest,
    profile: Annotated[Profile, Depends(get_current_profile)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    updated = await profile_service.update_own_profile(db, profile, body)
    data = ProfileResponse.from_profile(updated)
    return success_response(data.model_dump(mode="json"), request)


@router.get("/me/clients")
async def list_my_clients(
    profile: Annotated[Profile, Depends(get_current_profile)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    clients = await profile_service.list_clients(db, profile)
    data = [ProfileResponse.from_profile(c).model_dump(mode="json") for c in clients]
    return success_response(data, request)


@router.get("/me/transactions")
async def list_my_transactions(
    profile: Annotated[Profile, Depends(get_current_profile)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(50, ge=1, le=200, description="Items per page"),
    tx_type: TransactionType | None = Query(None, alias="type", description="Filter by type"),
) -> ApiResponse:
    data = await profile_service.list_transactions(
        db, profile, cursor, limit, tx_type.value if tx_type else None
    )
    return success_response(data.model_dump(mode="json"), request)
