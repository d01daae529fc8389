"""crm_ledger REST API — agent-only credit loads and withdrawals."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.crm_common.database import get_db_session
from src.crm_common.response import ApiResponse, success_response
from src.crm_ledger.application.schemas import (
    CreditPackageItem,
    LoadCreditsRequest,
    WithdrawCreditsRequest,
)
from src.crm_ledger.application.service import CreditLedgerService
from src.crm_ledger.domain.packages import CREDIT_PACKAGES
from src.crm_profile.api.dependencies import get_current_profile
from src.crm_profile.domain.models import Profile

router = APIRouter(prefix="/credits", tags=["credits"])

_service = CreditLedgerService()


@router.post("/load")
async def load_credits(
    body: LoadCreditsRequest,
    agent: Annotated[Profile, Depends(get_current_profile)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.submit_load(db, agent, body)
    resp = success_response(data.model_dump(mode="json"), request)
    resp.message = "Credits loaded"
    return resp


@router.post("/withdraw")
async def withdraw_credits(
    body: WithdrawCreditsRequest,
    agent: Annotated[Profile, Depends(get_current_profile)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.submit_withdraw(db, agent, body)
    resp = success_response(data.model_dump(mode="json"), request)
    resp.message = "Credits withdrawn"
    return resp


@router.get("/packages")
async def list_packages(request: Request) -> ApiResponse:
    data = [CreditPackageItem.from_package(p).model_dump(mode="json") for p in CREDIT_PACKAGES.values()]
    return success_response(data, request)
