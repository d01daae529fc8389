"""Admin REST API."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from src.crm_admin.application.service import AdminService
from src.crm_common.database import get_db_session
from src.crm_common.response import ApiResponse, success_response
from src.crm_profile.api.dependencies import get_current_profile
from src.crm_profile.application.schemas import ProfileResponse
from src.crm_profile.domain.models import Profile

router = APIRouter(prefix="/admin", tags=["admin"])
_service = AdminService()


class SetRoleRequest(BaseModel):
    role: str


class AssignAgentRequest(BaseModel):
    agent_id: UUID | None


@router.patch("/profiles/{profile_id}/role")
async def set_role(
    profile_id: UUID,
    body: SetRoleRequest,
    admin: Annotated[Profile, Depends(get_current_profile)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    updated = await _service.set_role(db, admin, str(profile_id), body.role)
    return success_response(ProfileResponse.from_profile(updated).model_dump(mode="json"), request)


@router.patch("/profiles/{profile_id}/agent")
async def assign_agent(
    profile_id: UUID,
    body: AssignAgentRequest,
    admin: Annotated[Profile, Depends(get_current_profile)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    agent_id = str(body.agent_id) if body.agent_id else None
    updated = await _service.assign_agent(db, admin, str(profile_id), agent_id)
    return success_response(ProfileResponse.from_profile(updated).model_dump(mode="json"), request)
