"""crm_messaging REST API — channel sessions, chat view, quick replies, campaigns.

Everything behind these routes lives in process memory and is lost on restart.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from src.crm_common.errors import InvalidAmountError
from src.crm_common.response import ApiResponse, success_response
from src.crm_gateway.auth.dependencies import require_identity
from src.crm_gateway.auth.identity import AuthenticatedIdentity
from src.crm_ledger.domain.packages import get_package
from src.crm_messaging.application.campaigns import CampaignSimulator
from src.crm_messaging.application.chat import ChatRegistry
from src.crm_messaging.application.quick_replies import QuickReplyCatalog
from src.crm_messaging.application.schemas import (
    CampaignCreateRequest,
    CampaignItem,
    CreditNoticeRequest,
    MessageItem,
    QuickReplyCreateRequest,
    QuickReplyItem,
    SelectChannelRequest,
    SendMessageRequest,
    SessionCreateRequest,
    SessionItem,
)
from src.crm_messaging.application.sessions import SessionRegistry

router = APIRouter(tags=["messaging"])

session_registry = SessionRegistry()
chat_registry = ChatRegistry()
quick_reply_catalog = QuickReplyCatalog()
campaign_simulator = CampaignSimulator()

Identity = Annotated[AuthenticatedIdentity, Depends(require_identity)]


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


@router.get("/sessions")
async def list_sessions(_: Identity, request: Request) -> ApiResponse:
    data = [SessionItem.from_session(s).model_dump(mode="json") for s in session_registry.list_sessions()]
    return success_response(data, request)


@router.post("/sessions", status_code=201)
async def create_session(body: SessionCreateRequest, _: Identity, request: Request) -> ApiResponse:
    session = session_registry.create(
        body.name, body.type, phone=body.phone, webhook=body.webhook, api_key=body.api_key
    )
    return success_response(SessionItem.from_session(session).model_dump(mode="json"), request)


@router.post("/sessions/{session_id}/toggle")
async def toggle_session(session_id: str, _: Identity, request: Request) -> ApiResponse:
    session = session_registry.toggle(session_id)
    return success_response(SessionItem.from_session(session).model_dump(mode="json"), request)


@router.delete("/sessions/{session_id}")
async def delete_session(session_id: str, _: Identity, request: Request) -> ApiResponse:
    session_registry.delete(session_id)
    chat_registry.discard(session_id)
    return success_response({"id": session_id, "deleted": True}, request)


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


@router.get("/sessions/{session_id}/messages")
async def list_messages(session_id: str, _: Identity, request: Request) -> ApiResponse:
    presenter = chat_registry.open(session_registry.get(session_id))
    data = [MessageItem.from_message(m).model_dump(mode="json") for m in presenter.messages]
    return success_response(data, request)


@router.post("/sessions/{session_id}/messages", status_code=201)
async def send_message(
    session_id: str, body: SendMessageRequest, _: Identity, request: Request
) -> ApiResponse:
    presenter = chat_registry.open(session_registry.get(session_id))
    msg = presenter.send_message(body.content)
    return success_response(MessageItem.from_message(msg).model_dump(mode="json"), request)


@router.post("/sessions/{session_id}/messages/incoming", status_code=201)
async def receive_message(
    session_id: str, body: SendMessageRequest, _: Identity, request: Request
) -> ApiResponse:
    """Record a contact's inbound message; it carries no delivery status."""
    presenter = chat_registry.open(session_registry.get(session_id))
    msg = presenter.receive_message(body.content)
    return success_response(MessageItem.from_message(msg).model_dump(mode="json"), request)


@router.put("/sessions/{session_id}/channel")
async def select_channel(
    session_id: str, body: SelectChannelRequest, _: Identity, request: Request
) -> ApiResponse:
    """Send this conversation's future messages through another session."""
    presenter = chat_registry.open(session_registry.get(session_id))
    presenter.select_session(session_registry.get(body.session_id))
    return success_response(SessionItem.from_session(presenter.session).model_dump(mode="json"), request)


@router.post("/sessions/{session_id}/credit-notice", status_code=201)
async def credit_notice(
    session_id: str, body: CreditNoticeRequest, _: Identity, request: Request
) -> ApiResponse:
    presenter = chat_registry.open(session_registry.get(session_id))
    package_name = None
    credits = body.credits
    if body.package_id:
        package = get_package(body.package_id)
        package_name = package.name
        credits = package.credits
    if credits is None or credits <= 0:
        raise InvalidAmountError(credits)
    msg = presenter.announce_credit_load(credits, body.contact_name, package_name)
    return success_response(MessageItem.from_message(msg).model_dump(mode="json"), request)


# ---------------------------------------------------------------------------
# Quick replies
# ---------------------------------------------------------------------------


@router.get("/quick-replies")
async def list_quick_replies(
    _: Identity,
    request: Request,
    q: str | None = Query(None, description="Filter by tag or name"),
) -> ApiResponse:
    replies = quick_reply_catalog.search(q) if q else quick_reply_catalog.replies
    return success_response([QuickReplyItem.from_reply(r).model_dump() for r in replies], request)


@router.get("/quick-replies/suggest")
async def suggest_quick_replies(
    _: Identity,
    request: Request,
    text: str = Query("", alias="input", description="Current chat input, e.g. //pago"),
) -> ApiResponse:
    replies = quick_reply_catalog.suggest(text)
    return success_response([QuickReplyItem.from_reply(r).model_dump() for r in replies], request)


@router.post("/quick-replies", status_code=201)
async def create_quick_reply(
    body: QuickReplyCreateRequest, _: Identity, request: Request
) -> ApiResponse:
    reply = quick_reply_catalog.create(body.name, body.content, body.tags)
    return success_response(QuickReplyItem.from_reply(reply).model_dump(), request)


@router.delete("/quick-replies/{reply_id}")
async def delete_quick_reply(reply_id: str, _: Identity, request: Request) -> ApiResponse:
    quick_reply_catalog.delete(reply_id)
    return success_response({"id": reply_id, "deleted": True}, request)


# ---------------------------------------------------------------------------
# Campaigns
# ---------------------------------------------------------------------------


@router.get("/campaigns")
async def list_campaigns(_: Identity, request: Request) -> ApiResponse:
    data = [CampaignItem.from_campaign(c).model_dump(mode="json") for c in campaign_simulator.list_campaigns()]
    return success_response(data, request)


@router.post("/campaigns", status_code=201)
async def create_campaign(body: CampaignCreateRequest, _: Identity, request: Request) -> ApiResponse:
    campaign = campaign_simulator.create(
        body.name, body.message, body.contacts, body.interval_min, body.interval_max
    )
    return success_response(CampaignItem.from_campaign(campaign).model_dump(mode="json"), request)


@router.post("/campaigns/{campaign_id}/start")
async def start_campaign(campaign_id: str, _: Identity, request: Request) -> ApiResponse:
    campaign = campaign_simulator.start(campaign_id)
    return success_response(CampaignItem.from_campaign(campaign).model_dump(mode="json"), request)


@router.post("/campaigns/{campaign_id}/pause")
async def pause_campaign(campaign_id: str, _: Identity, request: Request) -> ApiResponse:
    campaign = campaign_simulator.pause(campaign_id)
    return success_response(CampaignItem.from_campaign(campaign).model_dump(mode="json"), request)


@router.post("/campaigns/{campaign_id}/stop")
async def stop_campaign(campaign_id: str, _: Identity, request: Request) -> ApiResponse:
    campaign = campaign_simulator.stop(campaign_id)
    return success_response(CampaignItem.from_campaign(campaign).model_dump(mode="json"), request)
