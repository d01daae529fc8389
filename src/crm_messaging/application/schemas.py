"""Pydantic schemas for crm_messaging API."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from src.crm_common.enums import SessionType
from src.crm_messaging.domain.models import Campaign, ChannelSession, ChatMessage, QuickReply

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class SessionCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: SessionType
    phone: str | None = Field(None, max_length=32)
    webhook: str | None = Field(None, max_length=500)
    api_key: str | None = Field(None, max_length=200)


class SendMessageRequest(BaseModel):
    # emptiness is checked by the presenter so it maps to EmptyMessageError
    content: str = Field("", max_length=4096)


class SelectChannelRequest(BaseModel):
    session_id: str = Field(..., min_length=1)


class CreditNoticeRequest(BaseModel):
    contact_name: str = Field(..., min_length=1, max_length=100)
    credits: Decimal | None = None
    package_id: str | None = None


class QuickReplyCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    content: str = Field(..., min_length=1, max_length=4096)
    tags: list[str] = Field(default_factory=list)


class CampaignCreateRequest(BaseModel):
    name: str = Field(..., max_length=100)
    message: str = Field(..., max_length=4096)
    contacts: list[str]
    interval_min: int = 5
    interval_max: int = 15


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class SessionItem(BaseModel):
    id: str
    name: str
    type: str
    status: str
    phone: str | None
    webhook: str | None
    has_api_key: bool
    created_at: datetime

    @classmethod
    def from_session(cls, s: ChannelSession) -> "SessionItem":
        return cls(
            id=s.id,
            name=s.name,
            type=s.type,
            status=s.status,
            phone=s.phone,
            webhook=s.webhook,
            has_api_key=bool(s.api_key),
            created_at=s.created_at,
        )


class MessageItem(BaseModel):
    id: str
    content: str
    type: str
    direction: str
    status: str | None
    timestamp: datetime

    @classmethod
    def from_message(cls, m: ChatMessage) -> "MessageItem":
        return cls(
            id=m.id,
            content=m.content,
            type=m.type,
            direction=m.direction,
            status=m.status,
            timestamp=m.timestamp,
        )


class QuickReplyItem(BaseModel):
    id: str
    name: str
    content: str
    tags: list[str]

    @classmethod
    def from_reply(cls, r: QuickReply) -> "QuickReplyItem":
        return cls(id=r.id, name=r.name, content=r.content, tags=list(r.tags))


class CampaignItem(BaseModel):
    id: str
    name: str
    message: str
    status: str
    sent: int
    total: int
    progress_percent: int
    interval_min: int
    interval_max: int
    created_at: datetime

    @classmethod
    def from_campaign(cls, c: Campaign) -> "CampaignItem":
        return cls(
            id=c.id,
            name=c.name,
            message=c.message,
            status=c.status,
            sent=c.sent,
            total=c.total,
            progress_percent=c.progress_percent,
            interval_min=c.interval_min,
            interval_max=c.interval_max,
            created_at=c.created_at,
        )
