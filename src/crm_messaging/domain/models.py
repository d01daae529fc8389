"""Domain models for crm_messaging. In-memory only; nothing here is persisted."""

from dataclasses import dataclass, field
from datetime import datetime

from src.crm_common.datetime_utils import utc_now


@dataclass
class ChannelSession:
    """A configured messaging-channel connection (WhatsApp, Instagram, ...)."""

    id: str
    name: str
    type: str                  # SessionType value
    status: str                # SessionStatus value
    phone: str | None = None
    webhook: str | None = None
    api_key: str | None = None
    created_at: datetime = field(default_factory=utc_now)


@dataclass
class ChatMessage:
    id: str
    content: str
    direction: str             # MessageDirection value
    type: str = "text"         # text | image | file
    status: str | None = None  # DeliveryStatus value, sent messages only
    timestamp: datetime = field(default_factory=utc_now)


@dataclass
class QuickReply:
    id: str
    name: str
    content: str
    tags: list[str] = field(default_factory=list)


@dataclass
class Campaign:
    id: str
    name: str
    message: str
    contacts: list[str]
    status: str                # CampaignStatus value
    interval_min: int          # seconds, informational only
    interval_max: int
    sent: int = 0
    created_at: datetime = field(default_factory=utc_now)

    @property
    def total(self) -> int:
        return len(self.contacts)

    @property
    def progress_percent(self) -> int:
        if self.total == 0:
            return 0
        return (self.sent * 100) // self.total
