"""Global enums — must match DB CHECK constraints exactly.

See alembic/versions/002_create_user_profiles.py and 003_create_credit_transactions.py.
"""

from enum import Enum


class ProfileRole(str, Enum):
    ADMIN = "admin"
    AGENT = "agent"
    CLIENT = "client"


class ProfileStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class TransactionType(str, Enum):
    LOAD = "load"
    WITHDRAW = "withdraw"
    TRANSFER = "transfer"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Messaging enums are in-memory only, no DB constraints behind them.

class SessionType(str, Enum):
    WHATSAPP = "whatsapp"
    EVOLUTION = "evolution"
    INSTAGRAM = "instagram"
    FACEBOOK = "facebook"
    WEBCHAT = "webchat"


class SessionStatus(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"


class MessageDirection(str, Enum):
    SENT = "sent"
    RECEIVED = "received"


class DeliveryStatus(str, Enum):
    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"


class CampaignStatus(str, Enum):
    DRAFT = "draft"
    SENDING = "sending"
    PAUSED = "paused"
    COMPLETED = "completed"
    FAILED = "failed"
