"""ChatSessionPresenter — in-memory view model of one conversation.

Delivery status is simulated: a sent message moves sent -> delivered -> read
on fixed timers. Nothing is transmitted and no acknowledgement is awaited.
"""

import asyncio
import logging
import uuid
from decimal import Decimal

from config.settings import settings
from src.crm_common.enums import DeliveryStatus, MessageDirection
from src.crm_common.errors import EmptyMessageError
from src.crm_messaging.domain.models import ChannelSession, ChatMessage

logger = logging.getLogger(__name__)

_STATUS_RANK = {
    DeliveryStatus.SENT.value: 0,
    DeliveryStatus.DELIVERED.value: 1,
    DeliveryStatus.READ.value: 2,
}


def _plain_number(value: Decimal | int) -> str:
    d = Decimal(value)
    if d == d.to_integral_value():
        return str(int(d))
    return format(d, "f")


def credit_notice_text(credits: Decimal | int, contact_name: str, package_name: str | None = None) -> str:
    text = f"✅ Se han cargado {_plain_number(credits)} fichas a la cuenta de {contact_name}"
    if package_name:
        text += f" (Paquete: {package_name})"
    return text


class ChatSessionPresenter:
    def __init__(
        self,
        session: ChannelSession,
        delivered_after: float | None = None,
        read_after: float | None = None,
    ) -> None:
        self.session = session
        self._messages: list[ChatMessage] = []
        self._delivered_after = (
            settings.CHAT_DELIVERED_AFTER_SECONDS if delivered_after is None else delivered_after
        )
        self._read_after = settings.CHAT_READ_AFTER_SECONDS if read_after is None else read_after
        # Pending status timers keyed by (message id, target status).
        self._timers: dict[tuple[str, str], asyncio.TimerHandle] = {}

    @property
    def messages(self) -> list[ChatMessage]:
        return list(self._messages)

    def select_session(self, session: ChannelSession) -> None:
        """Switch the outgoing channel; history stays."""
        self.session = session

    def send_message(self, content: str, message_type: str = "text") -> ChatMessage:
        """Append an outgoing message and schedule its simulated status changes.

        Must be called from inside a running event loop.
        """
        if not content or not content.strip():
            raise EmptyMessageError()
        msg = self._append(content.strip(), MessageDirection.SENT, message_type)
        logger.debug("Message %s queued on session %s", msg.id, self.session.id)
        loop = asyncio.get_running_loop()
        for delay, status in (
            (self._delivered_after, DeliveryStatus.DELIVERED.value),
            (self._read_after, DeliveryStatus.READ.value),
        ):
            self._timers[(msg.id, status)] = loop.call_later(delay, self._advance, msg.id, status)
        return msg

    def receive_message(self, content: str, message_type: str = "text") -> ChatMessage:
        if not content or not content.strip():
            raise EmptyMessageError()
        msg = ChatMessage(
            id=uuid.uuid4().hex,
            content=content.strip(),
            direction=MessageDirection.RECEIVED.value,
            type=message_type,
        )
        self._messages.append(msg)
        return msg

    def announce_credit_load(
        self, credits: Decimal | int, contact_name: str, package_name: str | None = None
    ) -> ChatMessage:
        # Stays at "sent"; no delivery timers for system notices.
        return self._append(
            credit_notice_text(credits, contact_name, package_name), MessageDirection.SENT, "text"
        )

    def close(self) -> None:
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()

    def _append(self, content: str, direction: MessageDirection, message_type: str) -> ChatMessage:
        msg = ChatMessage(
            id=uuid.uuid4().hex,
            content=content,
            direction=direction.value,
            type=message_type,
            status=DeliveryStatus.SENT.value,
        )
        self._messages.append(msg)
        return msg

    def _advance(self, message_id: str, status: str) -> None:
        self._timers.pop((message_id, status), None)
        # Status only moves forward, whatever order the timers fire in.
        for msg in self._messages:
            if msg.id == message_id:
                if _STATUS_RANK[status] > _STATUS_RANK.get(msg.status or "", -1):
                    msg.status = status
                return


class ChatRegistry:
    """One presenter per channel session, opened lazily."""

    def __init__(self) -> None:
        self._presenters: dict[str, ChatSessionPresenter] = {}

    def open(self, session: ChannelSession) -> ChatSessionPresenter:
        presenter = self._presenters.get(session.id)
        if presenter is None:
            presenter = ChatSessionPresenter(session)
            self._presenters[session.id] = presenter
        return presenter

    def discard(self, session_id: str) -> None:
        presenter = self._presenters.pop(session_id, None)
        if presenter is not None:
            presenter.close()

    def close_all(self) -> None:
        for presenter in self._presenters.values():
            presenter.close()
        self._presenters.clear()
