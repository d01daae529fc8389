"""SessionRegistry — in-memory list of messaging-channel sessions.

No real channel is ever connected; toggling only flips the stored status.
"""

import logging
import uuid

from src.crm_common.enums import SessionStatus, SessionType
from src.crm_common.errors import SessionNotFoundError
from src.crm_messaging.domain.models import ChannelSession

logger = logging.getLogger(__name__)


def _default_sessions() -> list[ChannelSession]:
    return [
        ChannelSession(
            id="1",
            name="WhatsApp Principal",
            type=SessionType.WHATSAPP.value,
            status=SessionStatus.CONNECTED.value,
            phone="+54 11 1234-5678",
        ),
        ChannelSession(
            id="2",
            name="Instagram Comercial",
            type=SessionType.INSTAGRAM.value,
            status=SessionStatus.DISCONNECTED.value,
        ),
        ChannelSession(
            id="3",
            name="Web Chat Sitio",
            type=SessionType.WEBCHAT.value,
            status=SessionStatus.CONNECTED.value,
        ),
    ]


class SessionRegistry:
    def __init__(self, sessions: list[ChannelSession] | None = None) -> None:
        initial = _default_sessions() if sessions is None else sessions
        # dict keeps insertion order, which is the display order
        self._sessions: dict[str, ChannelSession] = {s.id: s for s in initial}

    def list_sessions(self) -> list[ChannelSession]:
        return list(self._sessions.values())

    def get(self, session_id: str) -> ChannelSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def create(
        self,
        name: str,
        session_type: SessionType | str,
        phone: str | None = None,
        webhook: str | None = None,
        api_key: str | None = None,
    ) -> ChannelSession:
        session = ChannelSession(
            id=uuid.uuid4().hex,
            name=name,
            type=SessionType(session_type).value,
            status=SessionStatus.DISCONNECTED.value,
            phone=phone or None,
            webhook=webhook or None,
            api_key=api_key or None,
        )
        self._sessions[session.id] = session
        logger.info("Session %s created (%s, %s)", session.id, session.type, session.name)
        return session

    def toggle(self, session_id: str) -> ChannelSession:
        """connected -> disconnected; disconnected or error -> connected."""
        session = self.get(session_id)
        if session.status == SessionStatus.CONNECTED.value:
            session.status = SessionStatus.DISCONNECTED.value
        else:
            session.status = SessionStatus.CONNECTED.value
        logger.info("Session %s is now %s", session_id, session.status)
        return session

    def delete(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is None:
            raise SessionNotFoundError(session_id)
        logger.info("Session %s deleted", session_id)
