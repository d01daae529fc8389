"""QuickReplyCatalog: canned replies with tag search and `//` autocomplete."""

import uuid

from config.settings import settings
from src.crm_common.errors import QuickReplyNotFoundError
from src.crm_messaging.domain.models import QuickReply

AUTOCOMPLETE_PREFIX = "//"

_DEFAULT_REPLIES: tuple[tuple[str, str, str, tuple[str, ...]], ...] = (
    (
        "1",
        "Saludo Inicial",
        "¡Hola! Gracias por contactarnos. ¿En qué podemos ayudarte hoy?",
        ("saludo", "bienvenida", "hola"),
    ),
    (
        "2",
        "Información de Productos",
        "Te envío información sobre nuestros productos. ¿Hay algo específico que te interese?",
        ("productos", "información", "info"),
    ),
    (
        "3",
        "Precios y Cotización",
        "Para brindarte una cotización personalizada, necesito algunos datos. "
        "¿Podrías contarme más sobre lo que buscas?",
        ("precios", "cotización", "precio"),
    ),
    (
        "4",
        "Horarios de Atención",
        "Nuestro horario de atención es de Lunes a Viernes de 9:00 AM a 6:00 PM. "
        "¿En qué podemos ayudarte?",
        ("horarios", "disponibilidad", "atencion"),
    ),
    (
        "5",
        "Seguimiento",
        "Quería hacer seguimiento de nuestra conversación anterior. "
        "¿Ya pudiste revisar la propuesta que te envié?",
        ("seguimiento", "propuesta", "revision"),
    ),
    (
        "6",
        "Gracias por el pago",
        "¡Perfecto! He recibido tu comprobante de pago. Procedo a cargar las fichas en tu cuenta.",
        ("pago", "fichas", "comprobante", "gracias"),
    ),
)


def default_replies() -> list[QuickReply]:
    return [
        QuickReply(id=rid, name=name, content=content, tags=list(tags))
        for rid, name, content, tags in _DEFAULT_REPLIES
    ]


class QuickReplyCatalog:
    def __init__(
        self,
        replies: list[QuickReply] | None = None,
        max_suggestions: int | None = None,
    ) -> None:
        self._replies: list[QuickReply] = default_replies() if replies is None else list(replies)
        self._max_suggestions = (
            settings.QUICK_REPLY_MAX_SUGGESTIONS if max_suggestions is None else max_suggestions
        )

    @property
    def replies(self) -> list[QuickReply]:
        return list(self._replies)

    def search(self, query: str) -> list[QuickReply]:
        """Case-insensitive substring match on any tag or on the name. Empty query → []."""
        if not query:
            return []
        term = query.lower()
        return [
            r
            for r in self._replies
            if any(term in tag.lower() for tag in r.tags) or term in r.name.lower()
        ]

    def suggest(self, text: str) -> list[QuickReply]:
        """Autocomplete for the chat input: only fires when text starts with `//`."""
        if not text.startswith(AUTOCOMPLETE_PREFIX):
            return []
        return self.search(text[len(AUTOCOMPLETE_PREFIX):])[: self._max_suggestions]

    def create(self, name: str, content: str, tags: list[str] | None = None) -> QuickReply:
        cleaned = [t.strip() for t in (tags or []) if t.strip()]
        reply = QuickReply(id=uuid.uuid4().hex, name=name, content=content, tags=cleaned)
        self._replies.append(reply)
        return reply

    def delete(self, reply_id: str) -> None:
        for i, reply in enumerate(self._replies):
            if reply.id == reply_id:
                del self._replies[i]
                return
        raise QuickReplyNotFoundError(reply_id)
