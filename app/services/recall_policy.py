"""
Máquina de estados de retiro/edición de mensajes.

    ACTIVE --retirar (remitente, dentro de la ventana)--> RECALLED
    RECALLED --editar (remitente)--> ACTIVE

La ventana se vuelve a comprobar en el servidor en cada intento; el
``can_recall`` que recibe el cliente es solo orientativo.
"""
import logging
from datetime import datetime, timedelta, timezone
from enum import Enum

from app.config import get_settings
from app.core.exceptions import ForbiddenException, InvalidStateException
from app.models.message import Message

logger = logging.getLogger(__name__)


class MessageState(str, Enum):
    """Estados del ciclo de retiro."""
    ACTIVE = "active"
    RECALLED = "recalled"


def utc_now() -> datetime:
    """
    Instante actual con zona UTC.

    Las columnas son timestamptz: un valor naive se interpretaría en la
    zona horaria de la sesión de PostgreSQL y desplazaría la ventana de retiro.
    """
    return datetime.now(timezone.utc)


def as_naive_utc(value: datetime) -> datetime:
    """
    Normalizar a UTC naive para comparar.

    PostgreSQL devuelve timestamptz en la zona de la sesión; SQLite descarta
    la zona al guardar y devuelve la hora UTC escrita, sin tzinfo.
    """
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def state_of(message: Message) -> MessageState:
    return MessageState.RECALLED if message.is_recalled else MessageState.ACTIVE


class RecallPolicy:
    """Reglas de negocio del retiro con ventana de tiempo y de la edición posterior."""

    def __init__(self, window_seconds: int = None):
        if window_seconds is None:
            window_seconds = get_settings().MESSAGE_RECALL_WINDOW_SECONDS
        self.window = timedelta(seconds=window_seconds)

    def within_window(self, message: Message, now: datetime) -> bool:
        """El límite es inclusivo: a los 3:00 exactos todavía se puede retirar."""
        elapsed = as_naive_utc(now) - as_naive_utc(message.created_at)
        return elapsed <= self.window

    def can_recall(self, message: Message, user_id: int, now: datetime) -> bool:
        return (
            message.sender_id == user_id
            and state_of(message) is MessageState.ACTIVE
            and self.within_window(message, now)
        )

    def ensure_can_recall(self, message: Message, user_id: int, now: datetime) -> None:
        """
        Validar la transición ACTIVE -> RECALLED.

        Raises:
            ForbiddenException: Si el usuario no es el remitente
            InvalidStateException: Si ya estaba retirado o pasó la ventana
        """
        if message.sender_id != user_id:
            raise ForbiddenException("Solo puedes retirar mensajes que enviaste")

        if state_of(message) is MessageState.RECALLED:
            raise InvalidStateException("El mensaje ya fue retirado", error_code="ALREADY_RECALLED")

        if not self.within_window(message, now):
            logger.warning(f"Retiro fuera de plazo rechazado: mensaje {message.id}, usuario {user_id}")
            minutes = int(self.window.total_seconds() // 60)
            raise InvalidStateException(
                f"Han pasado más de {minutes} minutos desde el envío; ya no se puede retirar",
                error_code="RECALL_WINDOW_EXPIRED",
            )

    def ensure_can_edit(self, message: Message, user_id: int) -> None:
        """
        Validar la transición RECALLED -> ACTIVE (editar y reenviar).

        Raises:
            ForbiddenException: Si el usuario no es el remitente
            InvalidStateException: Si el mensaje no está retirado
        """
        if message.sender_id != user_id:
            raise ForbiddenException("No tienes permiso para editar este mensaje")

        if state_of(message) is not MessageState.RECALLED:
            raise InvalidStateException(
                "Solo se pueden editar mensajes retirados", error_code="NOT_RECALLED"
            )
