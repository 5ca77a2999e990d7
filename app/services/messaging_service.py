"""
Servicio de mensajería privada.

Fachada que orquesta el almacén de mensajes, la identidad de hilos y la
máquina de estados de retiro para cada operación pública. Es el único
componente que usan los endpoints.

Uso:
    service = MessagingService(db, notifier=my_hook)
    msg = service.send(user_id=1, recipient_id=2, content="hola")
"""
import logging
from datetime import datetime
from typing import Callable, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from app.config import get_settings
from app.core.exceptions import (
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from app.crud.message import message as crud_message
from app.crud.message_settings import message_settings as crud_message_settings
from app.crud.user import user as crud_user
from app.models.message import Message
from app.models.user import User
from app.schemas.message import AttachmentIn
from app.schemas.notification import NewMessageEvent
from app.services import conversation_service
from app.services.conversation_service import ConversationSummary
from app.services.recall_policy import RecallPolicy, utc_now
from app.services.thread_service import resolve_thread_id, thread_participants

logger = logging.getLogger(__name__)

Notifier = Callable[[NewMessageEvent], None]


class MessagingService:
    """
    Operaciones de mensajería privada para un usuario autenticado.

    Args:
        db: Sesión de base de datos (una por request)
        notifier: Hook invocado tras un envío confirmado; sus errores se
            registran y nunca anulan el envío
        clock: Fuente de "ahora" con zona UTC (inyectable en pruebas)
        policy: Reglas de retiro/edición
    """

    def __init__(
        self,
        db: Session,
        notifier: Optional[Notifier] = None,
        clock: Optional[Callable[[], datetime]] = None,
        policy: Optional[RecallPolicy] = None,
    ):
        self.db = db
        self.notifier = notifier
        self.clock = clock or utc_now
        self.settings = get_settings()
        self.policy = policy or RecallPolicy(self.settings.MESSAGE_RECALL_WINDOW_SECONDS)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _page_window(self, page: int, limit: Optional[int], max_limit: int = None) -> Tuple[int, int, int]:
        """Normalizar page/limit y devolver (page, limit, skip)."""
        max_limit = max_limit or self.settings.MESSAGES_MAX_PAGE_SIZE
        page = max(1, page or 1)
        limit = limit or self.settings.MESSAGES_DEFAULT_PAGE_SIZE
        limit = max(1, min(limit, max_limit))
        return page, limit, (page - 1) * limit

    def _clean_content(self, content: Optional[str]) -> str:
        content = (content or "").strip()
        if not content:
            raise ValidationException("El contenido del mensaje no puede estar vacío")
        if len(content) > self.settings.MESSAGE_MAX_LENGTH:
            raise ValidationException(
                f"El mensaje no puede superar {self.settings.MESSAGE_MAX_LENGTH} caracteres"
            )
        return content

    def _clean_subject(self, subject: Optional[str]) -> Optional[str]:
        if subject is None:
            return None
        subject = subject.strip()
        if not subject or len(subject) > self.settings.MESSAGE_SUBJECT_MAX_LENGTH:
            raise ValidationException(
                f"El asunto debe tener entre 1 y {self.settings.MESSAGE_SUBJECT_MAX_LENGTH} caracteres"
            )
        return subject

    def _check_attachments(self, attachments: Optional[Sequence[AttachmentIn]]) -> None:
        if attachments and len(attachments) > self.settings.MESSAGE_MAX_ATTACHMENTS:
            raise ValidationException(
                f"Se permiten como máximo {self.settings.MESSAGE_MAX_ATTACHMENTS} adjuntos"
            )

    def _get_visible_or_404(self, user_id: int, message_id: int) -> Message:
        msg = crud_message.get_visible(self.db, id=message_id, user_id=user_id)
        if not msg:
            raise NotFoundException("Mensaje no encontrado")
        return msg

    def _notify(self, event: NewMessageEvent) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier(event)
        except Exception:
            # El mensaje ya está confirmado
            logger.exception(f"Error notificando el mensaje {event.message_id} al usuario {event.recipient_id}")
            self.db.rollback()

    # ------------------------------------------------------------------
    # Envío
    # ------------------------------------------------------------------

    def send(
        self,
        user_id: int,
        recipient_id: int,
        content: str,
        subject: Optional[str] = None,
        reply_to_id: Optional[int] = None,
        attachments: Optional[Sequence[AttachmentIn]] = None,
    ) -> Message:
        """
        Enviar un mensaje privado.

        Raises:
            ValidationException: Datos inválidos (no se crea ninguna fila)
            NotFoundException: El destinatario no existe o no está activo
            ForbiddenException: El destinatario no acepta mensajes de desconocidos
        """
        if not isinstance(recipient_id, int) or recipient_id <= 0:
            raise ValidationException("ID de destinatario inválido")
        if recipient_id == user_id:
            raise ValidationException("No puedes enviarte mensajes a ti mismo")

        content = self._clean_content(content)
        subject = self._clean_subject(subject)
        self._check_attachments(attachments)

        recipient = crud_user.get_active(self.db, id=recipient_id)
        if not recipient:
            raise NotFoundException("Destinatario no encontrado")

        thread_id = resolve_thread_id(user_id, recipient_id)

        if reply_to_id is not None:
            original = crud_message.get_visible(self.db, id=reply_to_id, user_id=user_id)
            if not original or original.thread_id != thread_id:
                raise ValidationException("El mensaje al que respondes no es válido")

        recipient_settings = crud_message_settings.get_by_user_id(self.db, user_id=recipient_id)
        if (
            recipient_settings is not None
            and not recipient_settings.allow_strangers
            and not crud_message.thread_exists(self.db, thread_id=thread_id)
        ):
            raise ForbiddenException("El destinatario no acepta mensajes de desconocidos")

        msg = crud_message.create_message(
            self.db,
            sender_id=user_id,
            recipient_id=recipient_id,
            thread_id=thread_id,
            content=content,
            subject=subject,
            reply_to_id=reply_to_id,
            attachments=attachments,
            created_at=self.clock(),
        )
        logger.info(f"Mensaje {msg.id} enviado: {user_id} -> {recipient_id} (hilo {thread_id})")

        self._notify(
            NewMessageEvent(
                message_id=msg.id,
                sender_id=user_id,
                recipient_id=recipient_id,
                thread_id=thread_id,
                message_preview=content[: self.settings.MESSAGE_PREVIEW_LENGTH],
            )
        )
        return msg

    # ------------------------------------------------------------------
    # Lecturas
    # ------------------------------------------------------------------

    def list_inbox(
        self, user_id: int, page: int = 1, limit: Optional[int] = None,
        thread_id: Optional[str] = None
    ) -> Tuple[List[Message], int, int, int]:
        """
        Mensajes recibidos, del más reciente al más antiguo.

        Returns:
            Tupla (mensajes, total, page, limit)
        """
        page, limit, skip = self._page_window(page, limit)
        items, total = crud_message.get_inbox(
            self.db, user_id=user_id, skip=skip, limit=limit, thread_id=thread_id
        )
        return items, total, page, limit

    def list_outbox(
        self, user_id: int, page: int = 1, limit: Optional[int] = None,
        thread_id: Optional[str] = None
    ) -> Tuple[List[Message], int, int, int]:
        """
        Mensajes enviados, del más reciente al más antiguo.

        Returns:
            Tupla (mensajes, total, page, limit)
        """
        page, limit, skip = self._page_window(page, limit)
        items, total = crud_message.get_outbox(
            self.db, user_id=user_id, skip=skip, limit=limit, thread_id=thread_id
        )
        return items, total, page, limit

    def list_conversations(
        self, user_id: int, page: int = 1, limit: Optional[int] = None
    ) -> Tuple[List[ConversationSummary], int, int, int]:
        """
        Una conversación por cada usuario con el que hay mensajes visibles.

        Returns:
            Tupla (conversaciones, total, page, limit)
        """
        page, limit, skip = self._page_window(page, limit)
        items, total = conversation_service.get_conversations(
            self.db, user_id=user_id, skip=skip, limit=limit
        )
        return items, total, page, limit

    def get_conversation_history(
        self, user_id: int, partner_id: int, page: int = 1, limit: Optional[int] = None
    ) -> Tuple[User, List[Message], int, int, int]:
        """
        Historial con un usuario. La página 1 es la ventana más reciente;
        dentro de cada página los mensajes van del más antiguo al más nuevo.

        Returns:
            Tupla (partner, mensajes, total, page, limit)

        Raises:
            ValidationException: Si partner_id es el propio usuario
            NotFoundException: Si el otro usuario no existe (los eliminados
                siguen visibles para no perder el historial)
        """
        thread_id = resolve_thread_id(user_id, partner_id)
        partner = crud_user.get(self.db, id=partner_id, include_deleted=True)
        if not partner:
            raise NotFoundException("Usuario no encontrado")

        page, limit, skip = self._page_window(page, limit)
        items, total = crud_message.get_thread_page(
            self.db, user_id=user_id, thread_id=thread_id, skip=skip, limit=limit
        )
        items.reverse()
        return partner, items, total, page, limit

    def get_message(self, user_id: int, message_id: int) -> Message:
        """
        Obtener un mensaje visible para el usuario.

        Raises:
            NotFoundException: Si no existe o no es visible
        """
        return self._get_visible_or_404(user_id, message_id)

    def get_unread_count(self, user_id: int) -> int:
        """Mensajes recibidos sin leer y no borrados por el destinatario."""
        return crud_message.get_unread_count(self.db, user_id=user_id)

    def resolve_thread_id(self, user_a: int, user_b: int) -> str:
        """Identidad canónica del hilo entre dos usuarios (no toca la base)."""
        return resolve_thread_id(user_a, user_b)

    # ------------------------------------------------------------------
    # Lectura (estado)
    # ------------------------------------------------------------------

    def mark_as_read(self, user_id: int, message_id: int) -> bool:
        """
        Marcar un mensaje recibido como leído.

        Returns:
            True si se marcó; False si ya estaba leído

        Raises:
            NotFoundException: Si no existe o no es visible
            ForbiddenException: Si el usuario no es el destinatario
        """
        msg = self._get_visible_or_404(user_id, message_id)
        if msg.recipient_id != user_id:
            raise ForbiddenException("Solo el destinatario puede marcar el mensaje como leído")
        if msg.is_read:
            return False

        crud_message.mark_as_read(self.db, message=msg, read_at=self.clock())
        return True

    def mark_thread_as_read(self, user_id: int, thread_id: str) -> int:
        """
        Marcar como leídos los mensajes recibidos en un hilo.

        Returns:
            Cantidad de mensajes marcados
        """
        if user_id not in thread_participants(thread_id):
            return 0
        return crud_message.mark_thread_as_read(
            self.db, user_id=user_id, thread_id=thread_id, read_at=self.clock()
        )

    def mark_all_as_read(self, user_id: int) -> int:
        """
        Marcar como leídos todos los mensajes recibidos.

        Returns:
            Cantidad de mensajes marcados
        """
        count = crud_message.mark_all_as_read(self.db, user_id=user_id, read_at=self.clock())
        logger.info(f"{count} mensajes marcados como leídos para el usuario {user_id}")
        return count

    # ------------------------------------------------------------------
    # Borrado suave
    # ------------------------------------------------------------------

    def delete_message(self, user_id: int, message_id: int) -> bool:
        """
        Ocultar un mensaje solo en el lado del usuario.

        Returns:
            True si se ocultó; False si ya estaba borrado en ese lado

        Raises:
            NotFoundException: Si no existe o el usuario no participa
        """
        msg = crud_message.get_for_participant(self.db, id=message_id, user_id=user_id)
        if not msg:
            raise NotFoundException("Mensaje no encontrado")
        if not msg.is_visible_to(user_id):
            return False

        crud_message.soft_delete_for_user(
            self.db, message=msg, user_id=user_id, deleted_at=self.clock()
        )
        logger.info(f"Mensaje {message_id} borrado por el usuario {user_id}")
        return True

    def delete_thread(self, user_id: int, thread_id: str) -> int:
        """
        Ocultar un hilo completo en el lado del usuario.

        Returns:
            Cantidad de mensajes afectados
        """
        if user_id not in thread_participants(thread_id):
            return 0
        count = crud_message.soft_delete_thread(
            self.db, user_id=user_id, thread_id=thread_id, deleted_at=self.clock()
        )
        logger.info(f"Hilo {thread_id} borrado por el usuario {user_id} ({count} mensajes)")
        return count

    # ------------------------------------------------------------------
    # Retiro y edición
    # ------------------------------------------------------------------

    def recall(self, user_id: int, message_id: int) -> Message:
        """
        Retirar un mensaje propio dentro de la ventana de tiempo.

        Raises:
            NotFoundException: Si no existe o no es visible
            ForbiddenException: Si el usuario no es el remitente
            InvalidStateException: Ya retirado o fuera de plazo
        """
        msg = self._get_visible_or_404(user_id, message_id)
        now = self.clock()
        self.policy.ensure_can_recall(msg, user_id, now)

        msg = crud_message.recall(self.db, message=msg, recalled_at=now)
        logger.info(f"Mensaje {message_id} retirado por el usuario {user_id}")
        return msg

    def edit(
        self,
        user_id: int,
        message_id: int,
        content: str,
        attachments: Optional[Sequence[AttachmentIn]] = None,
    ) -> Message:
        """
        Editar y reenviar un mensaje retirado; conserva id y created_at.

        Raises:
            ValidationException: Contenido inválido
            NotFoundException: Si no existe o no es visible
            ForbiddenException: Si el usuario no es el remitente
            InvalidStateException: Si el mensaje no está retirado
        """
        msg = self._get_visible_or_404(user_id, message_id)
        self.policy.ensure_can_edit(msg, user_id)
        content = self._clean_content(content)
        self._check_attachments(attachments)

        msg = crud_message.replace_content(
            self.db, message=msg, content=content, attachments=attachments
        )
        logger.info(f"Mensaje {message_id} editado y reenviado por el usuario {user_id}")
        return msg

    # ------------------------------------------------------------------
    # Directorio de destinatarios
    # ------------------------------------------------------------------

    def list_admin_contacts(self) -> List[User]:
        """Administradores activos a los que cualquier usuario puede escribir (máx. 50)."""
        return crud_user.get_admins(self.db, limit=self.settings.MESSAGES_MAX_PAGE_SIZE)

    def search_users(
        self, search: Optional[str] = None, page: int = 1, limit: Optional[int] = None
    ) -> Tuple[List[User], int, int, int]:
        """
        Buscar destinatarios entre los usuarios activos (solo administradores).

        Returns:
            Tupla (usuarios, total, page, limit)
        """
        page, limit, skip = self._page_window(page, limit)
        search = (search or "").strip() or None
        items, total = crud_user.search_active(self.db, search=search, skip=skip, limit=limit)
        logger.info(f"Búsqueda de usuarios: '{search or ''}' página {page}, {total} resultados")
        return items, total, page, limit

    # ------------------------------------------------------------------
    # Administración
    # ------------------------------------------------------------------

    def admin_list_messages(
        self, page: int = 1, limit: Optional[int] = None,
        sender_id: Optional[int] = None, recipient_id: Optional[int] = None
    ) -> Tuple[List[Message], int, int, int]:
        """
        Listado completo para moderación (incluye borrados por los usuarios).

        Returns:
            Tupla (mensajes, total, page, limit)
        """
        page, limit, skip = self._page_window(
            page, limit, max_limit=self.settings.ADMIN_MESSAGES_MAX_PAGE_SIZE
        )
        items, total = crud_message.get_multi_admin(
            self.db, skip=skip, limit=limit, sender_id=sender_id, recipient_id=recipient_id
        )
        return items, total, page, limit

    def admin_delete_message(self, message_id: int) -> None:
        """
        Eliminar físicamente un mensaje y sus adjuntos.

        Raises:
            NotFoundException: Si no existe
        """
        removed = crud_message.remove(self.db, id=message_id)
        if not removed:
            raise NotFoundException("Mensaje no encontrado")
        logger.info(f"Mensaje {message_id} eliminado permanentemente por un administrador")
