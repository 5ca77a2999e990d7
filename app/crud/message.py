"""
CRUD para mensajes privados con borrado suave por lado.

Todas las lecturas de usuario pasan por ``visible_to``: un mensaje deja
de aparecer para un participante cuando ese participante lo borra.
"""
from datetime import datetime
from typing import Iterable, List, Optional, Tuple
from sqlalchemy.orm import Session, selectinload
from sqlalchemy import and_, or_, desc
from app.crud.base import CRUDBase
from app.models.message import Message, MessageAttachment
from app.schemas.message import AttachmentIn


def visible_to(user_id: int):
    """Condición SQL: el mensaje es visible para el usuario."""
    return or_(
        and_(Message.sender_id == user_id, Message.sender_deleted == False),
        and_(Message.recipient_id == user_id, Message.recipient_deleted == False),
    )


def _newest_first(query):
    return query.order_by(desc(Message.created_at), desc(Message.id))


class CRUDMessage(CRUDBase[Message, dict]):
    """CRUD específico para mensajes privados."""

    def create_message(
        self,
        db: Session,
        *,
        sender_id: int,
        recipient_id: int,
        thread_id: str,
        content: str,
        created_at: datetime,
        subject: Optional[str] = None,
        reply_to_id: Optional[int] = None,
        attachments: Optional[Iterable[AttachmentIn]] = None,
    ) -> Message:
        """
        Insertar un mensaje con sus adjuntos en una sola transacción.

        Returns:
            Mensaje creado
        """
        db_obj = Message(
            sender_id=sender_id,
            recipient_id=recipient_id,
            thread_id=thread_id,
            subject=subject,
            content=content,
            reply_to_id=reply_to_id,
            is_read=False,
            sender_deleted=False,
            recipient_deleted=False,
            is_recalled=False,
            created_at=created_at,
        )
        db_obj.attachments = [_attachment_row(a) for a in attachments or []]
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def get_for_participant(
        self, db: Session, *, id: int, user_id: int
    ) -> Optional[Message]:
        """
        Obtener un mensaje si el usuario participa en él, aunque lo haya borrado.

        Args:
            db: Sesión de base de datos
            id: ID del mensaje
            user_id: ID del usuario

        Returns:
            Mensaje o None
        """
        return (
            db.query(Message)
            .filter(
                Message.id == id,
                or_(Message.sender_id == user_id, Message.recipient_id == user_id),
            )
            .first()
        )

    def get_visible(self, db: Session, *, id: int, user_id: int) -> Optional[Message]:
        """Obtener un mensaje solo si es visible para el usuario."""
        return (
            db.query(Message)
            .options(selectinload(Message.attachments))
            .filter(Message.id == id, visible_to(user_id))
            .first()
        )

    def get_inbox(
        self, db: Session, *, user_id: int, skip: int = 0, limit: int = 20,
        thread_id: Optional[str] = None
    ) -> Tuple[List[Message], int]:
        """
        Mensajes recibidos no borrados por el destinatario.

        Returns:
            Tupla (mensajes de la página, total)
        """
        query = db.query(Message).filter(
            Message.recipient_id == user_id,
            Message.recipient_deleted == False,
        )
        if thread_id:
            query = query.filter(Message.thread_id == thread_id)

        total = query.count()
        items = (
            _newest_first(query.options(selectinload(Message.attachments)))
            .offset(skip)
            .limit(limit)
            .all()
        )
        return items, total

    def get_outbox(
        self, db: Session, *, user_id: int, skip: int = 0, limit: int = 20,
        thread_id: Optional[str] = None
    ) -> Tuple[List[Message], int]:
        """
        Mensajes enviados no borrados por el remitente.

        Returns:
            Tupla (mensajes de la página, total)
        """
        query = db.query(Message).filter(
            Message.sender_id == user_id,
            Message.sender_deleted == False,
        )
        if thread_id:
            query = query.filter(Message.thread_id == thread_id)

        total = query.count()
        items = (
            _newest_first(query.options(selectinload(Message.attachments)))
            .offset(skip)
            .limit(limit)
            .all()
        )
        return items, total

    def get_thread_page(
        self, db: Session, *, user_id: int, thread_id: str, skip: int = 0, limit: int = 20
    ) -> Tuple[List[Message], int]:
        """
        Página de un hilo visible para el usuario, del más reciente al más antiguo.

        Returns:
            Tupla (mensajes de la página, total visible del hilo)
        """
        query = db.query(Message).filter(
            Message.thread_id == thread_id,
            visible_to(user_id),
        )
        total = query.count()
        items = (
            _newest_first(query.options(selectinload(Message.attachments)))
            .offset(skip)
            .limit(limit)
            .all()
        )
        return items, total

    def thread_exists(self, db: Session, *, thread_id: str) -> bool:
        """Verificar si ya hubo algún mensaje en el hilo."""
        return db.query(Message.id).filter(Message.thread_id == thread_id).first() is not None

    def mark_as_read(self, db: Session, *, message: Message, read_at: datetime) -> Message:
        """Marcar un mensaje como leído."""
        message.is_read = True
        message.read_at = read_at
        db.add(message)
        db.commit()
        db.refresh(message)
        return message

    def mark_thread_as_read(
        self, db: Session, *, user_id: int, thread_id: str, read_at: datetime
    ) -> int:
        """
        Marcar como leídos los mensajes recibidos en un hilo.

        Returns:
            Cantidad de mensajes marcados
        """
        updated = (
            db.query(Message)
            .filter(
                Message.thread_id == thread_id,
                Message.recipient_id == user_id,
                Message.is_read == False,
                Message.recipient_deleted == False,
            )
            .update({"is_read": True, "read_at": read_at}, synchronize_session=False)
        )
        db.commit()
        return updated

    def mark_all_as_read(self, db: Session, *, user_id: int, read_at: datetime) -> int:
        """
        Marcar como leídos todos los mensajes recibidos visibles.

        Returns:
            Cantidad de mensajes marcados
        """
        updated = (
            db.query(Message)
            .filter(
                Message.recipient_id == user_id,
                Message.is_read == False,
                Message.recipient_deleted == False,
            )
            .update({"is_read": True, "read_at": read_at}, synchronize_session=False)
        )
        db.commit()
        return updated

    def get_unread_count(
        self, db: Session, *, user_id: int, thread_id: Optional[str] = None
    ) -> int:
        """
        Cantidad de mensajes no leídos del usuario (opcionalmente en un hilo).
        Siempre se calcula desde las filas; no hay contador almacenado.
        """
        query = db.query(Message).filter(
            Message.recipient_id == user_id,
            Message.is_read == False,
            Message.recipient_deleted == False,
        )
        if thread_id:
            query = query.filter(Message.thread_id == thread_id)
        return query.count()

    def soft_delete_for_user(
        self, db: Session, *, message: Message, user_id: int, deleted_at: datetime
    ) -> Message:
        """Ocultar el mensaje solo en el lado del usuario."""
        if message.sender_id == user_id:
            message.sender_deleted = True
            message.sender_deleted_at = deleted_at
        if message.recipient_id == user_id:
            message.recipient_deleted = True
            message.recipient_deleted_at = deleted_at
        db.add(message)
        db.commit()
        db.refresh(message)
        return message

    def soft_delete_thread(
        self, db: Session, *, user_id: int, thread_id: str, deleted_at: datetime
    ) -> int:
        """
        Ocultar todo un hilo en el lado del usuario.

        Returns:
            Cantidad de mensajes afectados
        """
        as_sender = (
            db.query(Message)
            .filter(
                Message.thread_id == thread_id,
                Message.sender_id == user_id,
                Message.sender_deleted == False,
            )
            .update(
                {"sender_deleted": True, "sender_deleted_at": deleted_at},
                synchronize_session=False,
            )
        )
        as_recipient = (
            db.query(Message)
            .filter(
                Message.thread_id == thread_id,
                Message.recipient_id == user_id,
                Message.recipient_deleted == False,
            )
            .update(
                {"recipient_deleted": True, "recipient_deleted_at": deleted_at},
                synchronize_session=False,
            )
        )
        db.commit()
        return as_sender + as_recipient

    def recall(self, db: Session, *, message: Message, recalled_at: datetime) -> Message:
        """Marcar el mensaje como retirado; el contenido se conserva."""
        message.is_recalled = True
        message.recalled_at = recalled_at
        db.add(message)
        db.commit()
        db.refresh(message)
        return message

    def replace_content(
        self,
        db: Session,
        *,
        message: Message,
        content: str,
        attachments: Optional[Iterable[AttachmentIn]] = None,
    ) -> Message:
        """
        Sustituir el contenido de un mensaje retirado y volver a mostrarlo.

        Si ``attachments`` es None se conservan los adjuntos actuales;
        una lista (aunque esté vacía) reemplaza el conjunto completo.
        id, thread_id y created_at no cambian.
        """
        message.content = content
        if attachments is not None:
            message.attachments = [_attachment_row(a) for a in attachments]
        message.is_recalled = False
        message.recalled_at = None
        message.is_read = False
        message.read_at = None
        db.add(message)
        db.commit()
        db.refresh(message)
        return message

    def get_multi_admin(
        self, db: Session, *, skip: int = 0, limit: int = 20,
        sender_id: Optional[int] = None, recipient_id: Optional[int] = None
    ) -> Tuple[List[Message], int]:
        """
        Listado de moderación: incluye mensajes borrados por cualquiera de los lados.

        Returns:
            Tupla (mensajes de la página, total)
        """
        query = db.query(Message)
        if sender_id:
            query = query.filter(Message.sender_id == sender_id)
        if recipient_id:
            query = query.filter(Message.recipient_id == recipient_id)

        total = query.count()
        items = _newest_first(query).offset(skip).limit(limit).all()
        return items, total


def _attachment_row(attachment: AttachmentIn) -> MessageAttachment:
    return MessageAttachment(
        file_name=attachment.file_name,
        file_url=attachment.file_url,
        file_type=attachment.file_type,
        file_size=attachment.file_size,
    )


# Instancia global del CRUD
message = CRUDMessage(Message)
