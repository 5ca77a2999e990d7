"""
Servicio de notificaciones.
Crea notificaciones in-app; es el hook por defecto tras enviar un mensaje.
"""
import logging
from typing import Optional, Dict, Any
from sqlalchemy.orm import Session

from app.crud.message_settings import message_settings as crud_message_settings
from app.crud.user import user as crud_user
from app.models.notification import Notification
from app.schemas.notification import NewMessageEvent

logger = logging.getLogger(__name__)


def create_notification(
    db: Session,
    user_id: int,
    notification_type: str,
    title: str,
    content: Optional[str] = None,
    reference_id: Optional[int] = None,
    reference_type: Optional[str] = None,
    action_url: Optional[str] = None,
    extra_data: Optional[Dict[str, Any]] = None
) -> Notification:
    """
    Crear notificación para un usuario.

    Args:
        db: Sesión de base de datos
        user_id: ID del usuario
        notification_type: Tipo de notificación
        title: Título
        content: Contenido
        reference_id: ID de referencia
        reference_type: Tipo de referencia
        action_url: URL de acción
        extra_data: Datos adicionales en formato JSON

    Returns:
        Notificación creada
    """
    notification = Notification(
        user_id=user_id,
        type=notification_type,
        title=title,
        content=content,
        reference_id=reference_id,
        reference_type=reference_type,
        action_url=action_url,
        extra_data=extra_data
    )

    db.add(notification)
    db.commit()
    db.refresh(notification)

    return notification


def notify_new_message(db: Session, event: NewMessageEvent) -> Optional[Notification]:
    """
    Notificar al destinatario sobre un nuevo mensaje.

    Returns:
        Notificación creada o None si el destinatario las desactivó
    """
    preferences = crud_message_settings.get_by_user_id(db, user_id=event.recipient_id)
    if preferences and not preferences.notify_new_messages:
        logger.debug(f"Usuario {event.recipient_id} tiene desactivadas las notificaciones de mensajes")
        return None

    sender = crud_user.get(db, id=event.sender_id)
    sender_name = sender.public_name if sender else "Alguien"

    return create_notification(
        db=db,
        user_id=event.recipient_id,
        notification_type="new_message",
        title="Nuevo mensaje",
        content=f"{sender_name}: {event.message_preview}",
        reference_id=event.message_id,
        reference_type="message",
        action_url=f"/messages/conversation/{event.sender_id}",
        extra_data={
            "thread_id": event.thread_id,
            "sender_id": event.sender_id,
            "message_preview": event.message_preview,
        },
    )
