"""
CRUD para notificaciones.
"""
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import desc
from datetime import datetime, timezone
from app.crud.base import CRUDBase
from app.models.notification import Notification


class CRUDNotification(CRUDBase[Notification, dict]):
    """CRUD específico para notificaciones."""

    def get_by_user(
        self, db: Session, *, user_id: int, limit: int = 50
    ) -> List[Notification]:
        """
        Obtener notificaciones de un usuario.

        Args:
            db: Sesion de base de datos
            user_id: ID del usuario
            limit: Limite de registros (default 50)

        Returns:
            Lista de notificaciones
        """
        return (
            db.query(Notification)
            .filter(Notification.user_id == user_id)
            .order_by(desc(Notification.created_at), desc(Notification.id))
            .limit(limit)
            .all()
        )

    def get_unread_count(self, db: Session, *, user_id: int) -> int:
        """Obtener cantidad de notificaciones no leídas."""
        return (
            db.query(Notification)
            .filter(Notification.user_id == user_id, Notification.is_read == False)
            .count()
        )

    def mark_as_read(self, db: Session, *, notification_id: int) -> Optional[Notification]:
        """
        Marcar notificación como leída.

        Args:
            db: Sesión de base de datos
            notification_id: ID de la notificación

        Returns:
            Notificación actualizada
        """
        notification = self.get(db, id=notification_id)
        if notification and not notification.is_read:
            notification.is_read = True
            notification.read_at = datetime.now(timezone.utc)
            db.commit()
            db.refresh(notification)
        return notification


# Instancia global del CRUD
notification = CRUDNotification(Notification)
