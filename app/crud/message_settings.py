"""
CRUD para la configuración de mensajes privados.
"""
from typing import Optional
from sqlalchemy.orm import Session

from app.crud.base import CRUDBase
from app.models.message_settings import MessageSettings


class CRUDMessageSettings(CRUDBase[MessageSettings, dict]):
    """CRUD específico para configuración de mensajes."""

    def get_by_user_id(
        self, db: Session, *, user_id: int
    ) -> Optional[MessageSettings]:
        """Obtener la configuración de un usuario o None."""
        return (
            db.query(MessageSettings)
            .filter(MessageSettings.user_id == user_id)
            .first()
        )

    def get_or_create(
        self, db: Session, *, user_id: int
    ) -> MessageSettings:
        """
        Obtener la configuración, creándola con valores por defecto si no existe.

        Args:
            db: Sesión de base de datos
            user_id: ID del usuario

        Returns:
            Configuración del usuario
        """
        existing = self.get_by_user_id(db, user_id=user_id)
        if existing:
            return existing

        settings_obj = MessageSettings(
            user_id=user_id,
            allow_strangers=True,
            notify_new_messages=True,
            email_notification=False,
        )
        db.add(settings_obj)
        db.commit()
        db.refresh(settings_obj)
        return settings_obj


# Instancia global del CRUD
message_settings = CRUDMessageSettings(MessageSettings)
