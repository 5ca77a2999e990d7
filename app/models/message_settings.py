"""
Modelo ORM para la configuración de mensajes privados de cada usuario.
"""
from sqlalchemy import Column, Boolean, Integer, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.base import Base


class MessageSettings(Base):
    """Preferencias de mensajería privada de un usuario."""

    __tablename__ = "message_settings"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)

    allow_strangers = Column(Boolean, nullable=False, default=True)
    notify_new_messages = Column(Boolean, nullable=False, default=True)
    # Solo se guarda: lo lee el servicio externo de correo, la mensajería no envía emails
    email_notification = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="message_settings")

    def __repr__(self):
        return f"<MessageSettings for user {self.user_id}>"
