"""
Modelo ORM para Usuarios.

La identidad la gestiona el servicio de autenticación; la mensajería
solo lee esta tabla para validar destinatarios y enriquecer respuestas.
"""
from sqlalchemy import Column, String, Integer, DateTime, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.base import Base, SoftDeleteMixin


# Enums
user_role_enum = Enum('usuario', 'moderador', 'administrador', name='user_role')
user_status_enum = Enum('active', 'suspended', 'banned', 'pending_verification', name='user_status')


class User(Base, SoftDeleteMixin):
    """Modelo de Usuarios del blog con soporte para soft delete."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    username = Column(String(50), nullable=False, unique=True, index=True)
    display_name = Column(String(100))
    avatar_url = Column(String(500))
    password_hash = Column(String(255), nullable=False, default="")
    role = Column(user_role_enum, default='usuario')
    status = Column(user_status_enum, default='active', index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    # deleted_at viene del SoftDeleteMixin

    # Relationships
    messages_sent = relationship("Message", back_populates="sender", foreign_keys="Message.sender_id")
    messages_received = relationship("Message", back_populates="recipient", foreign_keys="Message.recipient_id")
    message_settings = relationship("MessageSettings", back_populates="user", uselist=False, cascade="all, delete-orphan")
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User {self.username}>"

    def is_active(self) -> bool:
        """Verificar si el usuario está activo."""
        return self.status == "active" and self.deleted_at is None

    def is_admin(self) -> bool:
        """Verificar si el usuario es administrador o moderador."""
        return self.role in ["administrador", "moderador"]

    @property
    def public_name(self) -> str:
        return self.display_name or self.username
