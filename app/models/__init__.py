"""
Módulo de modelos ORM.
Importa todos los modelos para que SQLAlchemy los reconozca.
"""
from app.db.base import Base

# Usuarios
from app.models.user import User
from app.models.message_settings import MessageSettings

# Mensajes privados
from app.models.message import Message, MessageAttachment

# Notificaciones
from app.models.notification import Notification

__all__ = [
    "Base",
    # Usuarios
    "User",
    "MessageSettings",
    # Mensajes privados
    "Message",
    "MessageAttachment",
    # Notificaciones
    "Notification",
]
