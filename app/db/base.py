"""
Base declarativa de SQLAlchemy con soporte para Soft Delete.
Todos los modelos heredan de esta clase base.
"""
from sqlalchemy import Column, DateTime
from sqlalchemy.orm import declarative_base


class SoftDeleteMixin:
    """
    Mixin que agrega el campo deleted_at a los modelos.

    El borrado de usuarios lo hace el servicio de identidad; aquí solo se
    filtra por deleted_at (ver CRUDBase). Los mensajes privados NO usan este
    mixin: cada participante tiene su propio borrado (ver
    Message.sender_deleted / recipient_deleted).
    """

    deleted_at = Column(DateTime(timezone=True), nullable=True, default=None, index=True)


# Base declarativa de SQLAlchemy
Base = declarative_base()
