"""
Modelo ORM para Mensajes privados y sus adjuntos.

Cada lado de la conversación tiene su propio borrado suave
(sender_deleted / recipient_deleted); la fila persiste hasta que un
administrador la purga.
"""
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.base import Base


class Message(Base):
    """Modelo de Mensajes privados entre dos usuarios."""

    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sender_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    recipient_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    thread_id = Column(String(50), nullable=False, index=True)
    reply_to_id = Column(Integer, ForeignKey("messages.id", ondelete="SET NULL"), nullable=True)

    subject = Column(String(100))
    content = Column(Text, nullable=False)

    # Estado de lectura (solo lo modifica el destinatario)
    is_read = Column(Boolean, nullable=False, default=False, index=True)
    read_at = Column(DateTime(timezone=True))

    # Borrado suave por lado
    sender_deleted = Column(Boolean, nullable=False, default=False)
    sender_deleted_at = Column(DateTime(timezone=True))
    recipient_deleted = Column(Boolean, nullable=False, default=False)
    recipient_deleted_at = Column(DateTime(timezone=True))

    # Retiro: el contenido original se conserva para que el remitente lo edite
    is_recalled = Column(Boolean, nullable=False, default=False)
    recalled_at = Column(DateTime(timezone=True))

    # Se escribe siempre con zona UTC (recall_policy.utc_now)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    __table_args__ = (
        CheckConstraint('sender_id <> recipient_id', name='check_not_self_message'),
        Index('idx_messages_thread_created', 'thread_id', 'created_at'),
        Index('idx_messages_unread', 'recipient_id', 'is_read', 'recipient_deleted'),
    )

    # Relationships
    sender = relationship("User", back_populates="messages_sent", foreign_keys=[sender_id])
    recipient = relationship("User", back_populates="messages_received", foreign_keys=[recipient_id])
    reply_to = relationship("Message", remote_side=[id])
    attachments = relationship(
        "MessageAttachment",
        back_populates="message",
        cascade="all, delete-orphan",
        order_by="MessageAttachment.id",
    )

    def __repr__(self):
        return f"<Message {self.id} from {self.sender_id} to {self.recipient_id}>"

    def is_visible_to(self, user_id: int) -> bool:
        """Un mensaje desaparece para un usuario cuando ese usuario lo borra."""
        if user_id == self.sender_id and not self.sender_deleted:
            return True
        if user_id == self.recipient_id and not self.recipient_deleted:
            return True
        return False

    def get_other_user_id(self, current_user_id: int) -> int:
        """Obtener el ID del otro participante."""
        return self.recipient_id if self.sender_id == current_user_id else self.sender_id


class MessageAttachment(Base):
    """Metadatos de un archivo adjunto (el binario vive en el almacenamiento externo)."""

    __tablename__ = "message_attachments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    message_id = Column(Integer, ForeignKey("messages.id", ondelete="CASCADE"), nullable=False, index=True)
    file_name = Column(String(255), nullable=False)
    file_url = Column(String(1000), nullable=False)
    file_type = Column(String(20), nullable=False, default="file")
    file_size = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint('file_size >= 0', name='check_attachment_size_positive'),
    )

    message = relationship("Message", back_populates="attachments")

    def __repr__(self):
        return f"<MessageAttachment {self.file_name} for message {self.message_id}>"
