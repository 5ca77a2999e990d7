"""
Schemas para mensajes privados y conversaciones.
"""
from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Literal, Optional

from app.schemas.common import PaginationMeta


class AttachmentIn(BaseModel):
    """Metadatos inmutables de un archivo subido y adjuntado a un mensaje."""

    file_name: str = Field(..., min_length=1, max_length=255)
    file_url: str = Field(..., min_length=1, max_length=1000)
    file_type: Literal["image", "file"] = "file"
    file_size: int = Field(0, ge=0)

    model_config = {"frozen": True}


class AttachmentResponse(BaseModel):
    """Schema de respuesta de adjunto."""

    id: int
    file_name: str
    file_url: str
    file_type: str
    file_size: int

    model_config = {"from_attributes": True}


class MessageCreate(BaseModel):
    """
    Schema para enviar un mensaje.

    Las longitudes (contenido recortado, asunto) y los IDs se validan en
    MessagingService para responder 400 con VALIDATION_ERROR.
    """

    recipient_id: int
    content: str
    subject: Optional[str] = None
    reply_to_id: Optional[int] = None
    attachments: Optional[List[AttachmentIn]] = None


class MessageEdit(BaseModel):
    """Schema para editar y reenviar un mensaje retirado."""

    content: str
    attachments: Optional[List[AttachmentIn]] = None


class MessageResponse(BaseModel):
    """
    Mensaje tal como lo ve un participante.

    Si el mensaje fue retirado, ``content`` lleva el texto sustituto y
    ``attachments`` va vacío; ``original_content`` solo se rellena para
    el remitente.
    """

    id: int
    thread_id: str
    sender_id: int
    recipient_id: int
    subject: Optional[str] = None
    content: str
    original_content: Optional[str] = None
    reply_to_id: Optional[int] = None
    is_read: bool
    read_at: Optional[datetime] = None
    is_recalled: bool
    recalled_at: Optional[datetime] = None
    attachments: List[AttachmentResponse] = []
    created_at: datetime
    can_recall: bool = False

    # Info adicional
    sender_username: Optional[str] = None
    sender_display_name: Optional[str] = None
    sender_avatar_url: Optional[str] = None
    recipient_username: Optional[str] = None
    recipient_display_name: Optional[str] = None
    recipient_avatar_url: Optional[str] = None


class AdminMessageResponse(BaseModel):
    """Vista de moderación: incluye el estado de borrado de ambos lados."""

    id: int
    thread_id: str
    sender_id: int
    recipient_id: int
    sender_username: Optional[str] = None
    recipient_username: Optional[str] = None
    content: str
    is_read: bool
    is_recalled: bool
    sender_deleted: bool
    recipient_deleted: bool
    created_at: datetime
    read_at: Optional[datetime] = None


class PartnerResponse(BaseModel):
    """Datos públicos del otro participante."""

    id: int
    username: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None

    model_config = {"from_attributes": True}


class UserListResponse(BaseModel):
    """Lista de posibles destinatarios."""

    users: List[PartnerResponse]


class LastMessageResponse(BaseModel):
    """Resumen del último mensaje visible de una conversación."""

    id: int
    content: str
    sender_id: int
    is_recalled: bool
    is_read: bool
    has_attachments: bool = False
    created_at: datetime


class ConversationResponse(BaseModel):
    """Schema de respuesta de conversación (derivada, nunca almacenada)."""

    thread_id: str
    partner_id: int
    partner_username: Optional[str] = None
    partner_display_name: Optional[str] = None
    partner_avatar_url: Optional[str] = None
    last_message: LastMessageResponse
    unread_count: int = 0
    total_messages: int = 0


class ConversationHistoryResponse(BaseModel):
    """Historial con un usuario, del más antiguo al más reciente dentro de la página."""

    partner: PartnerResponse
    items: List[MessageResponse]
    pagination: PaginationMeta


class UnreadCountResponse(BaseModel):
    """Schema de respuesta de contador de no leídos."""

    unread_count: int


class MarkedCountResponse(BaseModel):
    marked_count: int


class DeletedCountResponse(BaseModel):
    deleted_count: int


class ThreadIdResponse(BaseModel):
    thread_id: str
