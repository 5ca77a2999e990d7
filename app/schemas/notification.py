"""
Schemas para notificaciones.
"""
from pydantic import BaseModel
from typing import Optional, Dict, Any
from datetime import datetime


class NotificationResponse(BaseModel):
    """Schema de respuesta de notificación."""

    id: int
    user_id: int
    type: str
    title: str
    content: Optional[str] = None
    reference_id: Optional[int] = None
    reference_type: Optional[str] = None
    is_read: bool
    read_at: Optional[datetime] = None
    action_url: Optional[str] = None
    extra_data: Optional[Dict[str, Any]] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class NewMessageEvent(BaseModel):
    """
    Datos que recibe el hook de notificación tras un envío exitoso.

    message_preview: contenido truncado a MESSAGE_PREVIEW_LENGTH caracteres.
    """

    message_id: int
    sender_id: int
    recipient_id: int
    thread_id: str
    message_preview: str

    model_config = {"frozen": True}
