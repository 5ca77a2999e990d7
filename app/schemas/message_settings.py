"""
Schemas para la configuración de mensajes privados.
"""
from pydantic import BaseModel
from typing import Optional


class MessageSettingsResponse(BaseModel):
    """Schema de respuesta de configuración de mensajes."""

    user_id: int
    allow_strangers: bool
    notify_new_messages: bool
    email_notification: bool

    model_config = {"from_attributes": True}


class MessageSettingsUpdate(BaseModel):
    """Actualización parcial: solo se modifican los campos enviados."""

    allow_strangers: Optional[bool] = None
    notify_new_messages: Optional[bool] = None
    email_notification: Optional[bool] = None
