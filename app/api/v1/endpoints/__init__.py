"""
Endpoints de la API v1.
"""
from app.api.v1.endpoints import (
    messages,
    message_settings,
    notifications,
)

__all__ = [
    "messages",
    "message_settings",
    "notifications",
]
