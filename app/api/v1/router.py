"""
Router principal de la API v1.
Incluye todos los endpoints de la aplicación.
"""
from fastapi import APIRouter

from app.api.v1.endpoints import (
    messages,
    message_settings,
    notifications,
)

api_router = APIRouter()

# ============================================================================
# MENSAJES PRIVADOS
# ============================================================================
api_router.include_router(
    messages.router,
    prefix="/messages",
    tags=["Mensajes"]
)

# ============================================================================
# USUARIOS
# ============================================================================
api_router.include_router(
    message_settings.router,
    prefix="/users",
    tags=["Usuarios"]
)

# ============================================================================
# NOTIFICACIONES
# ============================================================================
api_router.include_router(
    notifications.router,
    prefix="/notifications",
    tags=["Notificaciones"]
)
