"""
Endpoints de configuración de mensajes privados del usuario actual.
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.deps import get_db, get_current_active_user
from app.crud.message_settings import message_settings as crud_message_settings
from app.schemas.common import APIResponse
from app.schemas.message_settings import MessageSettingsResponse, MessageSettingsUpdate
from app.models.user import User

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/me/message-settings", response_model=APIResponse[MessageSettingsResponse])
def get_my_message_settings(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Obtener mi configuración de mensajes.

    Se crea con los valores por defecto la primera vez.
    """
    settings_obj = crud_message_settings.get_or_create(db, user_id=current_user.id)
    return APIResponse(data=MessageSettingsResponse.model_validate(settings_obj))


@router.patch("/me/message-settings", response_model=APIResponse[MessageSettingsResponse])
def update_my_message_settings(
    settings_update: MessageSettingsUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Actualizar mi configuración de mensajes.

    Solo se actualizan los campos enviados (parcial).
    """
    settings_obj = crud_message_settings.get_or_create(db, user_id=current_user.id)
    settings_obj = crud_message_settings.update(db, db_obj=settings_obj, obj_in=settings_update)
    logger.info(f"Configuración de mensajes actualizada para el usuario {current_user.id}")
    return APIResponse(
        data=MessageSettingsResponse.model_validate(settings_obj),
        message="Configuración actualizada",
    )
