"""
Endpoints de notificaciones.
"""
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.deps import get_db, get_current_active_user
from app.core.exceptions import ForbiddenException, NotFoundException
from app.crud.notification import notification as crud_notification
from app.schemas.common import APIResponse
from app.schemas.message import UnreadCountResponse
from app.schemas.notification import NotificationResponse
from app.models.user import User

router = APIRouter()


@router.get("", response_model=APIResponse[List[NotificationResponse]])
def get_notifications(
    limit: int = Query(50, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Obtener notificaciones del usuario actual.

    Requiere autenticacion.
    Retorna las notificaciones mas recientes (50 por defecto).
    """
    notifications = crud_notification.get_by_user(
        db, user_id=current_user.id, limit=limit
    )
    return APIResponse(data=[NotificationResponse.model_validate(n) for n in notifications])


@router.get("/unread-count", response_model=APIResponse[UnreadCountResponse])
def get_unread_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Obtener cantidad de notificaciones no leídas.

    Requiere autenticación.
    """
    count = crud_notification.get_unread_count(db, user_id=current_user.id)
    return APIResponse(data=UnreadCountResponse(unread_count=count))


@router.patch("/{notification_id}/read", response_model=APIResponse[NotificationResponse])
def mark_notification_as_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Marcar notificación como leída.

    Requiere autenticación.
    Solo se pueden marcar las propias notificaciones.
    """
    notification = crud_notification.get(db, id=notification_id)

    if not notification:
        raise NotFoundException("Notificación no encontrada")

    if notification.user_id != current_user.id:
        raise ForbiddenException("No tienes permiso para esta notificación")

    updated_notification = crud_notification.mark_as_read(db, notification_id=notification_id)
    return APIResponse(data=NotificationResponse.model_validate(updated_notification))
