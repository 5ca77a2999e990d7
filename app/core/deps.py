"""
Dependencias comunes de FastAPI.
"""
from functools import partial
from typing import Generator, Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from jose import JWTError

from app.db.session import SessionLocal
from app.core.security import decode_token
from app.core.exceptions import ForbiddenException, UnauthorizedException
from app.crud.user import user as crud_user
from app.models.user import User
from app.services.messaging_service import MessagingService
from app.services.notification_service import notify_new_message

security = HTTPBearer(auto_error=False)


def get_db() -> Generator:
    """
    Dependencia que proporciona una sesión de base de datos.

    Yields:
        Session: Sesión de SQLAlchemy
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> int:
    """
    Obtener el ID del usuario actual desde el JWT.

    Args:
        credentials: Credenciales HTTP Bearer

    Returns:
        ID del usuario

    Raises:
        UnauthorizedException: Si falta el token o es inválido
    """
    if credentials is None:
        raise UnauthorizedException("No autenticado")

    try:
        payload = decode_token(credentials.credentials)
    except JWTError:
        raise UnauthorizedException("No se pudieron validar las credenciales")

    subject = payload.get("sub")
    token_type = payload.get("type")

    if subject is None or token_type != "access":
        raise UnauthorizedException("No se pudieron validar las credenciales")

    try:
        return int(subject)
    except (TypeError, ValueError):
        raise UnauthorizedException("No se pudieron validar las credenciales")


async def get_current_user(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
) -> User:
    """
    Obtener el usuario actual completo desde la base de datos.

    Raises:
        UnauthorizedException: Si el usuario del token no existe
    """
    user = crud_user.get(db, id=user_id)

    if user is None:
        raise UnauthorizedException("Usuario no encontrado")

    return user


async def get_current_active_user(
    current_user: User = Depends(get_current_user)
) -> User:
    """
    Verificar que el usuario actual esté activo.

    Raises:
        ForbiddenException: Si el usuario está suspendido, baneado o sin verificar
    """
    if not current_user.is_active():
        raise ForbiddenException("Usuario inactivo")

    return current_user


async def get_current_admin_user(
    current_user: User = Depends(get_current_active_user)
) -> User:
    """
    Verificar que el usuario actual sea administrador o moderador.

    Raises:
        ForbiddenException: Si el usuario no es administrador ni moderador
    """
    if not current_user.is_admin():
        raise ForbiddenException("No tiene permisos de administrador")

    return current_user


def get_messaging_service(db: Session = Depends(get_db)) -> MessagingService:
    """Fachada de mensajería con el notificador in-app por defecto."""
    return MessagingService(db, notifier=partial(notify_new_message, db))
