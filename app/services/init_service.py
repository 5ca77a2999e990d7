"""
Servicio de inicialización de la aplicación.
Crea las tablas y los datos iniciales necesarios al arrancar.
"""
import logging
import time
from sqlalchemy import text
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from app.config import get_settings
from app.db.base import Base
from app.db.session import SessionLocal, engine
from app.crud.user import user as crud_user
from app.models.user import User
from app.core.security import get_password_hash

logger = logging.getLogger(__name__)


def wait_for_db(max_retries: int = 10, delay: int = 2) -> bool:
    """
    Esperar a que la base de datos esté lista.

    Args:
        max_retries: Número máximo de reintentos
        delay: Segundos entre reintentos

    Returns:
        True si la BD está lista, False si falló
    """
    for attempt in range(max_retries):
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            if attempt < max_retries - 1:
                logger.info(f"Esperando base de datos... intento {attempt + 1}/{max_retries}")
                time.sleep(delay)
            else:
                logger.error(f"Base de datos no disponible después de {max_retries} intentos: {e}")
                return False
    return False


def create_tables() -> None:
    """Crear las tablas que falten (users, messages, adjuntos, ajustes, notificaciones)."""
    import app.models  # noqa: F401  registra los modelos en Base.metadata
    Base.metadata.create_all(bind=engine)


def init_admin_user() -> bool:
    """
    Crear usuario administrador inicial si no existe.

    Usa las variables de entorno ADMIN_EMAIL y ADMIN_PASSWORD.

    Returns:
        True si se creó el usuario, False si ya existía o no está configurado
    """
    settings = get_settings()

    if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
        logger.info("ADMIN_EMAIL o ADMIN_PASSWORD no configurados; se omite el administrador inicial")
        return False

    db: Session = SessionLocal()

    try:
        existing_admin = crud_user.get_by_email(db, email=settings.ADMIN_EMAIL, include_deleted=True)

        if existing_admin:
            logger.info(f"Usuario administrador ya existe: {settings.ADMIN_EMAIL}")
            return False

        admin_user = User(
            email=settings.ADMIN_EMAIL,
            username=settings.ADMIN_EMAIL.split("@")[0],
            display_name="Administrador",
            password_hash=get_password_hash(settings.ADMIN_PASSWORD),
            role="administrador",
            status="active",
        )

        db.add(admin_user)
        db.commit()

        logger.info(f"Usuario administrador creado: {settings.ADMIN_EMAIL}")
        return True

    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error al crear usuario administrador")
        return False

    finally:
        db.close()


def run_initialization():
    """
    Ejecutar todas las tareas de inicialización.
    Llamar desde el evento startup de FastAPI.
    """
    logger.info("Ejecutando inicialización...")

    if not wait_for_db():
        return

    create_tables()
    init_admin_user()

    logger.info("Inicialización completada")
