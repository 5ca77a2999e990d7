"""
Configuración del servicio de mensajería privada del blog.
Maneja variables de entorno y settings globales.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """Configuración de la aplicación usando Pydantic Settings v2."""

    # Database (REQUERIDO - debe estar en .env)
    DATABASE_URL: str

    # Security (REQUERIDO - debe estar en .env)
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Application
    APP_NAME: str = "Blog Messaging API"
    APP_VERSION: str = "2.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Initial Admin (opcional)
    ADMIN_EMAIL: str = ""
    ADMIN_PASSWORD: str = ""

    # Mensajes privados
    MESSAGE_MAX_LENGTH: int = 2000
    MESSAGE_SUBJECT_MAX_LENGTH: int = 100
    MESSAGE_PREVIEW_LENGTH: int = 100
    MESSAGE_MAX_ATTACHMENTS: int = 10
    MESSAGE_RECALL_WINDOW_SECONDS: int = 180  # 3 minutos
    MESSAGES_DEFAULT_PAGE_SIZE: int = 20
    MESSAGES_MAX_PAGE_SIZE: int = 50
    ADMIN_MESSAGES_MAX_PAGE_SIZE: int = 100
    RECALLED_MESSAGE_PLACEHOLDER: str = "Mensaje retirado"

    # Computed properties
    @property
    def allowed_origins_list(self) -> List[str]:
        """Convierte ALLOWED_ORIGINS string a lista."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Instancia Singleton de settings
_settings_instance = None


def get_settings() -> Settings:
    """
    Obtener instancia Singleton de configuración.
    Se carga una sola vez y se reutiliza.
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance


# Instancia global de settings (Singleton)
settings = get_settings()
