"""
Aplicación FastAPI principal del servicio de mensajería privada.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings
from app.api.v1.router import api_router
from app.services.init_service import run_initialization
from app.schemas.common import ErrorResponse
from app.core.exceptions import (
    MessagingException,
    NotFoundException,
    UnauthorizedException,
    ForbiddenException,
    BadRequestException,
    ConflictException,
    InvalidStateException,
)

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Crear aplicación FastAPI
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="""
    ## Mensajería privada del blog

    API RESTful de mensajes uno a uno entre usuarios registrados.

    ### Características principales:

    * **Hilos** - Un hilo por pareja de usuarios, sin tabla de conversaciones
    * **Bandejas** - Entrada, salida y lista de conversaciones paginadas
    * **Lectura** - Estado leído por mensaje, por hilo o global
    * **Retiro** - Retirar un mensaje durante 3 minutos y reenviarlo editado
    * **Borrado** - Cada participante oculta mensajes solo en su lado
    * **Notificaciones** - Aviso in-app al destinatario

    ### Documentación:

    - **Swagger UI**: /docs
    - **ReDoc**: /redoc
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# Configurar CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def error_response(status_code: int, error_code: str, detail) -> JSONResponse:
    """Construir el sobre de error uniforme."""
    body = ErrorResponse(error_code=error_code, detail=detail)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


# Exception Handlers
EXCEPTION_STATUS = {
    NotFoundException: status.HTTP_404_NOT_FOUND,
    UnauthorizedException: status.HTTP_401_UNAUTHORIZED,
    ForbiddenException: status.HTTP_403_FORBIDDEN,
    BadRequestException: status.HTTP_400_BAD_REQUEST,
    ConflictException: status.HTTP_409_CONFLICT,
    InvalidStateException: status.HTTP_409_CONFLICT,
}


@app.exception_handler(MessagingException)
async def messaging_exception_handler(request: Request, exc: MessagingException):
    """Handler para las excepciones de dominio."""
    status_code = next(
        (code for exc_type, code in EXCEPTION_STATUS.items() if isinstance(exc, exc_type)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    response = error_response(status_code, exc.error_code, exc.message)
    if status_code == status.HTTP_401_UNAUTHORIZED:
        response.headers["WWW-Authenticate"] = "Bearer"
    return response


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handler para errores HTTP de FastAPI/Starlette (404 de rutas, 405...)."""
    return error_response(exc.status_code, "HTTP_ERROR", exc.detail)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handler para errores de validación de Pydantic."""
    errors = []
    for error in exc.errors():
        errors.append({
            "type": error.get("type"),
            "loc": error.get("loc"),
            "msg": error.get("msg"),
        })

    return error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, "VALIDATION_ERROR", errors)


# Incluir routers de la API
app.include_router(api_router, prefix="/api/v1")


# Endpoint raíz
@app.get("/", tags=["Health"])
async def root():
    """
    Endpoint raíz para verificar que la API está funcionando.
    """
    return {
        "message": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "online",
        "docs": "/docs",
        "redoc": "/redoc"
    }


# Health check
@app.get("/health", tags=["Health"])
async def health_check():
    """
    Endpoint de health check para monitoreo.
    """
    return {
        "status": "healthy",
        "version": settings.APP_VERSION
    }


# Startup event
@app.on_event("startup")
async def startup_event():
    """
    Evento ejecutado al iniciar la aplicación.
    """
    logger.info(f"{settings.APP_NAME} v{settings.APP_VERSION} iniciada")
    logger.info(f"Modo debug: {settings.DEBUG}")
    run_initialization()


# Shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    """
    Evento ejecutado al apagar la aplicación.
    """
    logger.info(f"{settings.APP_NAME} detenida")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
