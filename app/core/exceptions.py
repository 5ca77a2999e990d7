"""
Excepciones personalizadas del servicio de mensajería.

Cada excepción lleva un error_code legible por máquina que los
handlers de app.main copian en la respuesta de error.
"""


class MessagingException(Exception):
    """Excepción base para todas las excepciones de la aplicación."""

    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str = "Error en la aplicación", error_code: str = None):
        self.message = message
        if error_code:
            self.error_code = error_code
        super().__init__(self.message)


class NotFoundException(MessagingException):
    """Excepción cuando un recurso no se encuentra (o no es visible)."""

    error_code = "NOT_FOUND"

    def __init__(self, message: str = "Recurso no encontrado", error_code: str = None):
        super().__init__(message, error_code)


class UnauthorizedException(MessagingException):
    """Excepción cuando el usuario no está autenticado."""

    error_code = "UNAUTHORIZED"

    def __init__(self, message: str = "No autorizado", error_code: str = None):
        super().__init__(message, error_code)


class ForbiddenException(MessagingException):
    """Excepción cuando el usuario no tiene permisos."""

    error_code = "FORBIDDEN"

    def __init__(self, message: str = "Acceso prohibido", error_code: str = None):
        super().__init__(message, error_code)


class BadRequestException(MessagingException):
    """Excepción cuando la solicitud es inválida."""

    error_code = "BAD_REQUEST"

    def __init__(self, message: str = "Solicitud inválida", error_code: str = None):
        super().__init__(message, error_code)


class ValidationException(BadRequestException):
    """Excepción cuando falla la validación de datos."""

    error_code = "VALIDATION_ERROR"

    def __init__(self, message: str = "Error de validación", error_code: str = None):
        super().__init__(message, error_code)


class ConflictException(MessagingException):
    """Excepción cuando la operación ya no tiene efecto (ya leído, ya eliminado)."""

    error_code = "CONFLICT"

    def __init__(self, message: str = "Conflicto con el recurso", error_code: str = None):
        super().__init__(message, error_code)


class InvalidStateException(MessagingException):
    """Excepción cuando la transición de estado no está permitida."""

    error_code = "INVALID_STATE"

    def __init__(self, message: str = "Estado inválido para esta operación", error_code: str = None):
        super().__init__(message, error_code)
