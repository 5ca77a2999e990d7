"""
Identidad de hilos de mensajes privados.

Todos los mensajes entre las mismas dos personas comparten un thread_id
que no depende de quién envía, sin necesidad de una tabla de conversaciones.
"""
from app.core.exceptions import ValidationException

THREAD_ID_SEPARATOR = "-"


def resolve_thread_id(user_a: int, user_b: int) -> str:
    """
    Calcular el thread_id canónico de un par de usuarios.

    Args:
        user_a: ID de uno de los usuarios
        user_b: ID del otro usuario

    Returns:
        "<menor>-<mayor>", igual para (a, b) y (b, a)

    Raises:
        ValidationException: Si algún ID no es positivo o ambos son iguales
    """
    if isinstance(user_a, bool) or isinstance(user_b, bool):
        raise ValidationException("ID de usuario inválido")
    if not isinstance(user_a, int) or not isinstance(user_b, int):
        raise ValidationException("ID de usuario inválido")
    if user_a <= 0 or user_b <= 0:
        raise ValidationException("ID de usuario inválido")
    if user_a == user_b:
        raise ValidationException("No se puede crear un hilo con uno mismo")

    low, high = sorted((user_a, user_b))
    return f"{low}{THREAD_ID_SEPARATOR}{high}"


def thread_participants(thread_id: str) -> tuple[int, int]:
    """
    Obtener los dos IDs de usuario de un thread_id.

    Raises:
        ValidationException: Si el thread_id no tiene el formato esperado
    """
    parts = thread_id.split(THREAD_ID_SEPARATOR)
    if len(parts) != 2 or not all(p.isdigit() for p in parts):
        raise ValidationException("thread_id inválido")
    low, high = int(parts[0]), int(parts[1])
    if resolve_thread_id(low, high) != thread_id:
        raise ValidationException("thread_id inválido")
    return low, high
