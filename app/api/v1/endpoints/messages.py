"""
Endpoints de mensajes privados.

Las rutas fijas (/inbox, /conversations, /all-users, /admin/...) se
declaran antes de /{message_id}.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from app.core.deps import (
    get_current_active_user,
    get_current_admin_user,
    get_messaging_service,
)
from app.core.exceptions import ConflictException
from app.models.message import Message
from app.models.user import User
from app.schemas.common import APIResponse, PaginatedData, PaginationMeta
from app.schemas.message import (
    AdminMessageResponse,
    ConversationHistoryResponse,
    ConversationResponse,
    DeletedCountResponse,
    MarkedCountResponse,
    MessageCreate,
    MessageEdit,
    MessageResponse,
    PartnerResponse,
    ThreadIdResponse,
    UnreadCountResponse,
    UserListResponse,
)
from app.services.message_presenter import (
    present_admin_message,
    present_conversation,
    present_message,
    present_partner,
)
from app.services.messaging_service import MessagingService
from app.crud.user import user as crud_user

router = APIRouter()


def _present(service: MessagingService, msg: Message, user_id: int) -> MessageResponse:
    return present_message(msg, user_id, service.clock(), service.policy)


def _page(service: MessagingService, items, total: int, page: int, limit: int, user_id: int):
    return PaginatedData[MessageResponse](
        items=[_present(service, m, user_id) for m in items],
        pagination=PaginationMeta(page=page, limit=limit, total=total),
    )


# ============================================================================
# ENVÍO
# ============================================================================

@router.post("", response_model=APIResponse[MessageResponse], status_code=status.HTTP_201_CREATED)
def send_message(
    message_in: MessageCreate,
    current_user: User = Depends(get_current_active_user),
    service: MessagingService = Depends(get_messaging_service),
):
    """
    Enviar un mensaje privado.

    Requiere autenticación. El destinatario recibe una notificación in-app
    salvo que la haya desactivado.
    """
    msg = service.send(
        user_id=current_user.id,
        recipient_id=message_in.recipient_id,
        content=message_in.content,
        subject=message_in.subject,
        reply_to_id=message_in.reply_to_id,
        attachments=message_in.attachments,
    )
    return APIResponse(data=_present(service, msg, current_user.id), message="Mensaje enviado")


# ============================================================================
# LISTADOS
# ============================================================================

@router.get("/inbox", response_model=APIResponse[PaginatedData[MessageResponse]])
def get_inbox(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    thread_id: Optional[str] = Query(None),
    current_user: User = Depends(get_current_active_user),
    service: MessagingService = Depends(get_messaging_service),
):
    """Mensajes recibidos, del más reciente al más antiguo."""
    items, total, page, limit = service.list_inbox(current_user.id, page, limit, thread_id)
    return APIResponse(data=_page(service, items, total, page, limit, current_user.id))


@router.get("/outbox", response_model=APIResponse[PaginatedData[MessageResponse]])
def get_outbox(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    thread_id: Optional[str] = Query(None),
    current_user: User = Depends(get_current_active_user),
    service: MessagingService = Depends(get_messaging_service),
):
    """Mensajes enviados, del más reciente al más antiguo."""
    items, total, page, limit = service.list_outbox(current_user.id, page, limit, thread_id)
    return APIResponse(data=_page(service, items, total, page, limit, current_user.id))


@router.get("/conversations", response_model=APIResponse[PaginatedData[ConversationResponse]])
def get_conversations(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    current_user: User = Depends(get_current_active_user),
    service: MessagingService = Depends(get_messaging_service),
):
    """
    Listar conversaciones del usuario actual.

    Una entrada por cada usuario con el que hay mensajes visibles, ordenadas
    por el último mensaje.
    """
    summaries, total, page, limit = service.list_conversations(current_user.id, page, limit)
    partners = crud_user.get_many(service.db, ids=[s.partner_id for s in summaries])

    return APIResponse(
        data=PaginatedData[ConversationResponse](
            items=[present_conversation(s, partners.get(s.partner_id)) for s in summaries],
            pagination=PaginationMeta(page=page, limit=limit, total=total),
        )
    )


@router.get("/conversation/{partner_id}", response_model=APIResponse[ConversationHistoryResponse])
def get_conversation_history(
    partner_id: int,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    mark_read: bool = Query(True),
    current_user: User = Depends(get_current_active_user),
    service: MessagingService = Depends(get_messaging_service),
):
    """
    Historial con otro usuario.

    La página 1 contiene los mensajes más recientes, ordenados del más
    antiguo al más nuevo. Con ``mark_read`` (por defecto) se marcan como
    leídos los mensajes recibidos del hilo.
    """
    partner, items, total, page, limit = service.get_conversation_history(
        current_user.id, partner_id, page, limit
    )
    if mark_read:
        service.mark_thread_as_read(
            current_user.id, service.resolve_thread_id(current_user.id, partner_id)
        )

    return APIResponse(
        data=ConversationHistoryResponse(
            partner=present_partner(partner),
            items=[_present(service, m, current_user.id) for m in items],
            pagination=PaginationMeta(page=page, limit=limit, total=total),
        )
    )


@router.get("/unread-count", response_model=APIResponse[UnreadCountResponse])
def get_unread_count(
    current_user: User = Depends(get_current_active_user),
    service: MessagingService = Depends(get_messaging_service),
):
    """Cantidad de mensajes recibidos sin leer."""
    return APIResponse(
        data=UnreadCountResponse(unread_count=service.get_unread_count(current_user.id))
    )


@router.get("/thread-id/{other_user_id}", response_model=APIResponse[ThreadIdResponse])
def get_thread_id(
    other_user_id: int,
    current_user: User = Depends(get_current_active_user),
    service: MessagingService = Depends(get_messaging_service),
):
    """thread_id del hilo con otro usuario (exista o no)."""
    return APIResponse(
        data=ThreadIdResponse(thread_id=service.resolve_thread_id(current_user.id, other_user_id))
    )


# ============================================================================
# DESTINATARIOS
# ============================================================================

@router.get("/admin-users", response_model=APIResponse[UserListResponse])
def get_admin_users(
    current_user: User = Depends(get_current_active_user),
    service: MessagingService = Depends(get_messaging_service),
):
    """
    Administradores a los que se puede escribir.

    Disponible para cualquier usuario autenticado.
    """
    admins = service.list_admin_contacts()
    return APIResponse(data=UserListResponse(users=[present_partner(u) for u in admins]))


@router.get("/all-users", response_model=APIResponse[PaginatedData[PartnerResponse]])
def get_all_users(
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    current_user: User = Depends(get_current_admin_user),
    service: MessagingService = Depends(get_messaging_service),
):
    """
    Buscar usuarios activos para iniciar una conversación.

    Requiere rol de administrador o moderador. Filtra por username o
    display_name; como máximo 50 por página.
    """
    users, total, page, limit = service.search_users(search, page, limit)
    return APIResponse(
        data=PaginatedData[PartnerResponse](
            items=[present_partner(u) for u in users],
            pagination=PaginationMeta(page=page, limit=limit, total=total),
        )
    )


# ============================================================================
# ESTADO DE LECTURA
# ============================================================================

@router.put("/read-all", response_model=APIResponse[MarkedCountResponse])
def mark_all_as_read(
    current_user: User = Depends(get_current_active_user),
    service: MessagingService = Depends(get_messaging_service),
):
    """Marcar como leídos todos los mensajes recibidos."""
    count = service.mark_all_as_read(current_user.id)
    return APIResponse(
        data=MarkedCountResponse(marked_count=count),
        message=f"{count} mensajes marcados como leídos",
    )


@router.put("/thread/{thread_id}/read", response_model=APIResponse[MarkedCountResponse])
def mark_thread_as_read(
    thread_id: str,
    current_user: User = Depends(get_current_active_user),
    service: MessagingService = Depends(get_messaging_service),
):
    """Marcar como leídos los mensajes recibidos en un hilo."""
    count = service.mark_thread_as_read(current_user.id, thread_id)
    return APIResponse(data=MarkedCountResponse(marked_count=count))


@router.delete("/thread/{thread_id}", response_model=APIResponse[DeletedCountResponse])
def delete_thread(
    thread_id: str,
    current_user: User = Depends(get_current_active_user),
    service: MessagingService = Depends(get_messaging_service),
):
    """Ocultar todo un hilo en el lado del usuario actual."""
    count = service.delete_thread(current_user.id, thread_id)
    return APIResponse(data=DeletedCountResponse(deleted_count=count))


# ============================================================================
# ADMINISTRACIÓN
# ============================================================================

@router.get("/admin/all", response_model=APIResponse[PaginatedData[AdminMessageResponse]])
def admin_list_messages(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    sender_id: Optional[int] = Query(None),
    receiver_id: Optional[int] = Query(None),
    current_user: User = Depends(get_current_admin_user),
    service: MessagingService = Depends(get_messaging_service),
):
    """
    Listar todos los mensajes (moderación).

    Requiere rol de administrador o moderador.
    """
    items, total, page, limit = service.admin_list_messages(
        page, limit, sender_id=sender_id, recipient_id=receiver_id
    )
    return APIResponse(
        data=PaginatedData[AdminMessageResponse](
            items=[present_admin_message(m) for m in items],
            pagination=PaginationMeta(page=page, limit=limit, total=total),
        )
    )


@router.delete("/admin/{message_id}", response_model=APIResponse[dict])
def admin_delete_message(
    message_id: int,
    current_user: User = Depends(get_current_admin_user),
    service: MessagingService = Depends(get_messaging_service),
):
    """
    Eliminar un mensaje permanentemente.

    Requiere rol de administrador o moderador.
    """
    service.admin_delete_message(message_id)
    return APIResponse(data={"deleted": True}, message="Mensaje eliminado permanentemente")


# ============================================================================
# MENSAJE INDIVIDUAL
# ============================================================================

@router.get("/{message_id}", response_model=APIResponse[MessageResponse])
def get_message(
    message_id: int,
    current_user: User = Depends(get_current_active_user),
    service: MessagingService = Depends(get_messaging_service),
):
    """Obtener un mensaje visible para el usuario actual."""
    msg = service.get_message(current_user.id, message_id)
    return APIResponse(data=_present(service, msg, current_user.id))


@router.put("/{message_id}/read", response_model=APIResponse[dict])
def mark_message_as_read(
    message_id: int,
    current_user: User = Depends(get_current_active_user),
    service: MessagingService = Depends(get_messaging_service),
):
    """Marcar un mensaje recibido como leído."""
    if not service.mark_as_read(current_user.id, message_id):
        raise ConflictException("El mensaje ya estaba leído", error_code="ALREADY_READ")
    return APIResponse(data={"marked": True})


@router.put("/{message_id}/recall", response_model=APIResponse[dict])
def recall_message(
    message_id: int,
    current_user: User = Depends(get_current_active_user),
    service: MessagingService = Depends(get_messaging_service),
):
    """
    Retirar un mensaje propio.

    Solo el remitente y dentro de los 3 minutos posteriores al envío.
    """
    service.recall(current_user.id, message_id)
    return APIResponse(data={"recalled": True}, message="Mensaje retirado")


@router.put("/{message_id}/edit", response_model=APIResponse[MessageResponse])
def edit_message(
    message_id: int,
    message_in: MessageEdit,
    current_user: User = Depends(get_current_active_user),
    service: MessagingService = Depends(get_messaging_service),
):
    """Editar y reenviar un mensaje retirado."""
    msg = service.edit(
        current_user.id, message_id, message_in.content, attachments=message_in.attachments
    )
    return APIResponse(data=_present(service, msg, current_user.id), message="Mensaje reenviado")


@router.delete("/{message_id}", response_model=APIResponse[dict])
def delete_message(
    message_id: int,
    current_user: User = Depends(get_current_active_user),
    service: MessagingService = Depends(get_messaging_service),
):
    """Ocultar un mensaje solo para el usuario actual."""
    if not service.delete_message(current_user.id, message_id):
        raise ConflictException("El mensaje ya estaba eliminado", error_code="ALREADY_DELETED")
    return APIResponse(data={"deleted": True})
