"""
Conversión de mensajes ORM a respuestas para un observador concreto.

El contenido real de un mensaje retirado sigue en la base; aquí se decide
qué ve cada participante.
"""
from datetime import datetime
from typing import Optional

from app.config import get_settings
from app.models.message import Message
from app.models.user import User
from app.schemas.message import (
    AdminMessageResponse,
    AttachmentResponse,
    ConversationResponse,
    LastMessageResponse,
    MessageResponse,
    PartnerResponse,
)
from app.services.conversation_service import ConversationSummary
from app.services.recall_policy import RecallPolicy


def _placeholder() -> str:
    return get_settings().RECALLED_MESSAGE_PLACEHOLDER


def present_message(
    message: Message, viewer_id: int, now: datetime, policy: RecallPolicy
) -> MessageResponse:
    """
    Construir la vista de un mensaje para un participante.

    Args:
        message: Mensaje ORM
        viewer_id: ID del usuario que lo ve
        now: Instante usado para calcular ``can_recall``
        policy: Reglas de retiro

    Returns:
        MessageResponse con el texto sustituto si está retirado
    """
    recalled = bool(message.is_recalled)
    sender: Optional[User] = message.sender
    recipient: Optional[User] = message.recipient

    return MessageResponse(
        id=message.id,
        thread_id=message.thread_id,
        sender_id=message.sender_id,
        recipient_id=message.recipient_id,
        subject=message.subject,
        content=_placeholder() if recalled else message.content,
        original_content=message.content if recalled and viewer_id == message.sender_id else None,
        reply_to_id=message.reply_to_id,
        is_read=message.is_read,
        read_at=message.read_at,
        is_recalled=recalled,
        recalled_at=message.recalled_at,
        attachments=[] if recalled else [
            AttachmentResponse.model_validate(a) for a in message.attachments
        ],
        created_at=message.created_at,
        can_recall=policy.can_recall(message, viewer_id, now),
        sender_username=sender.username if sender else None,
        sender_display_name=sender.display_name if sender else None,
        sender_avatar_url=sender.avatar_url if sender else None,
        recipient_username=recipient.username if recipient else None,
        recipient_display_name=recipient.display_name if recipient else None,
        recipient_avatar_url=recipient.avatar_url if recipient else None,
    )


def present_partner(user: User) -> PartnerResponse:
    return PartnerResponse.model_validate(user)


def present_conversation(
    summary: ConversationSummary, partner: Optional[User]
) -> ConversationResponse:
    """Resumen de conversación; la vista previa respeta los retiros."""
    last = summary.last_message
    recalled = bool(last.is_recalled)

    return ConversationResponse(
        thread_id=summary.thread_id,
        partner_id=summary.partner_id,
        partner_username=partner.username if partner else None,
        partner_display_name=partner.display_name if partner else None,
        partner_avatar_url=partner.avatar_url if partner else None,
        last_message=LastMessageResponse(
            id=last.id,
            content=_placeholder() if recalled else last.content,
            sender_id=last.sender_id,
            is_recalled=recalled,
            is_read=last.is_read,
            has_attachments=bool(last.attachments) and not recalled,
            created_at=last.created_at,
        ),
        unread_count=summary.unread_count,
        total_messages=summary.total_messages,
    )


def present_admin_message(message: Message) -> AdminMessageResponse:
    recalled = bool(message.is_recalled)
    return AdminMessageResponse(
        id=message.id,
        thread_id=message.thread_id,
        sender_id=message.sender_id,
        recipient_id=message.recipient_id,
        sender_username=message.sender.username if message.sender else None,
        recipient_username=message.recipient.username if message.recipient else None,
        content=_placeholder() if recalled else message.content,
        is_read=message.is_read,
        is_recalled=recalled,
        sender_deleted=message.sender_deleted,
        recipient_deleted=message.recipient_deleted,
        created_at=message.created_at,
        read_at=message.read_at,
    )
