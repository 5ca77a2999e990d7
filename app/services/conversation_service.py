"""
Agregador de conversaciones.

La lista de conversaciones se calcula en cada lectura agrupando los
mensajes visibles por thread_id; no existe tabla de conversaciones que
pueda desincronizarse tras un borrado o un retiro.
"""
from typing import List, NamedTuple, Tuple
from sqlalchemy import and_, case, desc, distinct, func
from sqlalchemy.orm import Session, selectinload

from app.crud.message import visible_to
from app.models.message import Message


class ConversationSummary(NamedTuple):
    """Resumen por hilo para un usuario concreto."""
    thread_id: str
    partner_id: int
    last_message: Message
    unread_count: int
    total_messages: int


def count_conversations(db: Session, *, user_id: int) -> int:
    """Cantidad de hilos con al menos un mensaje visible para el usuario."""
    return (
        db.query(func.count(distinct(Message.thread_id)))
        .filter(visible_to(user_id))
        .scalar()
        or 0
    )


def get_conversations(
    db: Session, *, user_id: int, skip: int = 0, limit: int = 20
) -> Tuple[List[ConversationSummary], int]:
    """
    Conversaciones del usuario ordenadas por el último mensaje visible.

    Args:
        db: Sesión de base de datos
        user_id: ID del usuario que consulta
        skip: Cantidad de conversaciones a saltar
        limit: Límite de conversaciones

    Returns:
        Tupla (resúmenes de la página, total de conversaciones)
    """
    visible = visible_to(user_id)
    unread = func.sum(
        case(
            (and_(Message.recipient_id == user_id, Message.is_read == False), 1),
            else_=0,
        )
    )

    stats = (
        db.query(
            Message.thread_id.label("thread_id"),
            func.max(Message.created_at).label("last_message_at"),
            func.max(Message.id).label("max_id"),
            func.count(Message.id).label("total_messages"),
            unread.label("unread_count"),
        )
        .filter(visible)
        .group_by(Message.thread_id)
        .order_by(desc("last_message_at"), desc("max_id"))
        .offset(skip)
        .limit(limit)
        .all()
    )
    total = count_conversations(db, user_id=user_id)
    if not stats:
        return [], total

    thread_ids = [row.thread_id for row in stats]

    # Último mensaje visible por hilo (empates por id)
    ranked = (
        db.query(
            Message.id.label("id"),
            func.row_number()
            .over(
                partition_by=Message.thread_id,
                order_by=(desc(Message.created_at), desc(Message.id)),
            )
            .label("rn"),
        )
        .filter(visible, Message.thread_id.in_(thread_ids))
        .subquery()
    )
    last_ids = [row.id for row in db.query(ranked.c.id).filter(ranked.c.rn == 1).all()]
    last_messages = {
        m.thread_id: m
        for m in db.query(Message)
        .options(selectinload(Message.attachments))
        .filter(Message.id.in_(last_ids))
        .all()
    }

    summaries = []
    for row in stats:
        last = last_messages[row.thread_id]
        summaries.append(
            ConversationSummary(
                thread_id=row.thread_id,
                partner_id=last.get_other_user_id(user_id),
                last_message=last,
                unread_count=int(row.unread_count or 0),
                total_messages=int(row.total_messages),
            )
        )
    return summaries, total
