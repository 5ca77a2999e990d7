"""
CRUD de solo lectura sobre usuarios (la identidad es externa).
"""
from typing import Dict, Iterable, List, Optional, Tuple
from sqlalchemy import or_
from sqlalchemy.orm import Session
from app.crud.base import CRUDBase
from app.models.user import User


class CRUDUser(CRUDBase[User, dict]):
    """CRUD específico para usuarios con soporte para soft delete."""

    def get_by_email(
        self, db: Session, *, email: str, include_deleted: bool = False
    ) -> Optional[User]:
        """
        Obtener usuario por email.
        Por defecto excluye usuarios eliminados (soft delete).
        """
        query = db.query(User).filter(User.email == email)

        if not include_deleted:
            query = query.filter(User.deleted_at.is_(None))

        return query.first()

    def get_active(self, db: Session, *, id: int) -> Optional[User]:
        """Obtener un usuario no eliminado y con status 'active'."""
        return (
            db.query(User)
            .filter(User.id == id, User.status == "active", User.deleted_at.is_(None))
            .first()
        )

    def get_many(self, db: Session, *, ids: Iterable[int]) -> Dict[int, User]:
        """
        Obtener varios usuarios indexados por ID (incluye eliminados,
        para seguir mostrando el nombre en conversaciones antiguas).
        """
        ids = set(ids)
        if not ids:
            return {}
        users = db.query(User).filter(User.id.in_(ids)).all()
        return {u.id: u for u in users}

    def get_admins(self, db: Session, *, limit: int = 50) -> List[User]:
        """Administradores activos, por nombre visible (a quién escribir para pedir ayuda)."""
        return (
            db.query(User)
            .filter(
                User.role == "administrador",
                User.status == "active",
                User.deleted_at.is_(None),
            )
            .order_by(User.display_name.asc(), User.id.asc())
            .limit(limit)
            .all()
        )

    def search_active(
        self,
        db: Session,
        *,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[User], int]:
        """
        Buscar usuarios activos por username o display_name.

        Args:
            db: Sesión de base de datos
            search: Texto a buscar en username o display_name (sin distinguir mayúsculas)
            skip: Registros a saltar
            limit: Máximo de registros

        Returns:
            Tupla (usuarios de la página, total que coincide)
        """
        query = db.query(User).filter(User.status == "active", User.deleted_at.is_(None))

        if search:
            search_term = f"%{search}%"
            query = query.filter(
                or_(
                    User.username.ilike(search_term),
                    User.display_name.ilike(search_term)
                )
            )

        total = query.count()
        items = (
            query.order_by(User.display_name.asc(), User.id.asc())
            .offset(skip)
            .limit(limit)
            .all()
        )
        return items, total


# Instancia global del CRUD
user = CRUDUser(User)
