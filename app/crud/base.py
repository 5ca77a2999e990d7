"""
CRUD base genérico con operaciones comunes y soporte para Soft Delete.
"""
from typing import Generic, TypeVar, Type, Optional, Any, Dict
from sqlalchemy.orm import Session
from pydantic import BaseModel
from app.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)


class CRUDBase(Generic[ModelType, UpdateSchemaType]):
    """
    Clase base para operaciones CRUD.

    Si el modelo tiene deleted_at, las consultas filtran automáticamente
    los registros eliminados a menos que se especifique lo contrario.
    """

    def __init__(self, model: Type[ModelType]):
        """
        Inicializar CRUD con el modelo ORM.

        Args:
            model: Modelo ORM de SQLAlchemy
        """
        self.model = model

    def _base_query(self, db: Session, include_deleted: bool = False):
        """
        Crear query base con filtro de soft delete.

        Args:
            db: Sesión de base de datos
            include_deleted: Si es True, incluye registros eliminados

        Returns:
            Query filtrado
        """
        query = db.query(self.model)
        if not include_deleted and hasattr(self.model, 'deleted_at'):
            query = query.filter(self.model.deleted_at.is_(None))
        return query

    def get(
        self,
        db: Session,
        id: Any,
        include_deleted: bool = False
    ) -> Optional[ModelType]:
        """
        Obtener un registro por ID.

        Args:
            db: Sesión de base de datos
            id: ID del registro
            include_deleted: Si es True, incluye registros eliminados

        Returns:
            Registro encontrado o None
        """
        return self._base_query(db, include_deleted).filter(
            self.model.id == id
        ).first()

    def update(
        self,
        db: Session,
        *,
        db_obj: ModelType,
        obj_in: UpdateSchemaType | Dict[str, Any]
    ) -> ModelType:
        """
        Actualizar un registro existente.

        Args:
            db: Sesión de base de datos
            db_obj: Objeto de base de datos a actualizar
            obj_in: Schema o dict con datos de actualización

        Returns:
            Registro actualizado
        """
        if isinstance(obj_in, dict):
            update_data = obj_in
        else:
            update_data = obj_in.model_dump(exclude_unset=True)

        for field in update_data:
            if hasattr(db_obj, field):
                setattr(db_obj, field, update_data[field])

        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def remove(self, db: Session, *, id: Any) -> Optional[ModelType]:
        """
        Eliminar un registro (HARD DELETE).

        ADVERTENCIA: Este método elimina permanentemente el registro.

        Args:
            db: Sesión de base de datos
            id: ID del registro a eliminar

        Returns:
            Registro eliminado o None si no existía
        """
        obj = self._base_query(db).filter(self.model.id == id).first()
        if obj:
            db.delete(obj)
            db.commit()
        return obj
