"""
Schemas comunes reutilizables: sobre de respuesta y paginación.
"""
from datetime import datetime
from math import ceil
from pydantic import BaseModel, Field, computed_field
from typing import Any, Generic, TypeVar, List, Optional


T = TypeVar('T')


class PaginationMeta(BaseModel):
    """Metadatos de paginación por página (page >= 1)."""

    page: int
    limit: int
    total: int

    @computed_field
    @property
    def total_pages(self) -> int:
        return ceil(self.total / self.limit) if self.limit else 0


class PaginatedData(BaseModel, Generic[T]):
    """Schema de respuesta paginada."""

    items: List[T]
    pagination: PaginationMeta


class APIResponse(BaseModel, Generic[T]):
    """Sobre uniforme para respuestas exitosas."""

    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class ErrorResponse(BaseModel):
    """Sobre uniforme para respuestas de error."""

    success: bool = False
    error_code: str
    detail: Any
    timestamp: datetime = Field(default_factory=datetime.utcnow)
