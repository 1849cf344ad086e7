"""
Schemas base reutilizáveis em toda a aplicação.
"""

from datetime import datetime
from typing import Generic, List, TypeVar

from pydantic import BaseModel, ConfigDict

from library_circulation.core.exceptions import LibraryError

T = TypeVar("T")


class BaseSchema(BaseModel):
    """Schema base com configurações padrão."""
    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
    )


class TimestampSchema(BaseSchema):
    """Schema com timestamps."""
    created_at: datetime
    updated_at: datetime


class PaginatedResponse(BaseModel, Generic[T]):
    """
    Resposta paginada genérica.

    Uso nos endpoints:
        @router.get("", response_model=PaginatedResponse[BookRead])
        async def list_books(...) -> PaginatedResponse[BookRead]:
            ...
    """
    items: List[T]
    total: int
    page: int
    page_size: int
    pages: int

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def create(
        cls,
        items: List[T],
        total: int,
        page: int,
        page_size: int,
    ) -> "PaginatedResponse[T]":
        """Factory method para criar resposta paginada."""
        pages = (total + page_size - 1) // page_size if page_size > 0 else 0
        return cls(
            items=items,
            total=total,
            page=page,
            page_size=page_size,
            pages=pages,
        )


class ErrorResponse(BaseModel):
    """
    Corpo de erro de domínio.

    Exemplo:
        {"error": "invalid_state", "message": "Reservation has expired"}

    `error` é o tipo estável do erro (not_found, invalid_state,
    limit_exceeded, conflict, invalid_input, forbidden, unavailable).
    """
    error: str
    message: str

    @classmethod
    def from_error(cls, exc: LibraryError) -> "ErrorResponse":
        return cls(error=exc.kind, message=exc.message)
