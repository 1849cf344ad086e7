"""
Schemas Pydantic para Book e BookCopy.
"""

from datetime import datetime, timezone
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from library_circulation.models.enums import CopyStatus
from library_circulation.schemas.base import BaseSchema, TimestampSchema


# ============================================
# Book Schemas
# ============================================

class BookCreate(BaseSchema):
    """Schema para criação de livro."""
    isbn: str = Field(..., min_length=10, max_length=20, examples=["9788535914849"])
    title: str = Field(..., min_length=1, max_length=500, examples=["Dom Casmurro"])
    author: str = Field(..., min_length=1, max_length=255, examples=["Machado de Assis"])
    publisher: str | None = Field(None, max_length=255)
    published_year: int | None = Field(None, ge=1000, le=2100, examples=[1899])
    page_count: int | None = Field(None, ge=1, le=50000, examples=[256])
    description: str | None = None

    @field_validator("published_year")
    @classmethod
    def validate_year(cls, v: int | None) -> int | None:
        if v is not None and v > datetime.now(timezone.utc).year:
            raise ValueError("Ano de publicação não pode ser no futuro")
        return v


class BookRead(TimestampSchema):
    """Schema para leitura de livro."""
    id: UUID
    isbn: str
    title: str
    author: str
    publisher: str | None
    published_year: int | None
    page_count: int | None
    description: str | None


class BookUpdate(BaseSchema):
    """Schema para atualização de livro."""
    isbn: str | None = Field(None, min_length=10, max_length=20)
    title: str | None = Field(None, min_length=1, max_length=500)
    author: str | None = Field(None, min_length=1, max_length=255)
    publisher: str | None = Field(None, max_length=255)
    published_year: int | None = Field(None, ge=1000, le=2100)
    page_count: int | None = Field(None, ge=1, le=50000)
    description: str | None = None


class BookDetail(BookRead):
    """Livro com contagem de exemplares por status."""
    copy_counts: dict[str, int]


class BookSummary(BaseModel):
    """Dados do livro embutidos em respostas de exemplar."""
    id: UUID
    title: str
    author: str
    isbn: str

    model_config = {"from_attributes": True}


# ============================================
# BookCopy Schemas
# ============================================

class BookCopyCreate(BaseSchema):
    """Schema para criação de exemplar."""
    code: str = Field(..., min_length=1, max_length=64, examples=["DC-0001"])
    book_id: UUID


class BookCopyUpdate(BaseSchema):
    """
    Schema para atualização de exemplar.

    Status não é alterado aqui (ver BookCopyStatusUpdate e DELETE).
    """
    code: str | None = Field(None, min_length=1, max_length=64)
    book_id: UUID | None = None


class BookCopyStatusUpdate(BaseSchema):
    """Alteração manual de status (manutenção, extravio, retorno ao acervo)."""
    status: CopyStatus


class BookCopyRead(TimestampSchema):
    """Schema para leitura de exemplar."""
    id: UUID
    code: str
    book_id: UUID
    status: CopyStatus


class BookCopyWithBook(BookCopyRead):
    """Exemplar com dados do livro."""
    book: BookSummary


# ============================================
# Availability Schema
# ============================================

class CopyAvailability(BaseSchema):
    """
    Resposta de disponibilidade de um exemplar.

    Campos:
        is_available: exemplar pode ser emprestado ou reservado agora
        is_reserved: há reserva PENDING segurando o exemplar
        is_borrowed: há empréstimo aberto
    """
    copy_id: UUID
    code: str
    status: CopyStatus
    is_available: bool
    is_reserved: bool
    is_borrowed: bool
    book: BookSummary
