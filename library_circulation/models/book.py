"""
Models de livros: Book (obra do catálogo) e BookCopy (exemplar físico).
"""

import uuid
from typing import List, Optional

from sqlalchemy import ForeignKey, Integer, String, Text, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from library_circulation.db.session import Base
from library_circulation.models.base import UUIDMixin, TimestampMixin
from library_circulation.models.enums import CopyStatus


class Book(Base, UUIDMixin, TimestampMixin):
    """
    Obra do catálogo.

    Um livro pode ter múltiplos exemplares físicos (BookCopy).

    Attributes:
        id: UUID único do livro
        isbn: ISBN único
        title: Título
        author: Autor(es) em texto livre
        publisher: Editora (opcional)
        published_year: Ano de publicação (opcional)
        page_count: Número de páginas (opcional)
        description: Sinopse (opcional)
        copies: Exemplares deste livro (inclui DELETED)
    """
    __tablename__ = "books"

    isbn: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    author: Mapped[str] = mapped_column(String(255), nullable=False)
    publisher: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    published_year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    page_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relationships
    copies: Mapped[List["BookCopy"]] = relationship(
        "BookCopy",
        back_populates="book",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Book {self.title}>"


class BookCopy(Base, UUIDMixin, TimestampMixin):
    """
    Exemplar físico de um livro.

    Representa uma unidade do acervo que pode ser reservada ou emprestada.
    O status é escrito pelos coordenadores de reserva e empréstimo e pela
    política de remoção.

    Attributes:
        id: UUID único do exemplar
        code: Código legível único (etiqueta)
        book_id: FK para o livro
        status: AVAILABLE, BORROWED, RESERVED, MAINTENANCE, LOST ou DELETED
    """
    __tablename__ = "book_copies"

    code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    book_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("books.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    status: Mapped[CopyStatus] = mapped_column(
        SQLEnum(CopyStatus, name="copy_status"),
        nullable=False,
        default=CopyStatus.AVAILABLE,
        index=True,
    )

    # Relationships
    book: Mapped["Book"] = relationship(
        "Book",
        back_populates="copies",
        lazy="selectin",
    )

    @property
    def is_deleted(self) -> bool:
        return self.status == CopyStatus.DELETED

    def __repr__(self) -> str:
        return f"<BookCopy {self.code} - {self.status.value}>"
