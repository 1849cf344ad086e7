"""
Repository para operações de Book e BookCopy no banco de dados.
"""

from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from library_circulation.models.book import Book, BookCopy
from library_circulation.models.enums import CopyStatus
from library_circulation.repositories.base import BaseRepository


class BookRepository(BaseRepository[Book]):
    """Repository para operações CRUD de Book."""

    def __init__(self, db: AsyncSession):
        super().__init__(Book, db)

    async def get_by_isbn(self, isbn: str) -> Book | None:
        """Busca livro por ISBN."""
        result = await self.db.execute(select(Book).where(Book.isbn == isbn))
        return result.scalar_one_or_none()

    async def search(
        self,
        term: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Book], int]:
        """
        Busca livros por título, autor ou ISBN com paginação.

        Args:
            term: Termo de busca (parcial, case insensitive)
            page: Número da página
            page_size: Tamanho da página

        Returns:
            Tupla (lista de livros, total)
        """
        query = select(Book)
        if term:
            pattern = f"%{term}%"
            query = query.where(
                or_(
                    Book.title.ilike(pattern),
                    Book.author.ilike(pattern),
                    Book.isbn.ilike(pattern),
                )
            )

        return await self.paginate(query, Book.title, page=page, page_size=page_size)


class BookCopyRepository(BaseRepository[BookCopy]):
    """
    Repository de BookCopy.

    Os métodos `get_active`/`list_*` excluem exemplares DELETED, como se não
    existissem. `get_by_id` (herdado) continua enxergando-os, para resolver
    o histórico de empréstimos e reservas.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(BookCopy, db)

    async def get_active(self, copy_id: UUID) -> BookCopy | None:
        """Busca exemplar não removido."""
        result = await self.db.execute(
            select(BookCopy).where(
                BookCopy.id == copy_id,
                BookCopy.status != CopyStatus.DELETED,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_for_update(self, copy_id: UUID) -> BookCopy | None:
        """
        Busca exemplar não removido travando a linha (SELECT ... FOR UPDATE).

        Serializa operações concorrentes de empréstimo/reserva/remoção sobre
        o mesmo exemplar até o fim da transação.
        """
        result = await self.db.execute(
            select(BookCopy)
            .where(
                BookCopy.id == copy_id,
                BookCopy.status != CopyStatus.DELETED,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_by_code(self, code: str) -> BookCopy | None:
        """Busca exemplar pelo código (inclui DELETED, o código segue único)."""
        result = await self.db.execute(select(BookCopy).where(BookCopy.code == code))
        return result.scalar_one_or_none()

    async def list_active(self, book_id: UUID | None = None) -> list[BookCopy]:
        """Lista exemplares não removidos, opcionalmente de um livro."""
        query = select(BookCopy).where(BookCopy.status != CopyStatus.DELETED)
        if book_id:
            query = query.where(BookCopy.book_id == book_id)
        result = await self.db.execute(query.order_by(BookCopy.code))
        return list(result.scalars().all())

    async def list_available(self, book_id: UUID | None = None) -> list[BookCopy]:
        """Lista exemplares AVAILABLE."""
        query = select(BookCopy).where(BookCopy.status == CopyStatus.AVAILABLE)
        if book_id:
            query = query.where(BookCopy.book_id == book_id)
        result = await self.db.execute(query.order_by(BookCopy.code))
        return list(result.scalars().all())

    async def count_by_status(self, book_id: UUID) -> dict[str, int]:
        """
        Conta exemplares não removidos de um livro por status.

        Returns:
            Dict com total e uma chave por status (minúsculo)
        """
        result = await self.db.execute(
            select(BookCopy.status, func.count(BookCopy.id))
            .where(
                BookCopy.book_id == book_id,
                BookCopy.status != CopyStatus.DELETED,
            )
            .group_by(BookCopy.status)
        )
        counts = {
            s.value.lower(): 0 for s in CopyStatus if s != CopyStatus.DELETED
        }
        for copy_status, count in result.all():
            counts[copy_status.value.lower()] = count

        counts["total"] = sum(counts.values())
        return counts

    async def count_by_book(self, book_id: UUID) -> int:
        """Conta exemplares de um livro, inclusive DELETED."""
        result = await self.db.execute(
            select(func.count(BookCopy.id)).where(BookCopy.book_id == book_id)
        )
        return result.scalar_one()
