"""
Service para lógica de negócio de Book (catálogo).
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from library_circulation.core.cache import cache_service
from library_circulation.core.exceptions import ConflictError, InvalidStateError, NotFoundError
from library_circulation.core.logging import get_logger
from library_circulation.db.session import unit_of_work
from library_circulation.models.book import Book
from library_circulation.repositories.book import BookCopyRepository, BookRepository
from library_circulation.schemas.base import PaginatedResponse
from library_circulation.schemas.book import BookCreate, BookDetail, BookRead, BookUpdate

logger = get_logger(__name__)


class BookService:
    """Service para operações de Book."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.book_repo = BookRepository(db)
        self.copy_repo = BookCopyRepository(db)

    async def get_by_id(self, book_id: UUID) -> Book:
        """
        Busca livro por ID.

        Raises:
            NotFoundError: Livro não encontrado
        """
        book = await self.book_repo.get_by_id(book_id)
        if not book:
            raise NotFoundError(f"Book with ID {book_id} not found")
        return book

    async def get_detail(self, book_id: UUID) -> BookDetail:
        """Livro com contagem de exemplares por status."""
        book = await self.get_by_id(book_id)
        counts = await self.copy_repo.count_by_status(book_id)
        return BookDetail(
            **BookRead.model_validate(book).model_dump(),
            copy_counts=counts,
        )

    async def search(
        self,
        term: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> PaginatedResponse[BookRead]:
        """Lista livros com busca opcional por título, autor ou ISBN."""
        books, total = await self.book_repo.search(term, page, page_size)
        return PaginatedResponse.create(
            items=[BookRead.model_validate(b) for b in books],
            total=total,
            page=page,
            page_size=page_size,
        )

    async def create(self, data: BookCreate) -> Book:
        """
        Cadastra um livro.

        Raises:
            ConflictError: ISBN já cadastrado
        """
        async with unit_of_work(self.db):
            if await self.book_repo.get_by_isbn(data.isbn):
                raise ConflictError(f"Book with ISBN {data.isbn} already exists")
            book = await self.book_repo.create(**data.model_dump())

        logger.info(f"Livro {book.isbn} cadastrado")
        return book

    async def update(self, book_id: UUID, data: BookUpdate) -> Book:
        """
        Atualiza livro.

        Raises:
            NotFoundError: Livro não encontrado
            ConflictError: ISBN já usado por outro livro
        """
        async with unit_of_work(self.db):
            book = await self.get_by_id(book_id)

            if data.isbn and data.isbn != book.isbn:
                if await self.book_repo.get_by_isbn(data.isbn):
                    raise ConflictError(f"Book with ISBN {data.isbn} already exists")

            await self.book_repo.update(book, **data.model_dump(exclude_unset=True))
            copy_ids = [copy.id for copy in await self.copy_repo.list_active(book_id)]

        # Disponibilidade em cache embute título, autor e ISBN do livro
        await cache_service.invalidate_availability(*copy_ids)
        return book

    async def delete(self, book_id: UUID) -> None:
        """
        Remove livro sem exemplares.

        Exemplares removidos (DELETED) também contam: seguem referenciando o
        livro pelo histórico.

        Raises:
            NotFoundError: Livro não encontrado
            InvalidStateError: Livro ainda tem exemplares
        """
        async with unit_of_work(self.db):
            book = await self.get_by_id(book_id)
            if await self.copy_repo.count_by_book(book_id):
                raise InvalidStateError("Cannot delete book with registered copies")
            await self.book_repo.delete(book)

        logger.info(f"Livro {book_id} removido")
