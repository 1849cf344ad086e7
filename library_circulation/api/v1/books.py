"""
Endpoints de livros (catálogo).

Contratos:
    - GET /books: Lista livros (busca por título, autor ou ISBN)
    - GET /books/{id}: Livro com contagem de exemplares por status
    - POST /books: Cadastra livro (equipe)
    - PATCH /books/{id}: Atualiza livro (equipe)
    - DELETE /books/{id}: Remove livro sem exemplares (equipe)
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from library_circulation.core.deps import CurrentUser, DbSession, require_operation
from library_circulation.core.permissions import Operation
from library_circulation.models.user import User
from library_circulation.schemas.base import PaginatedResponse
from library_circulation.schemas.book import BookCreate, BookDetail, BookRead, BookUpdate
from library_circulation.services.book import BookService

router = APIRouter(prefix="/books", tags=["Books"])

StaffWriter = Annotated[User, Depends(require_operation(Operation.BOOK_WRITE))]


@router.get(
    "",
    response_model=PaginatedResponse[BookRead],
    summary="Listar livros",
)
async def list_books(
    db: DbSession,
    _: CurrentUser,
    q: str | None = Query(None, description="Busca por título, autor ou ISBN"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> PaginatedResponse[BookRead]:
    return await BookService(db).search(q, page, page_size)


@router.get(
    "/{book_id}",
    response_model=BookDetail,
    summary="Detalhes do livro",
)
async def get_book(book_id: UUID, db: DbSession, _: CurrentUser) -> BookDetail:
    return await BookService(db).get_detail(book_id)


@router.post(
    "",
    response_model=BookRead,
    status_code=status.HTTP_201_CREATED,
    summary="Cadastrar livro",
)
async def create_book(data: BookCreate, db: DbSession, _: StaffWriter) -> BookRead:
    book = await BookService(db).create(data)
    return BookRead.model_validate(book)


@router.patch(
    "/{book_id}",
    response_model=BookRead,
    summary="Atualizar livro",
)
async def update_book(
    book_id: UUID,
    data: BookUpdate,
    db: DbSession,
    _: StaffWriter,
) -> BookRead:
    book = await BookService(db).update(book_id, data)
    return BookRead.model_validate(book)


@router.delete(
    "/{book_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remover livro",
)
async def delete_book(book_id: UUID, db: DbSession, _: StaffWriter) -> None:
    await BookService(db).delete(book_id)
