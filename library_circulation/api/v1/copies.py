"""
Endpoints de exemplares (BookCopy).

Contratos:
    - GET /copies: Lista exemplares (DELETED não aparecem)
    - GET /copies/available: Lista exemplares AVAILABLE
    - GET /copies/{id}: Detalhes do exemplar
    - GET /copies/{id}/availability: Disponibilidade (cache Redis)
    - POST /copies: Cadastra exemplar (equipe)
    - PATCH /copies/{id}: Altera código/livro (equipe)
    - PATCH /copies/{id}/status: Manutenção, extravio, volta ao acervo (equipe)
    - DELETE /copies/{id}: Remove exemplar (equipe)

Status codes:
    - 400: Transição ilegal ou exemplar com obrigações ativas
    - 404: Exemplar não encontrado (ou removido)
    - 409: Código duplicado
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from library_circulation.core.deps import Copies, CurrentUser, require_operation
from library_circulation.core.permissions import Operation
from library_circulation.models.user import User
from library_circulation.schemas.book import (
    BookCopyCreate,
    BookCopyRead,
    BookCopyStatusUpdate,
    BookCopyUpdate,
    BookCopyWithBook,
    CopyAvailability,
)

router = APIRouter(prefix="/copies", tags=["Copies"])


@router.get(
    "",
    response_model=list[BookCopyRead],
    summary="Listar exemplares",
)
async def list_copies(
    service: Copies,
    _: CurrentUser,
    book_id: UUID | None = Query(None, description="Filtrar por livro"),
) -> list[BookCopyRead]:
    copies = await service.find_all(book_id)
    return [BookCopyRead.model_validate(c) for c in copies]


@router.get(
    "/available",
    response_model=list[BookCopyRead],
    summary="Listar exemplares disponíveis",
)
async def list_available_copies(
    service: Copies,
    _: CurrentUser,
    book_id: UUID | None = Query(None, description="Filtrar por livro"),
) -> list[BookCopyRead]:
    copies = await service.find_available(book_id)
    return [BookCopyRead.model_validate(c) for c in copies]


@router.get(
    "/{copy_id}",
    response_model=BookCopyWithBook,
    summary="Detalhes do exemplar",
)
async def get_copy(copy_id: UUID, service: Copies, _: CurrentUser) -> BookCopyWithBook:
    copy = await service.find_one(copy_id)
    return BookCopyWithBook.model_validate(copy)


@router.get(
    "/{copy_id}/availability",
    response_model=CopyAvailability,
    summary="Disponibilidade do exemplar",
)
async def get_copy_availability(
    copy_id: UUID,
    service: Copies,
    _: CurrentUser,
) -> CopyAvailability:
    return await service.get_availability(copy_id)


@router.post(
    "",
    response_model=BookCopyRead,
    status_code=status.HTTP_201_CREATED,
    summary="Cadastrar exemplar",
)
async def create_copy(
    data: BookCopyCreate,
    service: Copies,
    _: Annotated[User, Depends(require_operation(Operation.COPY_WRITE))],
) -> BookCopyRead:
    copy = await service.create(data)
    return BookCopyRead.model_validate(copy)


@router.patch(
    "/{copy_id}",
    response_model=BookCopyRead,
    summary="Atualizar exemplar",
)
async def update_copy(
    copy_id: UUID,
    data: BookCopyUpdate,
    service: Copies,
    _: Annotated[User, Depends(require_operation(Operation.COPY_WRITE))],
) -> BookCopyRead:
    copy = await service.update(copy_id, data)
    return BookCopyRead.model_validate(copy)


@router.patch(
    "/{copy_id}/status",
    response_model=BookCopyRead,
    summary="Alterar status do exemplar",
    description="Apenas AVAILABLE, MAINTENANCE e LOST. Empréstimos e reservas controlam BORROWED/RESERVED.",
)
async def change_copy_status(
    copy_id: UUID,
    data: BookCopyStatusUpdate,
    service: Copies,
    _: Annotated[User, Depends(require_operation(Operation.COPY_CHANGE_STATUS))],
) -> BookCopyRead:
    copy = await service.change_status(copy_id, data.status)
    return BookCopyRead.model_validate(copy)


@router.delete(
    "/{copy_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remover exemplar",
    description="Bloqueado com empréstimo aberto ou reserva PENDING. Exemplar com histórico recebe soft-delete.",
)
async def delete_copy(
    copy_id: UUID,
    service: Copies,
    _: Annotated[User, Depends(require_operation(Operation.COPY_DELETE))],
) -> None:
    await service.remove(copy_id)
