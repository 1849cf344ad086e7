"""
Endpoints de Empréstimos (Loan).

Contratos:
    - POST /loans: Cria empréstimo para o usuário autenticado
    - POST /loans/for-user: Equipe registra empréstimo para um usuário
    - GET /loans: Lista todos (equipe)
    - GET /loans/my: Empréstimos do usuário autenticado
    - GET /loans/active | /loans/overdue: Listas por status (equipe)
    - GET /loans/stats: Contagem por status (equipe)
    - GET /loans/{id}: Detalhes (dono ou equipe)
    - PATCH /loans/{id}/return: Devolução (equipe)
    - DELETE /loans/{id}: Remoção (equipe)

Status codes:
    - 201: Criado com sucesso
    - 400: Regra de negócio (exemplar indisponível, limite, status)
    - 401: Não autenticado
    - 403: Sem permissão
    - 404: Empréstimo, exemplar ou usuário não encontrado
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from library_circulation.core.deps import Loans, require_operation
from library_circulation.core.permissions import Operation, is_staff
from library_circulation.core.rate_limit import rate_limit_strict
from library_circulation.models.enums import LoanStatus
from library_circulation.models.user import User
from library_circulation.schemas.base import PaginatedResponse
from library_circulation.schemas.loan import (
    MAX_ACTIVE_LOANS,
    LoanCreate,
    LoanCreateForUser,
    LoanDetail,
    LoanReturn,
    LoanStats,
)

router = APIRouter(prefix="/loans", tags=["Loans"])

Staff = Annotated[User, Depends(require_operation(Operation.LOAN_READ_ALL))]


@router.post(
    "",
    response_model=LoanDetail,
    status_code=status.HTTP_201_CREATED,
    summary="Criar empréstimo",
    description=f"Empresta um exemplar ao usuário autenticado. Limite: {MAX_ACTIVE_LOANS} empréstimos ativos.",
    dependencies=[Depends(rate_limit_strict)],
)
async def create_loan(
    data: LoanCreate,
    service: Loans,
    current_user: Annotated[User, Depends(require_operation(Operation.LOAN_CREATE))],
) -> LoanDetail:
    return await service.create_loan(current_user.id, data.copy_id, data.notes)


@router.post(
    "/for-user",
    response_model=LoanDetail,
    status_code=status.HTTP_201_CREATED,
    summary="Criar empréstimo para usuário",
    dependencies=[Depends(rate_limit_strict)],
)
async def create_loan_for_user(
    data: LoanCreateForUser,
    service: Loans,
    _: Annotated[User, Depends(require_operation(Operation.LOAN_CREATE_FOR_USER))],
) -> LoanDetail:
    return await service.create_loan(data.user_id, data.copy_id, data.notes)


@router.get(
    "",
    response_model=PaginatedResponse[LoanDetail],
    summary="Listar empréstimos",
)
async def list_loans(
    service: Loans,
    _: Staff,
    status_filter: LoanStatus | None = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> PaginatedResponse[LoanDetail]:
    return await service.list_loans(status_filter, page, page_size)


@router.get(
    "/my",
    response_model=list[LoanDetail],
    summary="Meus empréstimos",
)
async def list_my_loans(
    service: Loans,
    current_user: Annotated[User, Depends(require_operation(Operation.LOAN_READ_OWN))],
) -> list[LoanDetail]:
    return await service.list_user_loans(current_user.id)


@router.get(
    "/active",
    response_model=list[LoanDetail],
    summary="Empréstimos ativos",
)
async def list_active_loans(service: Loans, _: Staff) -> list[LoanDetail]:
    return await service.list_active_loans()


@router.get(
    "/overdue",
    response_model=list[LoanDetail],
    summary="Empréstimos atrasados",
)
async def list_overdue_loans(service: Loans, _: Staff) -> list[LoanDetail]:
    return await service.list_overdue_loans()


@router.get(
    "/stats",
    response_model=LoanStats,
    summary="Estatísticas de empréstimos",
)
async def get_loan_stats(service: Loans, _: Staff) -> LoanStats:
    return await service.get_loan_stats()


@router.get(
    "/{loan_id}",
    response_model=LoanDetail,
    summary="Detalhes do empréstimo",
)
async def get_loan(
    loan_id: UUID,
    service: Loans,
    current_user: Annotated[User, Depends(require_operation(Operation.LOAN_READ_OWN))],
) -> LoanDetail:
    acting_user_id = None if is_staff(current_user.role) else current_user.id
    return await service.get_loan(loan_id, acting_user_id)


@router.patch(
    "/{loan_id}/return",
    response_model=LoanReturn,
    summary="Devolver exemplar",
)
async def return_loan(
    loan_id: UUID,
    service: Loans,
    _: Annotated[User, Depends(require_operation(Operation.LOAN_RETURN))],
) -> LoanReturn:
    return await service.return_loan(loan_id)


@router.delete(
    "/{loan_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remover empréstimo",
)
async def delete_loan(
    loan_id: UUID,
    service: Loans,
    _: Annotated[User, Depends(require_operation(Operation.LOAN_DELETE))],
) -> None:
    await service.remove_loan(loan_id)
