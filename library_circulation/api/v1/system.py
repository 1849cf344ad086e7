"""
Endpoints de Sistema (Admin).

Contratos:
    - POST /system/expire-reservations: Expira reservas PENDING vencidas
    - POST /system/update-overdue: Marca empréstimos vencidos como OVERDUE

Os mesmos passos rodam periodicamente via `python -m library_circulation.jobs`;
ambos são idempotentes.

Autorização:
    - Todos os endpoints requerem ADMIN
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from library_circulation.core.deps import Loans, Reservations, require_operation
from library_circulation.core.permissions import Operation
from library_circulation.models.user import User
from library_circulation.schemas.loan import OverdueUpdateResult
from library_circulation.schemas.reservation import ExpireReservationsResult

router = APIRouter(prefix="/system", tags=["System (Admin)"])


@router.post(
    "/expire-reservations",
    response_model=ExpireReservationsResult,
    summary="Expirar reservas vencidas",
    description="Reservas PENDING com prazo vencido viram EXPIRED e liberam o exemplar. **Requer ADMIN.**",
)
async def expire_reservations(
    service: Reservations,
    _: Annotated[User, Depends(require_operation(Operation.RESERVATION_EXPIRE))],
) -> ExpireReservationsResult:
    return await service.expire_reservations()


@router.post(
    "/update-overdue",
    response_model=OverdueUpdateResult,
    summary="Marcar empréstimos atrasados",
    description="Empréstimos ACTIVE com vencimento passado viram OVERDUE. **Requer ADMIN.**",
)
async def update_overdue_loans(
    service: Loans,
    _: Annotated[User, Depends(require_operation(Operation.LOAN_UPDATE_OVERDUE))],
) -> OverdueUpdateResult:
    return await service.update_overdue_loans()
