"""
Endpoints de Reservas.

Contratos:
    - POST /reservations: Reserva um exemplar AVAILABLE
    - GET /reservations: Lista todas (equipe)
    - GET /reservations/my: Reservas do usuário autenticado
    - GET /reservations/pending: Fila de retirada (equipe)
    - GET /reservations/stats: Contagem por status (equipe)
    - GET /reservations/{id}: Detalhes (dono ou equipe)
    - PATCH /reservations/{id}/fulfill: Confirma retirada (equipe)
    - PATCH /reservations/{id}/cancel: Cancela (dono ou equipe)
    - POST /reservations/expire: Expira reservas vencidas (ADMIN)
    - DELETE /reservations/{id}: Remove (dono ou equipe)

Equipe (ADMIN, LIBRARIAN) ignora a verificação de dono.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from library_circulation.core.deps import Reservations, require_operation
from library_circulation.core.permissions import Operation, is_staff
from library_circulation.core.rate_limit import rate_limit_strict
from library_circulation.models.enums import ReservationStatus
from library_circulation.models.user import User
from library_circulation.schemas.base import PaginatedResponse
from library_circulation.schemas.reservation import (
    ExpireReservationsResult,
    ReservationCreate,
    ReservationDetail,
    ReservationStats,
)

router = APIRouter(prefix="/reservations", tags=["Reservations"])

Staff = Annotated[User, Depends(require_operation(Operation.RESERVATION_READ_ALL))]


def _acting_user_id(user: User) -> UUID | None:
    return None if is_staff(user.role) else user.id


@router.post(
    "",
    response_model=ReservationDetail,
    status_code=status.HTTP_201_CREATED,
    summary="Criar reserva",
    dependencies=[Depends(rate_limit_strict)],
)
async def create_reservation(
    data: ReservationCreate,
    service: Reservations,
    current_user: Annotated[User, Depends(require_operation(Operation.RESERVATION_CREATE))],
) -> ReservationDetail:
    """
    Reserva um exemplar para o usuário autenticado.

    Raises:
        400: Exemplar indisponível, limite de 3 reservas ou prazo inválido
        404: Exemplar não encontrado
        409: Exemplar já reservado
    """
    return await service.create_reservation(
        current_user.id, data.copy_id, data.expiration_date
    )


@router.get(
    "",
    response_model=PaginatedResponse[ReservationDetail],
    summary="Listar reservas",
)
async def list_reservations(
    service: Reservations,
    _: Staff,
    status_filter: ReservationStatus | None = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> PaginatedResponse[ReservationDetail]:
    return await service.list_reservations(status_filter, page, page_size)


@router.get(
    "/my",
    response_model=list[ReservationDetail],
    summary="Minhas reservas",
)
async def list_my_reservations(
    service: Reservations,
    current_user: Annotated[User, Depends(require_operation(Operation.RESERVATION_READ_OWN))],
) -> list[ReservationDetail]:
    return await service.list_user_reservations(current_user.id)


@router.get(
    "/pending",
    response_model=list[ReservationDetail],
    summary="Reservas pendentes",
)
async def list_pending_reservations(
    service: Reservations,
    _: Staff,
) -> list[ReservationDetail]:
    return await service.list_pending()


@router.get(
    "/stats",
    response_model=ReservationStats,
    summary="Estatísticas de reservas",
)
async def get_reservation_stats(service: Reservations, _: Staff) -> ReservationStats:
    return await service.get_reservation_stats()


@router.post(
    "/expire",
    response_model=ExpireReservationsResult,
    summary="Expirar reservas vencidas",
)
async def expire_reservations(
    service: Reservations,
    _: Annotated[User, Depends(require_operation(Operation.RESERVATION_EXPIRE))],
) -> ExpireReservationsResult:
    return await service.expire_reservations()


@router.get(
    "/{reservation_id}",
    response_model=ReservationDetail,
    summary="Detalhes da reserva",
)
async def get_reservation(
    reservation_id: UUID,
    service: Reservations,
    current_user: Annotated[User, Depends(require_operation(Operation.RESERVATION_READ_OWN))],
) -> ReservationDetail:
    return await service.get_reservation(reservation_id, _acting_user_id(current_user))


@router.patch(
    "/{reservation_id}/fulfill",
    response_model=ReservationDetail,
    summary="Confirmar retirada",
)
async def fulfill_reservation(
    reservation_id: UUID,
    service: Reservations,
    _: Annotated[User, Depends(require_operation(Operation.RESERVATION_FULFILL))],
) -> ReservationDetail:
    return await service.fulfill_reservation(reservation_id)


@router.patch(
    "/{reservation_id}/cancel",
    response_model=ReservationDetail,
    summary="Cancelar reserva",
)
async def cancel_reservation(
    reservation_id: UUID,
    service: Reservations,
    current_user: Annotated[User, Depends(require_operation(Operation.RESERVATION_CANCEL))],
) -> ReservationDetail:
    return await service.cancel_reservation(reservation_id, _acting_user_id(current_user))


@router.delete(
    "/{reservation_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remover reserva",
)
async def delete_reservation(
    reservation_id: UUID,
    service: Reservations,
    current_user: Annotated[User, Depends(require_operation(Operation.RESERVATION_DELETE))],
) -> None:
    await service.remove_reservation(reservation_id, _acting_user_id(current_user))
