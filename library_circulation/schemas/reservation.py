"""
Schemas Pydantic para Reservation.
"""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from library_circulation.models.enums import ReservationStatus
from library_circulation.schemas.base import BaseSchema, TimestampSchema


RESERVATION_DURATION_HOURS = 48
MAX_PENDING_RESERVATIONS = 3


class ReservationCreate(BaseSchema):
    """Schema para criação de reserva."""
    copy_id: UUID
    expiration_date: datetime | None = Field(
        None,
        description=f"Prazo de retirada (padrão: agora + {RESERVATION_DURATION_HOURS}h)",
    )


class ReservationRead(TimestampSchema):
    """Schema para leitura de reserva."""
    id: UUID
    user_id: UUID
    copy_id: UUID
    reservation_date: datetime
    expiration_date: datetime
    status: ReservationStatus


class ReservationDetail(ReservationRead):
    """Schema com dados do exemplar, livro e usuário."""
    user_name: str
    copy_code: str
    book_title: str

    @classmethod
    def from_reservation(cls, reservation) -> "ReservationDetail":
        """Constrói a partir de um model Reservation (user e copy carregados)."""
        copy = reservation.copy
        return cls(
            id=reservation.id,
            user_id=reservation.user_id,
            copy_id=reservation.copy_id,
            reservation_date=reservation.reservation_date,
            expiration_date=reservation.expiration_date,
            status=reservation.status,
            created_at=reservation.created_at,
            updated_at=reservation.updated_at,
            user_name=reservation.user.name,
            copy_code=copy.code,
            book_title=copy.book.title,
        )


class ExpireReservationsResult(BaseSchema):
    """Resultado da varredura de expiração."""
    expired_count: int
    message: str


class ReservationStats(BaseSchema):
    """Contagem de reservas por status."""
    total: int
    pending: int
    fulfilled: int
    cancelled: int
    expired: int
