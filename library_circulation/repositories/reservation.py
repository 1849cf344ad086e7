"""
Repository para operações de Reservation no banco de dados.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from library_circulation.models.enums import ReservationStatus
from library_circulation.models.reservation import Reservation
from library_circulation.repositories.base import BaseRepository


class ReservationRepository(BaseRepository[Reservation]):
    """Repository para operações CRUD de Reservation."""

    def __init__(self, db: AsyncSession):
        super().__init__(Reservation, db)

    async def get_with_relations(self, reservation_id: UUID) -> Reservation | None:
        """Busca reserva com usuário e exemplar (recarregando da sessão)."""
        result = await self.db.execute(
            select(Reservation)
            .where(Reservation.id == reservation_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_pending_by_copy(self, copy_id: UUID) -> Reservation | None:
        """Busca a reserva PENDING de um exemplar, se houver."""
        result = await self.db.execute(
            select(Reservation)
            .where(
                Reservation.copy_id == copy_id,
                Reservation.status == ReservationStatus.PENDING,
            )
        )
        return result.scalars().first()

    async def count_pending_by_user(self, user_id: UUID) -> int:
        """Conta reservas PENDING de um usuário."""
        result = await self.db.execute(
            select(func.count(Reservation.id))
            .where(
                Reservation.user_id == user_id,
                Reservation.status == ReservationStatus.PENDING,
            )
        )
        return result.scalar_one()

    async def count_by_copy(self, copy_id: UUID) -> int:
        """Conta todas as reservas (histórico incluso) de um exemplar."""
        result = await self.db.execute(
            select(func.count(Reservation.id)).where(Reservation.copy_id == copy_id)
        )
        return result.scalar_one()

    async def list_by_user(self, user_id: UUID) -> list[Reservation]:
        """Lista reservas de um usuário, mais recentes primeiro."""
        result = await self.db.execute(
            select(Reservation)
            .where(Reservation.user_id == user_id)
            .order_by(Reservation.reservation_date.desc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def list_pending(self) -> list[Reservation]:
        """Lista reservas PENDING, mais antigas primeiro."""
        result = await self.db.execute(
            select(Reservation)
            .where(Reservation.status == ReservationStatus.PENDING)
            .order_by(Reservation.reservation_date.asc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def list_all(
        self,
        status: ReservationStatus | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Reservation], int]:
        """
        Lista reservas com filtro opcional de status e paginação.

        Returns:
            Tupla (lista de reservas, total)
        """
        query = select(Reservation)
        if status:
            query = query.where(Reservation.status == status)

        return await self.paginate(
            query, Reservation.reservation_date.desc(), page=page, page_size=page_size
        )

    async def list_expired_pending(self, now: datetime) -> list[Reservation]:
        """
        Busca reservas PENDING com expiration_date no passado.

        Usada pela varredura de expiração (job periódico ou manual).
        """
        result = await self.db.execute(
            select(Reservation)
            .where(
                Reservation.status == ReservationStatus.PENDING,
                Reservation.expiration_date < now,
            )
            .order_by(Reservation.expiration_date)
        )
        return list(result.scalars().all())

    async def count_by_status(self) -> dict[ReservationStatus, int]:
        """Conta reservas agrupadas por status."""
        result = await self.db.execute(
            select(Reservation.status, func.count(Reservation.id))
            .group_by(Reservation.status)
        )
        counts = {s: 0 for s in ReservationStatus}
        for reservation_status, count in result.all():
            counts[reservation_status] = count
        return counts
