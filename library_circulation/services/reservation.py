"""
Service para lógica de negócio de Reservation (coordenador de reservas).

Regras de negócio:
    - Só exemplares AVAILABLE podem ser reservados
    - Usuário pode ter no máximo 3 reservas PENDING
    - Um exemplar tem no máximo uma reserva PENDING
    - Prazo de retirada padrão: agora + 48 horas
    - Reserva PENDING deixa o exemplar RESERVED; ao sair de PENDING
      (retirada, cancelamento, expiração) o exemplar volta a AVAILABLE
"""

from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from library_circulation.core.cache import cache_service
from library_circulation.core.clock import Clock, ensure_utc, system_clock
from library_circulation.core.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    InvalidStateError,
    LimitExceededError,
    NotFoundError,
)
from library_circulation.core.logging import get_logger
from library_circulation.db.session import unit_of_work
from library_circulation.models.book import BookCopy
from library_circulation.models.enums import CopyStatus, ReservationStatus
from library_circulation.models.reservation import Reservation
from library_circulation.repositories.book import BookCopyRepository
from library_circulation.repositories.loan import LoanRepository
from library_circulation.repositories.reservation import ReservationRepository
from library_circulation.schemas.base import PaginatedResponse
from library_circulation.schemas.reservation import (
    MAX_PENDING_RESERVATIONS,
    RESERVATION_DURATION_HOURS,
    ExpireReservationsResult,
    ReservationDetail,
    ReservationStats,
)
from library_circulation.services.copy_status import CopyStatusMachine
from library_circulation.services.user import UserService

logger = get_logger(__name__)


class ReservationService:
    """Service para operações de Reservation."""

    def __init__(self, db: AsyncSession, clock: Clock | None = None):
        self.db = db
        self.clock = clock or system_clock
        self.reservation_repo = ReservationRepository(db)
        self.copy_repo = BookCopyRepository(db)
        self.loan_repo = LoanRepository(db)
        self.users = UserService(db)
        self.status_machine = CopyStatusMachine(db)

    # ==========================================
    # Create
    # ==========================================

    async def create_reservation(
        self,
        user_id: UUID,
        copy_id: UUID,
        expiration_date: datetime | None = None,
    ) -> ReservationDetail:
        """
        Cria uma reserva PENDING para um exemplar.

        Fluxo:
            1. Exige usuário existente e ativo
            2. Busca (e trava) o exemplar e exige status AVAILABLE
            3. Verifica limite de reservas PENDING do usuário
            4. Verifica se já existe reserva PENDING para o exemplar
            5. Calcula/valida prazo de retirada
            6. Grava a reserva e marca o exemplar RESERVED

        Args:
            user_id: Usuário que está reservando
            copy_id: Exemplar desejado
            expiration_date: Prazo de retirada (default: agora + 48h)

        Returns:
            ReservationDetail com exemplar, livro e usuário

        Raises:
            NotFoundError: Usuário inexistente, exemplar inexistente ou removido
            InvalidStateError: Usuário inativo ou exemplar não está AVAILABLE
            LimitExceededError: Usuário já tem 3 reservas PENDING
            ConflictError: Exemplar já tem reserva PENDING
            InvalidInputError: Prazo não é posterior à data da reserva
        """
        async with unit_of_work(self.db):
            await self.users.get_active(user_id)
            copy = await self._lock_copy(copy_id)

            if copy.status != CopyStatus.AVAILABLE:
                raise InvalidStateError(
                    f"Copy is not available for reservation. Current status: {copy.status.value}"
                )

            pending_count = await self.reservation_repo.count_pending_by_user(user_id)
            if pending_count >= MAX_PENDING_RESERVATIONS:
                raise LimitExceededError(
                    f"User has reached maximum pending reservations ({MAX_PENDING_RESERVATIONS})"
                )

            if await self.reservation_repo.get_pending_by_copy(copy.id):
                raise ConflictError("Copy already has a pending reservation")

            now = self.clock.now()
            if expiration_date is None:
                expiration = now + timedelta(hours=RESERVATION_DURATION_HOURS)
            else:
                expiration = ensure_utc(expiration_date)
            if expiration <= now:
                raise InvalidInputError("Expiration date must be in the future")

            reservation = await self.reservation_repo.create(
                user_id=user_id,
                copy_id=copy.id,
                reservation_date=now,
                expiration_date=expiration,
                status=ReservationStatus.PENDING,
            )
            await self.status_machine.write(copy, CopyStatus.RESERVED)

        await cache_service.invalidate_availability(copy_id)
        logger.info(
            f"Reserva {reservation.id} criada: exemplar {copy.code} para usuário {user_id} "
            f"até {expiration.isoformat()}"
        )
        return await self._detail(reservation.id)

    # ==========================================
    # Fulfill
    # ==========================================

    async def fulfill_reservation(self, reservation_id: UUID) -> ReservationDetail:
        """
        Confirma a retirada de uma reserva (balcão).

        O exemplar volta a AVAILABLE; o empréstimo criado em seguida
        o marca BORROWED.

        Raises:
            NotFoundError: Reserva inexistente
            InvalidStateError: Reserva não está PENDING ou já expirou
        """
        async with unit_of_work(self.db):
            reservation = await self._get_or_404(reservation_id)
            await self.copy_repo.get_for_update(reservation.copy_id)
            await self.fulfill_pending(reservation)

        await cache_service.invalidate_availability(reservation.copy_id)
        logger.info(f"Reserva {reservation.id} atendida")
        return await self._detail(reservation.id)

    async def fulfill_pending(self, reservation: Reservation) -> Reservation:
        """
        Marca uma reserva PENDING como FULFILLED e libera o exemplar.

        Não faz commit: roda dentro da unidade de trabalho do chamador
        (fulfill_reservation ou a criação de empréstimo do dono da reserva).

        Raises:
            InvalidStateError: Reserva não está PENDING ou já expirou
        """
        if reservation.status != ReservationStatus.PENDING:
            raise InvalidStateError(
                f"Only pending reservations can be fulfilled. Current status: {reservation.status.value}"
            )
        if self.clock.now() > ensure_utc(reservation.expiration_date):
            raise InvalidStateError("Reservation has expired")

        reservation.status = ReservationStatus.FULFILLED
        await self.db.flush()
        await self.status_machine.set_status(reservation.copy_id, CopyStatus.AVAILABLE)
        return reservation

    # ==========================================
    # Cancel
    # ==========================================

    async def cancel_reservation(
        self,
        reservation_id: UUID,
        acting_user_id: UUID | None = None,
    ) -> ReservationDetail:
        """
        Cancela uma reserva PENDING.

        Args:
            reservation_id: ID da reserva
            acting_user_id: Usuário que pede o cancelamento; None para a
                equipe (ignora a verificação de dono)

        Raises:
            NotFoundError: Reserva inexistente
            InvalidStateError: Reserva de outro usuário ou não PENDING
        """
        async with unit_of_work(self.db):
            reservation = await self._get_or_404(reservation_id)

            if acting_user_id is not None and reservation.user_id != acting_user_id:
                raise InvalidStateError("You can only cancel your own reservations")

            if reservation.status != ReservationStatus.PENDING:
                raise InvalidStateError(
                    f"Only pending reservations can be cancelled. Current status: {reservation.status.value}"
                )

            await self.copy_repo.get_for_update(reservation.copy_id)
            reservation.status = ReservationStatus.CANCELLED
            await self.db.flush()
            await self.status_machine.set_status(reservation.copy_id, CopyStatus.AVAILABLE)

        await cache_service.invalidate_availability(reservation.copy_id)
        logger.info(f"Reserva {reservation.id} cancelada")
        return await self._detail(reservation.id)

    # ==========================================
    # Expire
    # ==========================================

    async def expire_reservations(self) -> ExpireReservationsResult:
        """
        Expira reservas PENDING com prazo vencido.

        Chamado pelo job periódico e pelo endpoint manual. Idempotente:
        uma segunda execução não encontra nada PENDING vencido.

        Returns:
            ExpireReservationsResult com a quantidade expirada
        """
        now = self.clock.now()
        async with unit_of_work(self.db):
            expired = await self.reservation_repo.list_expired_pending(now)
            for reservation in expired:
                reservation.status = ReservationStatus.EXPIRED
                await self.db.flush()
                await self.status_machine.set_status(
                    reservation.copy_id, CopyStatus.AVAILABLE
                )

        copy_ids = [reservation.copy_id for reservation in expired]
        await cache_service.invalidate_availability(*copy_ids)

        if expired:
            logger.info(f"{len(expired)} reserva(s) expirada(s)")
        return ExpireReservationsResult(
            expired_count=len(expired),
            message=f"{len(expired)} reservation(s) expired",
        )

    # ==========================================
    # Remove
    # ==========================================

    async def remove_reservation(
        self,
        reservation_id: UUID,
        acting_user_id: UUID | None = None,
    ) -> None:
        """
        Remove definitivamente uma reserva, em qualquer status.

        O status do exemplar é recalculado a partir das obrigações que
        restam (empréstimo aberto ou outra reserva PENDING), em vez de ser
        forçado para AVAILABLE. Exemplares DELETED não são tocados.

        Raises:
            NotFoundError: Reserva inexistente
            InvalidStateError: Reserva de outro usuário
        """
        async with unit_of_work(self.db):
            reservation = await self._get_or_404(reservation_id)

            if acting_user_id is not None and reservation.user_id != acting_user_id:
                raise InvalidStateError("You can only delete your own reservations")

            copy_id = reservation.copy_id
            copy = await self.copy_repo.get_for_update(copy_id)
            await self.reservation_repo.delete(reservation)
            if copy is not None:
                await self._rederive_copy_status(copy)

        await cache_service.invalidate_availability(copy_id)
        logger.info(f"Reserva {reservation_id} removida")

    async def _rederive_copy_status(self, copy: BookCopy) -> None:
        if await self.loan_repo.get_open_by_copy(copy.id):
            derived = CopyStatus.BORROWED
        elif await self.reservation_repo.get_pending_by_copy(copy.id):
            derived = CopyStatus.RESERVED
        elif copy.status in (CopyStatus.BORROWED, CopyStatus.RESERVED):
            derived = CopyStatus.AVAILABLE
        else:
            # MAINTENANCE, LOST e AVAILABLE não dependem de reservas
            derived = copy.status

        if derived != copy.status:
            await self.status_machine.write(copy, derived)

    # ==========================================
    # Queries
    # ==========================================

    async def get_reservation(
        self,
        reservation_id: UUID,
        acting_user_id: UUID | None = None,
    ) -> ReservationDetail:
        """
        Busca reserva por ID.

        Raises:
            NotFoundError: Reserva inexistente
            ForbiddenError: Reserva de outro usuário (quando acting_user_id é dado)
        """
        reservation = await self.reservation_repo.get_with_relations(reservation_id)
        if not reservation:
            raise NotFoundError(f"Reservation with ID {reservation_id} not found")
        if acting_user_id is not None and reservation.user_id != acting_user_id:
            raise ForbiddenError("You can only view your own reservations")
        return ReservationDetail.from_reservation(reservation)

    async def list_reservations(
        self,
        status: ReservationStatus | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> PaginatedResponse[ReservationDetail]:
        """Lista todas as reservas (equipe), com filtro opcional de status."""
        reservations, total = await self.reservation_repo.list_all(
            status=status, page=page, page_size=page_size
        )
        return PaginatedResponse.create(
            items=[ReservationDetail.from_reservation(r) for r in reservations],
            total=total,
            page=page,
            page_size=page_size,
        )

    async def list_user_reservations(self, user_id: UUID) -> list[ReservationDetail]:
        """Lista as reservas de um usuário."""
        reservations = await self.reservation_repo.list_by_user(user_id)
        return [ReservationDetail.from_reservation(r) for r in reservations]

    async def list_pending(self) -> list[ReservationDetail]:
        """Lista reservas PENDING (fila de retirada do balcão)."""
        reservations = await self.reservation_repo.list_pending()
        return [ReservationDetail.from_reservation(r) for r in reservations]

    async def get_reservation_stats(self) -> ReservationStats:
        """Contagem de reservas por status."""
        counts = await self.reservation_repo.count_by_status()
        return ReservationStats(
            total=sum(counts.values()),
            pending=counts[ReservationStatus.PENDING],
            fulfilled=counts[ReservationStatus.FULFILLED],
            cancelled=counts[ReservationStatus.CANCELLED],
            expired=counts[ReservationStatus.EXPIRED],
        )

    # ==========================================
    # Helpers
    # ==========================================

    async def _lock_copy(self, copy_id: UUID) -> BookCopy:
        copy = await self.copy_repo.get_for_update(copy_id)
        if not copy:
            raise NotFoundError(f"Copy with ID {copy_id} not found")
        return copy

    async def _get_or_404(self, reservation_id: UUID) -> Reservation:
        reservation = await self.reservation_repo.get_by_id(reservation_id)
        if not reservation:
            raise NotFoundError(f"Reservation with ID {reservation_id} not found")
        return reservation

    async def _detail(self, reservation_id: UUID) -> ReservationDetail:
        reservation = await self.reservation_repo.get_with_relations(reservation_id)
        return ReservationDetail.from_reservation(reservation)
