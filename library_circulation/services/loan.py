"""
Service para lógica de negócio de empréstimos (coordenador de empréstimos).

Regras de negócio:
    - Usuário pode ter no máximo 3 empréstimos ACTIVE
    - Prazo padrão: 14 dias
    - Multa por atraso: FINE_PER_DAY por dia iniciado (apenas registrada)
    - Exemplar RESERVED só pode ser emprestado ao dono da reserva PENDING;
      nesse caso a reserva é atendida na mesma transação
"""

from datetime import datetime, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from library_circulation.core.cache import cache_service
from library_circulation.core.clock import Clock, ensure_utc, system_clock
from library_circulation.core.exceptions import (
    ForbiddenError,
    InvalidStateError,
    LimitExceededError,
    NotFoundError,
)
from library_circulation.core.logging import get_logger
from library_circulation.db.session import unit_of_work
from library_circulation.models.enums import CopyStatus, LoanStatus, OPEN_LOAN_STATUSES
from library_circulation.models.loan import Loan
from library_circulation.repositories.book import BookCopyRepository
from library_circulation.repositories.loan import LoanRepository
from library_circulation.repositories.reservation import ReservationRepository
from library_circulation.schemas.base import PaginatedResponse
from library_circulation.schemas.loan import (
    FINE_PER_DAY,
    LOAN_PERIOD_DAYS,
    MAX_ACTIVE_LOANS,
    LoanDetail,
    LoanReturn,
    LoanStats,
    OverdueUpdateResult,
)
from library_circulation.services.copy_status import CopyStatusMachine
from library_circulation.services.reservation import ReservationService
from library_circulation.services.user import UserService

logger = get_logger(__name__)

ONE_DAY = timedelta(days=1)


def calculate_fine(due_date: datetime, return_date: datetime) -> Decimal:
    """
    Multa de devolução: FINE_PER_DAY por dia de atraso, arredondado para cima.

    Devolução até o instante do vencimento (inclusive) não gera multa.
    """
    late_by = ensure_utc(return_date) - ensure_utc(due_date)
    if late_by <= timedelta(0):
        return Decimal("0")
    days, remainder = divmod(late_by, ONE_DAY)
    if remainder:
        days += 1
    return FINE_PER_DAY * days


class LoanService:
    """Service para operações de empréstimo."""

    def __init__(self, db: AsyncSession, clock: Clock | None = None):
        self.db = db
        self.clock = clock or system_clock
        self.loan_repo = LoanRepository(db)
        self.copy_repo = BookCopyRepository(db)
        self.reservation_repo = ReservationRepository(db)
        self.users = UserService(db)
        self.status_machine = CopyStatusMachine(db)
        self.reservations = ReservationService(db, clock=self.clock)

    # ==========================================
    # Create Loan
    # ==========================================

    async def create_loan(
        self,
        user_id: UUID,
        copy_id: UUID,
        notes: str | None = None,
    ) -> LoanDetail:
        """
        Cria um novo empréstimo.

        Fluxo:
            1. Busca (e trava) o exemplar
            2. Se há reserva PENDING no exemplar:
               - de outro usuário: nega
               - do próprio usuário: atende a reserva (exemplar volta a AVAILABLE)
               Sem reserva: exige exemplar AVAILABLE
            3. Verifica limite de 3 empréstimos ACTIVE
            4. Grava o empréstimo (due_date = agora + 14 dias)
            5. Marca o exemplar BORROWED

        Tudo numa única transação: um empréstimo recusado deixa a reserva
        PENDING.

        Args:
            user_id: Usuário que retira o exemplar
            copy_id: Exemplar
            notes: Observações do atendimento

        Returns:
            LoanDetail do empréstimo criado

        Raises:
            NotFoundError: Exemplar ou usuário inexistente
            InvalidStateError: Usuário inativo, exemplar reservado por outro usuário ou indisponível
            LimitExceededError: Usuário já tem 3 empréstimos ACTIVE
        """
        async with unit_of_work(self.db):
            await self.users.get_active(user_id)

            copy = await self.copy_repo.get_for_update(copy_id)
            if not copy:
                raise NotFoundError(f"Copy with ID {copy_id} not found")

            reservation = await self.reservation_repo.get_pending_by_copy(copy.id)
            if reservation:
                if reservation.user_id != user_id:
                    raise InvalidStateError("Copy is reserved by another user")
                await self.reservations.fulfill_pending(reservation)
            elif copy.status != CopyStatus.AVAILABLE:
                raise InvalidStateError(
                    f"Copy is not available for loan. Current status: {copy.status.value}"
                )

            active_count = await self.loan_repo.count_active_by_user(user_id)
            if active_count >= MAX_ACTIVE_LOANS:
                raise LimitExceededError(
                    f"User has reached maximum active loans ({MAX_ACTIVE_LOANS})"
                )

            now = self.clock.now()
            loan = await self.loan_repo.create(
                user_id=user_id,
                copy_id=copy.id,
                loan_date=now,
                due_date=now + timedelta(days=LOAN_PERIOD_DAYS),
                status=LoanStatus.ACTIVE,
                fine=Decimal("0"),
                notes=notes,
            )
            await self.status_machine.write(copy, CopyStatus.BORROWED)

        await cache_service.invalidate_availability(copy_id)
        logger.info(
            f"Empréstimo {loan.id} criado: exemplar {copy.code} para usuário {user_id}"
            + (f" (reserva {reservation.id} atendida)" if reservation else "")
        )
        return await self._detail(loan.id)

    # ==========================================
    # Return Loan
    # ==========================================

    async def return_loan(self, loan_id: UUID) -> LoanReturn:
        """
        Processa a devolução de um empréstimo.

        Fluxo:
            1. Busca o empréstimo
            2. Exige status ACTIVE ou OVERDUE
            3. Calcula multa (dias de atraso arredondados para cima)
            4. Marca RETURNED com return_date = agora
            5. Libera o exemplar (AVAILABLE)

        Raises:
            NotFoundError: Empréstimo não encontrado
            InvalidStateError: Empréstimo já foi devolvido
        """
        async with unit_of_work(self.db):
            loan = await self._get_or_404(loan_id)

            if loan.status not in OPEN_LOAN_STATUSES:
                raise InvalidStateError(
                    f"Loan is not active. Current status: {loan.status.value}"
                )

            await self.copy_repo.get_for_update(loan.copy_id)
            now = self.clock.now()
            fine = calculate_fine(loan.due_date, now)

            loan.return_date = now
            loan.status = LoanStatus.RETURNED
            loan.fine = fine
            await self.db.flush()
            await self.status_machine.set_status(loan.copy_id, CopyStatus.AVAILABLE)

        await cache_service.invalidate_availability(loan.copy_id)
        logger.info(f"Empréstimo {loan.id} devolvido (multa: {fine})")

        detail = await self._detail(loan.id)
        if fine > 0:
            message = f"Copy returned late. Fine: {fine}"
        else:
            message = "Copy returned on time. No fine."
        return LoanReturn(loan=detail, fine_applied=fine, message=message)

    # ==========================================
    # Overdue
    # ==========================================

    async def update_overdue_loans(self) -> OverdueUpdateResult:
        """
        Marca como OVERDUE os empréstimos ACTIVE com vencimento passado.

        O exemplar continua BORROWED.
        """
        now = self.clock.now()
        async with unit_of_work(self.db):
            loans = await self.loan_repo.list_past_due(now)
            for loan in loans:
                loan.status = LoanStatus.OVERDUE
            await self.db.flush()

        if loans:
            logger.info(f"{len(loans)} empréstimo(s) marcado(s) como OVERDUE")
        return OverdueUpdateResult(
            updated_count=len(loans),
            message=f"{len(loans)} loan(s) marked as overdue",
        )

    # ==========================================
    # Remove Loan
    # ==========================================

    async def remove_loan(self, loan_id: UUID) -> None:
        """
        Remove definitivamente um empréstimo.

        Se o empréstimo ainda está aberto, o exemplar é liberado antes.

        Raises:
            NotFoundError: Empréstimo não encontrado
        """
        async with unit_of_work(self.db):
            loan = await self._get_or_404(loan_id)
            copy_id = loan.copy_id

            if loan.is_open:
                await self.copy_repo.get_for_update(copy_id)
                await self.status_machine.set_status(copy_id, CopyStatus.AVAILABLE)

            await self.loan_repo.delete(loan)

        await cache_service.invalidate_availability(copy_id)
        logger.info(f"Empréstimo {loan_id} removido")

    # ==========================================
    # Queries
    # ==========================================

    async def get_loan(
        self,
        loan_id: UUID,
        acting_user_id: UUID | None = None,
    ) -> LoanDetail:
        """
        Busca empréstimo por ID.

        Raises:
            NotFoundError: Empréstimo não encontrado
            ForbiddenError: Empréstimo de outro usuário (quando acting_user_id é dado)
        """
        loan = await self.loan_repo.get_with_relations(loan_id)
        if not loan:
            raise NotFoundError(f"Loan with ID {loan_id} not found")
        if acting_user_id is not None and loan.user_id != acting_user_id:
            raise ForbiddenError("You can only view your own loans")
        return LoanDetail.from_loan(loan)

    async def list_loans(
        self,
        status: LoanStatus | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> PaginatedResponse[LoanDetail]:
        """Lista todos os empréstimos (equipe)."""
        loans, total = await self.loan_repo.list_all(
            status=status, page=page, page_size=page_size
        )
        return PaginatedResponse.create(
            items=[LoanDetail.from_loan(loan) for loan in loans],
            total=total,
            page=page,
            page_size=page_size,
        )

    async def list_user_loans(self, user_id: UUID) -> list[LoanDetail]:
        """Lista os empréstimos de um usuário."""
        loans = await self.loan_repo.list_by_user(user_id)
        return [LoanDetail.from_loan(loan) for loan in loans]

    async def list_active_loans(self) -> list[LoanDetail]:
        loans = await self.loan_repo.list_by_status(LoanStatus.ACTIVE)
        return [LoanDetail.from_loan(loan) for loan in loans]

    async def list_overdue_loans(self) -> list[LoanDetail]:
        loans = await self.loan_repo.list_by_status(LoanStatus.OVERDUE)
        return [LoanDetail.from_loan(loan) for loan in loans]

    async def get_loan_stats(self) -> LoanStats:
        """Contagem de empréstimos por status."""
        counts = await self.loan_repo.count_by_status()
        return LoanStats(
            total=sum(counts.values()),
            active=counts[LoanStatus.ACTIVE],
            overdue=counts[LoanStatus.OVERDUE],
            returned=counts[LoanStatus.RETURNED],
        )

    # ==========================================
    # Helpers
    # ==========================================

    async def _get_or_404(self, loan_id: UUID) -> Loan:
        loan = await self.loan_repo.get_by_id(loan_id)
        if not loan:
            raise NotFoundError(f"Loan with ID {loan_id} not found")
        return loan

    async def _detail(self, loan_id: UUID) -> LoanDetail:
        loan = await self.loan_repo.get_with_relations(loan_id)
        return LoanDetail.from_loan(loan)
