"""
Repository para operações de Loan no banco de dados.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from library_circulation.models.enums import LoanStatus, OPEN_LOAN_STATUSES
from library_circulation.models.loan import Loan
from library_circulation.repositories.base import BaseRepository


class LoanRepository(BaseRepository[Loan]):
    """Repository para operações CRUD de Loan."""

    def __init__(self, db: AsyncSession):
        super().__init__(Loan, db)

    async def get_with_relations(self, loan_id: UUID) -> Loan | None:
        """Busca empréstimo com usuário e exemplar (recarregando da sessão)."""
        result = await self.db.execute(
            select(Loan)
            .where(Loan.id == loan_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def count_active_by_user(self, user_id: UUID) -> int:
        """Conta empréstimos ACTIVE de um usuário."""
        result = await self.db.execute(
            select(func.count(Loan.id))
            .where(
                Loan.user_id == user_id,
                Loan.status == LoanStatus.ACTIVE,
            )
        )
        return result.scalar_one()

    async def get_open_by_copy(self, copy_id: UUID) -> Loan | None:
        """Busca o empréstimo aberto (ACTIVE/OVERDUE) de um exemplar."""
        result = await self.db.execute(
            select(Loan)
            .where(
                Loan.copy_id == copy_id,
                Loan.status.in_(OPEN_LOAN_STATUSES),
            )
        )
        return result.scalars().first()

    async def count_by_copy(self, copy_id: UUID) -> int:
        """Conta todos os empréstimos (histórico incluso) de um exemplar."""
        result = await self.db.execute(
            select(func.count(Loan.id)).where(Loan.copy_id == copy_id)
        )
        return result.scalar_one()

    async def list_by_user(self, user_id: UUID) -> list[Loan]:
        """Lista empréstimos de um usuário, mais recentes primeiro."""
        result = await self.db.execute(
            select(Loan)
            .where(Loan.user_id == user_id)
            .order_by(Loan.loan_date.desc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def list_by_status(self, status: LoanStatus) -> list[Loan]:
        """Lista empréstimos de um status, ordenados pelo vencimento."""
        result = await self.db.execute(
            select(Loan)
            .where(Loan.status == status)
            .order_by(Loan.due_date.asc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def list_all(
        self,
        status: LoanStatus | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Loan], int]:
        """
        Lista empréstimos com filtro opcional de status e paginação.

        Returns:
            Tupla (lista de empréstimos, total)
        """
        query = select(Loan)
        if status:
            query = query.where(Loan.status == status)

        return await self.paginate(
            query, Loan.loan_date.desc(), page=page, page_size=page_size
        )

    async def list_past_due(self, now: datetime) -> list[Loan]:
        """Lista empréstimos ACTIVE cujo vencimento já passou."""
        result = await self.db.execute(
            select(Loan)
            .where(
                Loan.status == LoanStatus.ACTIVE,
                Loan.due_date < now,
            )
            .order_by(Loan.due_date)
        )
        return list(result.scalars().all())

    async def count_by_status(self) -> dict[LoanStatus, int]:
        """Conta empréstimos agrupados por status."""
        result = await self.db.execute(
            select(Loan.status, func.count(Loan.id)).group_by(Loan.status)
        )
        counts = {s: 0 for s in LoanStatus}
        for loan_status, count in result.all():
            counts[loan_status] = count
        return counts
