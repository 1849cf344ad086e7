"""
Schemas Pydantic para Loan (empréstimo).
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, computed_field

from library_circulation.models.enums import LoanStatus

# Constantes de negócio
LOAN_PERIOD_DAYS = 14
FINE_PER_DAY = Decimal("1000")
MAX_ACTIVE_LOANS = 3


class LoanCreate(BaseModel):
    """Schema para o próprio usuário criar empréstimo."""

    copy_id: UUID = Field(..., description="ID do exemplar")
    notes: str | None = Field(None, max_length=1000)


class LoanCreateForUser(LoanCreate):
    """Schema para a equipe registrar empréstimo em nome de um usuário."""

    user_id: UUID = Field(..., description="ID do usuário que retira o exemplar")


class LoanRead(BaseModel):
    """Schema de leitura básico de empréstimo."""

    id: UUID
    user_id: UUID
    copy_id: UUID
    loan_date: datetime
    due_date: datetime
    return_date: datetime | None = None
    status: LoanStatus
    fine: Decimal
    notes: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class LoanDetail(BaseModel):
    """
    Schema de leitura detalhado, com dados do usuário, exemplar e livro.

    A multa é a registrada na devolução; empréstimos abertos mostram 0.
    """

    id: UUID
    user_id: UUID
    user_name: str | None = None
    user_email: str | None = None
    copy_id: UUID
    copy_code: str | None = None
    book_id: UUID | None = None
    book_title: str | None = None
    loan_date: datetime
    due_date: datetime
    return_date: datetime | None = None
    status: LoanStatus
    fine: Decimal
    notes: str | None = None

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def is_open(self) -> bool:
        """True enquanto o exemplar não foi devolvido."""
        return self.status != LoanStatus.RETURNED

    @classmethod
    def from_loan(cls, loan) -> "LoanDetail":
        """
        Cria LoanDetail a partir de um objeto Loan com relações.

        Args:
            loan: Objeto Loan do SQLAlchemy (user e copy carregados)
        """
        user = getattr(loan, "user", None)
        copy = getattr(loan, "copy", None)
        book = getattr(copy, "book", None) if copy else None

        return cls(
            id=loan.id,
            user_id=loan.user_id,
            user_name=user.name if user else None,
            user_email=user.email if user else None,
            copy_id=loan.copy_id,
            copy_code=copy.code if copy else None,
            book_id=book.id if book else None,
            book_title=book.title if book else None,
            loan_date=loan.loan_date,
            due_date=loan.due_date,
            return_date=loan.return_date,
            status=loan.status,
            fine=loan.fine,
            notes=loan.notes,
        )


class LoanReturn(BaseModel):
    """Schema de resposta para devolução de exemplar."""

    loan: LoanDetail
    fine_applied: Decimal = Field(..., description="Multa registrada (pode ser 0)")
    message: str


class OverdueUpdateResult(BaseModel):
    """Resultado da marcação de empréstimos atrasados."""

    updated_count: int
    message: str


class LoanStats(BaseModel):
    """Contagem de empréstimos por status."""

    total: int
    active: int
    overdue: int
    returned: int
