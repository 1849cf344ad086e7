"""
Model de empréstimo de exemplares.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Numeric,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from library_circulation.db.session import Base
from library_circulation.models.base import UUIDMixin, TimestampMixin
from library_circulation.models.enums import LoanStatus, OPEN_LOAN_STATUSES

if TYPE_CHECKING:
    from library_circulation.models.user import User
    from library_circulation.models.book import BookCopy

_OPEN_LOAN_CLAUSE = text("status IN ('ACTIVE', 'OVERDUE')")


class Loan(Base, UUIDMixin, TimestampMixin):
    """
    Empréstimo de um exemplar para um usuário.

    Regras de negócio:
        - Prazo padrão: 14 dias
        - Multa por atraso: FINE_PER_DAY por dia (arredondado para cima)
        - Usuário pode ter no máximo 3 empréstimos ACTIVE
        - Um exemplar tem no máximo um empréstimo ACTIVE/OVERDUE

    Attributes:
        id: UUID único do empréstimo
        user_id: FK para o usuário
        copy_id: FK para o exemplar emprestado
        loan_date: Data/hora do empréstimo
        due_date: Data de devolução prevista
        return_date: Data/hora da devolução efetiva (null se aberto)
        status: ACTIVE, OVERDUE ou RETURNED
        fine: Multa calculada na devolução (apenas registrada, não cobrada)
        notes: Observações do atendimento
    """
    __tablename__ = "loans"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )
    copy_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("book_copies.id", ondelete="RESTRICT"),
        nullable=False,
    )
    loan_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    due_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    return_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    status: Mapped[LoanStatus] = mapped_column(
        SQLEnum(LoanStatus, name="loan_status"),
        nullable=False,
        default=LoanStatus.ACTIVE,
    )
    fine: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        default=Decimal("0"),
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relationships
    user: Mapped["User"] = relationship("User", lazy="selectin")
    copy: Mapped["BookCopy"] = relationship("BookCopy", lazy="selectin")

    __table_args__ = (
        Index("ix_loans_user_status", "user_id", "status"),
        Index("ix_loans_copy_id", "copy_id"),
        Index("ix_loans_status_due_date", "status", "due_date"),
        # No máximo um empréstimo aberto por exemplar
        Index(
            "uq_loans_copy_open",
            "copy_id",
            unique=True,
            postgresql_where=_OPEN_LOAN_CLAUSE,
            sqlite_where=_OPEN_LOAN_CLAUSE,
        ),
    )

    def __repr__(self) -> str:
        return f"<Loan {self.id} - {self.status.value}>"

    @property
    def is_open(self) -> bool:
        """True enquanto o empréstimo prende o exemplar (ACTIVE ou OVERDUE)."""
        return self.status in OPEN_LOAN_STATUSES
