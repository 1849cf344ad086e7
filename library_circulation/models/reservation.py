"""
Model de reserva de exemplares.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Enum as SQLEnum, ForeignKey, Index, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from library_circulation.db.session import Base
from library_circulation.models.base import UUIDMixin, TimestampMixin
from library_circulation.models.enums import ReservationStatus

if TYPE_CHECKING:
    from library_circulation.models.user import User
    from library_circulation.models.book import BookCopy

_PENDING_CLAUSE = text("status = 'PENDING'")


class Reservation(Base, UUIDMixin, TimestampMixin):
    """
    Reserva de um exemplar específico por um usuário.

    Fluxo de estados:
        1. PENDING: Exemplar separado (status RESERVED) aguardando retirada
        2. FULFILLED: Retirada confirmada ou convertida em empréstimo
        3. CANCELLED: Cancelada pelo dono ou pela equipe
        4. EXPIRED: Prazo de retirada vencido

    Regras de negócio:
        - Só é possível reservar exemplar AVAILABLE
        - Usuário pode ter no máximo 3 reservas PENDING
        - Um exemplar tem no máximo uma reserva PENDING
        - Prazo padrão de retirada: 48h

    Attributes:
        id: UUID único da reserva
        user_id: FK para o usuário
        copy_id: FK para o exemplar reservado
        reservation_date: Data/hora da reserva
        expiration_date: Limite para retirada
        status: Status atual
    """
    __tablename__ = "reservations"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    copy_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("book_copies.id", ondelete="RESTRICT"),
        nullable=False,
    )
    reservation_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    expiration_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    status: Mapped[ReservationStatus] = mapped_column(
        SQLEnum(ReservationStatus, name="reservation_status"),
        nullable=False,
        default=ReservationStatus.PENDING,
    )

    # Relationships
    user: Mapped["User"] = relationship("User", lazy="selectin")
    copy: Mapped["BookCopy"] = relationship("BookCopy", lazy="selectin")

    __table_args__ = (
        Index("ix_reservations_user_status", "user_id", "status"),
        Index("ix_reservations_copy_id", "copy_id"),
        # Varredura de expiração
        Index("ix_reservations_status_expiration", "status", "expiration_date"),
        # No máximo uma reserva pendente por exemplar
        Index(
            "uq_reservations_copy_pending",
            "copy_id",
            unique=True,
            postgresql_where=_PENDING_CLAUSE,
            sqlite_where=_PENDING_CLAUSE,
        ),
    )

    def __repr__(self) -> str:
        return f"<Reservation {self.id} - {self.status.value}>"

    @property
    def is_pending(self) -> bool:
        return self.status == ReservationStatus.PENDING
