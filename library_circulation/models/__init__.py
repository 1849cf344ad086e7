"""
Models SQLAlchemy da aplicação.

Importar todos os models aqui para que o Alembic detecte as mudanças.
"""

from library_circulation.models.enums import (
    UserRole,
    CopyStatus,
    LoanStatus,
    ReservationStatus,
)
from library_circulation.models.user import User
from library_circulation.models.book import Book, BookCopy
from library_circulation.models.loan import Loan
from library_circulation.models.reservation import Reservation

__all__ = [
    "UserRole",
    "CopyStatus",
    "LoanStatus",
    "ReservationStatus",
    "User",
    "Book",
    "BookCopy",
    "Loan",
    "Reservation",
]
