"""
Módulo de serviços - lógica de negócio.
"""

from library_circulation.services.auth import AuthService
from library_circulation.services.user import UserService
from library_circulation.services.book import BookService
from library_circulation.services.copy_status import CopyStatusMachine
from library_circulation.services.copy import CopyService
from library_circulation.services.reservation import ReservationService
from library_circulation.services.loan import LoanService

__all__ = [
    "AuthService",
    "UserService",
    "BookService",
    "CopyStatusMachine",
    "CopyService",
    "ReservationService",
    "LoanService",
]
