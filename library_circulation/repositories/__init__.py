"""
Módulo de repositórios - acesso a dados.
"""

from library_circulation.repositories.base import BaseRepository
from library_circulation.repositories.user import UserRepository
from library_circulation.repositories.book import BookRepository, BookCopyRepository
from library_circulation.repositories.loan import LoanRepository
from library_circulation.repositories.reservation import ReservationRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "BookRepository",
    "BookCopyRepository",
    "LoanRepository",
    "ReservationRepository",
]
