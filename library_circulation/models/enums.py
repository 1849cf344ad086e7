"""
Enums utilizados nos models da aplicação.
"""

import enum


class UserRole(str, enum.Enum):
    """Roles de usuário no sistema."""
    ADMIN = "ADMIN"
    LIBRARIAN = "LIBRARIAN"
    STUDENT = "STUDENT"


class CopyStatus(str, enum.Enum):
    """
    Status de um exemplar físico.

    O status é um resumo das obrigações do exemplar (empréstimo aberto,
    reserva pendente) e é o campo consultado nas decisões de disponibilidade.
    DELETED é terminal: o registro some das consultas normais mas continua
    referenciável pelo histórico de empréstimos e reservas.
    """
    AVAILABLE = "AVAILABLE"
    BORROWED = "BORROWED"
    RESERVED = "RESERVED"
    MAINTENANCE = "MAINTENANCE"
    LOST = "LOST"
    DELETED = "DELETED"


class LoanStatus(str, enum.Enum):
    """Status de um empréstimo."""
    ACTIVE = "ACTIVE"
    OVERDUE = "OVERDUE"
    RETURNED = "RETURNED"


class ReservationStatus(str, enum.Enum):
    """
    Status de uma reserva de exemplar.

    Fluxo:
        PENDING -> FULFILLED (retirada confirmada / empréstimo do dono)
        PENDING -> CANCELLED (dono ou equipe)
        PENDING -> EXPIRED   (prazo de retirada vencido)

    Estados terminais não são reativados.
    """
    PENDING = "PENDING"
    FULFILLED = "FULFILLED"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


# Empréstimos que ainda prendem o exemplar
OPEN_LOAN_STATUSES = (LoanStatus.ACTIVE, LoanStatus.OVERDUE)
