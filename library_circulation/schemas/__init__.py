"""
Schemas Pydantic da aplicação.
"""

from library_circulation.schemas.base import (
    BaseSchema,
    ErrorResponse,
    PaginatedResponse,
    TimestampSchema,
)
from library_circulation.schemas.health import HealthResponse
from library_circulation.schemas.user import (
    StaffUserCreate,
    TokenResponse,
    UserCreate,
    UserLogin,
    UserRead,
    UserUpdate,
    UserWithToken,
)
from library_circulation.schemas.book import (
    BookCopyCreate,
    BookCopyRead,
    BookCopyStatusUpdate,
    BookCopyUpdate,
    BookCopyWithBook,
    BookCreate,
    BookDetail,
    BookRead,
    BookSummary,
    BookUpdate,
    CopyAvailability,
)
from library_circulation.schemas.loan import (
    LoanCreate,
    LoanCreateForUser,
    LoanRead,
    LoanDetail,
    LoanReturn,
    LoanStats,
    OverdueUpdateResult,
    LOAN_PERIOD_DAYS,
    FINE_PER_DAY,
    MAX_ACTIVE_LOANS,
)
from library_circulation.schemas.reservation import (
    ExpireReservationsResult,
    ReservationCreate,
    ReservationDetail,
    ReservationRead,
    ReservationStats,
    RESERVATION_DURATION_HOURS,
    MAX_PENDING_RESERVATIONS,
)

__all__ = [
    # Base
    "BaseSchema",
    "ErrorResponse",
    "PaginatedResponse",
    "TimestampSchema",
    # Health
    "HealthResponse",
    # User
    "StaffUserCreate",
    "TokenResponse",
    "UserCreate",
    "UserLogin",
    "UserRead",
    "UserUpdate",
    "UserWithToken",
    # Book
    "BookCopyCreate",
    "BookCopyRead",
    "BookCopyStatusUpdate",
    "BookCopyUpdate",
    "BookCopyWithBook",
    "BookCreate",
    "BookDetail",
    "BookRead",
    "BookSummary",
    "BookUpdate",
    "CopyAvailability",
    # Loan
    "LoanCreate",
    "LoanCreateForUser",
    "LoanRead",
    "LoanDetail",
    "LoanReturn",
    "LoanStats",
    "OverdueUpdateResult",
    "LOAN_PERIOD_DAYS",
    "FINE_PER_DAY",
    "MAX_ACTIVE_LOANS",
    # Reservation
    "ExpireReservationsResult",
    "ReservationCreate",
    "ReservationDetail",
    "ReservationRead",
    "ReservationStats",
    "RESERVATION_DURATION_HOURS",
    "MAX_PENDING_RESERVATIONS",
]
