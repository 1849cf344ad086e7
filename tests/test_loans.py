"""
Testes de integração para LoanService (coordenador de empréstimos).
"""

import uuid
from datetime import timedelta
from decimal import Decimal

import pytest

from library_circulation.core.clock import ensure_utc
from library_circulation.core.exceptions import (
    ForbiddenError,
    InvalidStateError,
    LimitExceededError,
    NotFoundError,
)
from library_circulation.models.enums import CopyStatus, LoanStatus, ReservationStatus
from library_circulation.schemas.loan import FINE_PER_DAY, LOAN_PERIOD_DAYS, MAX_ACTIVE_LOANS
from library_circulation.services.copy import CopyService
from library_circulation.services.loan import LoanService, calculate_fine
from library_circulation.services.reservation import ReservationService

from conftest import START, copy_status


@pytest.fixture
def service(test_db, clock) -> LoanService:
    return LoanService(test_db, clock=clock)


@pytest.fixture
def reservations(test_db, clock) -> ReservationService:
    return ReservationService(test_db, clock=clock)


# ==========================================
# Fine calculation
# ==========================================

class TestCalculateFine:
    """Multa por dia de atraso, arredondada para cima."""

    def test_returned_early(self):
        assert calculate_fine(START, START - timedelta(days=2)) == Decimal("0")

    def test_returned_exactly_at_due_date(self):
        assert calculate_fine(START, START) == Decimal("0")

    def test_one_second_late_is_one_day(self):
        assert calculate_fine(START, START + timedelta(seconds=1)) == FINE_PER_DAY

    def test_exactly_one_day_late(self):
        assert calculate_fine(START, START + timedelta(days=1)) == FINE_PER_DAY

    def test_partial_days_round_up(self):
        late = START + timedelta(days=2, hours=3)
        assert calculate_fine(START, late) == FINE_PER_DAY * 3

    def test_naive_dates_treated_as_utc(self):
        naive_due = START.replace(tzinfo=None)
        assert calculate_fine(naive_due, START + timedelta(hours=1)) == FINE_PER_DAY


# ==========================================
# Create
# ==========================================

class TestCreateLoan:
    """Empréstimo de exemplares."""

    @pytest.mark.anyio
    async def test_create_loan(self, service, test_db, make_user, make_copy):
        user = await make_user()
        copy = await make_copy()

        loan = await service.create_loan(user.id, copy.id, notes="Balcão 2")

        assert loan.status == LoanStatus.ACTIVE
        assert loan.is_open is True
        assert loan.fine == Decimal("0")
        assert loan.notes == "Balcão 2"
        assert loan.copy_code == copy.code
        assert loan.user_email == user.email
        assert ensure_utc(loan.loan_date) == START
        assert ensure_utc(loan.due_date) == START + timedelta(days=LOAN_PERIOD_DAYS)
        assert await copy_status(test_db, copy.id) == CopyStatus.BORROWED

    @pytest.mark.anyio
    async def test_create_unknown_user(self, service, make_copy):
        copy = await make_copy()
        copy_id = copy.id

        with pytest.raises(NotFoundError):
            await service.create_loan(uuid.uuid4(), copy_id)

    @pytest.mark.anyio
    async def test_create_inactive_user(self, service, test_db, make_user, make_copy):
        """Conta desativada não retira exemplares, nem pelo balcão."""
        user = await make_user(is_active=False)
        copy = await make_copy()
        user_id, copy_id = user.id, copy.id

        with pytest.raises(InvalidStateError, match="User account is inactive"):
            await service.create_loan(user_id, copy_id)

        assert await copy_status(test_db, copy_id) == CopyStatus.AVAILABLE

    @pytest.mark.anyio
    async def test_create_unknown_copy(self, service, make_user):
        user = await make_user()

        with pytest.raises(NotFoundError):
            await service.create_loan(user.id, uuid.uuid4())

    @pytest.mark.anyio
    async def test_create_copy_already_borrowed(self, service, make_user, make_copy):
        first = await make_user()
        second = await make_user()
        copy = await make_copy()
        second_id, copy_id = second.id, copy.id
        await service.create_loan(first.id, copy_id)

        with pytest.raises(InvalidStateError) as exc_info:
            await service.create_loan(second_id, copy_id)

        assert "BORROWED" in exc_info.value.message

    @pytest.mark.anyio
    async def test_create_copy_in_maintenance(self, service, test_db, make_user, make_copy):
        user = await make_user()
        copy = await make_copy()
        user_id, copy_id = user.id, copy.id
        await CopyService(test_db).change_status(copy_id, CopyStatus.MAINTENANCE)

        with pytest.raises(InvalidStateError):
            await service.create_loan(user_id, copy_id)

    @pytest.mark.anyio
    async def test_active_loan_limit(self, service, test_db, make_user, make_copy):
        """Quarto empréstimo ACTIVE é recusado; o exemplar continua AVAILABLE."""
        user = await make_user()
        copies = [await make_copy() for _ in range(MAX_ACTIVE_LOANS + 1)]
        user_id = user.id
        copy_ids = [c.id for c in copies]

        for copy_id in copy_ids[:MAX_ACTIVE_LOANS]:
            await service.create_loan(user_id, copy_id)

        with pytest.raises(LimitExceededError) as exc_info:
            await service.create_loan(user_id, copy_ids[-1])

        assert exc_info.value.message == f"User has reached maximum active loans ({MAX_ACTIVE_LOANS})"
        assert await copy_status(test_db, copy_ids[-1]) == CopyStatus.AVAILABLE

    @pytest.mark.anyio
    async def test_overdue_loans_do_not_count_toward_limit(self, service, clock, make_user, make_copy):
        user = await make_user()
        copies = [await make_copy() for _ in range(MAX_ACTIVE_LOANS + 1)]
        for copy in copies[:MAX_ACTIVE_LOANS]:
            await service.create_loan(user.id, copy.id)

        clock.advance(days=LOAN_PERIOD_DAYS + 1)
        await service.update_overdue_loans()
        loan = await service.create_loan(user.id, copies[-1].id)

        assert loan.status == LoanStatus.ACTIVE


# ==========================================
# Reservation handoff
# ==========================================

class TestReservationHandoff:
    """Empréstimo de exemplar RESERVED."""

    @pytest.mark.anyio
    async def test_owner_borrows_reserved_copy(self, service, reservations, test_db, make_user, make_copy):
        """Dono da reserva retira o exemplar: reserva FULFILLED e exemplar BORROWED."""
        user = await make_user()
        copy = await make_copy()
        reservation = await reservations.create_reservation(user.id, copy.id)

        loan = await service.create_loan(user.id, copy.id)

        assert loan.status == LoanStatus.ACTIVE
        fulfilled = await reservations.get_reservation(reservation.id)
        assert fulfilled.status == ReservationStatus.FULFILLED
        assert await copy_status(test_db, copy.id) == CopyStatus.BORROWED

    @pytest.mark.anyio
    async def test_other_user_cannot_borrow_reserved_copy(
        self, service, reservations, test_db, make_user, make_copy
    ):
        owner = await make_user()
        other = await make_user()
        copy = await make_copy()
        other_id, copy_id = other.id, copy.id
        reservation = await reservations.create_reservation(owner.id, copy_id)

        with pytest.raises(InvalidStateError) as exc_info:
            await service.create_loan(other_id, copy_id)

        assert exc_info.value.message == "Copy is reserved by another user"
        still_pending = await reservations.get_reservation(reservation.id)
        assert still_pending.status == ReservationStatus.PENDING
        assert await copy_status(test_db, copy_id) == CopyStatus.RESERVED

    @pytest.mark.anyio
    async def test_owner_with_expired_reservation(
        self, service, reservations, test_db, clock, make_user, make_copy
    ):
        """Reserva vencida (ainda PENDING) não vira empréstimo."""
        user = await make_user()
        copy = await make_copy()
        user_id, copy_id = user.id, copy.id
        reservation = await reservations.create_reservation(user_id, copy_id)
        clock.advance(days=3)

        with pytest.raises(InvalidStateError) as exc_info:
            await service.create_loan(user_id, copy_id)

        assert exc_info.value.message == "Reservation has expired"
        assert (await reservations.get_reservation(reservation.id)).status == ReservationStatus.PENDING
        assert await copy_status(test_db, copy_id) == CopyStatus.RESERVED

    @pytest.mark.anyio
    async def test_refused_handoff_keeps_reservation_pending(
        self, service, reservations, test_db, make_user, make_copy
    ):
        """Limite atingido na retirada: a reserva do dono continua PENDING."""
        user = await make_user()
        copies = [await make_copy() for _ in range(MAX_ACTIVE_LOANS + 1)]
        user_id = user.id
        copy_ids = [c.id for c in copies]
        reserved_id = copy_ids[-1]
        reservation = await reservations.create_reservation(user_id, reserved_id)
        for copy_id in copy_ids[:MAX_ACTIVE_LOANS]:
            await service.create_loan(user_id, copy_id)

        with pytest.raises(LimitExceededError):
            await service.create_loan(user_id, reserved_id)

        assert (await reservations.get_reservation(reservation.id)).status == ReservationStatus.PENDING
        assert await copy_status(test_db, reserved_id) == CopyStatus.RESERVED


# ==========================================
# Return / Overdue / Remove
# ==========================================

class TestReturnLoan:
    """Devolução e multa."""

    @pytest.mark.anyio
    async def test_return_on_time(self, service, test_db, clock, make_user, make_copy):
        user = await make_user()
        copy = await make_copy()
        loan = await service.create_loan(user.id, copy.id)
        clock.advance(days=LOAN_PERIOD_DAYS)

        result = await service.return_loan(loan.id)

        assert result.fine_applied == Decimal("0")
        assert result.message == "Copy returned on time. No fine."
        assert result.loan.status == LoanStatus.RETURNED
        assert result.loan.is_open is False
        assert ensure_utc(result.loan.return_date) == clock.now()
        assert await copy_status(test_db, copy.id) == CopyStatus.AVAILABLE

    @pytest.mark.anyio
    async def test_return_late_records_fine(self, service, clock, make_user, make_copy):
        user = await make_user()
        copy = await make_copy()
        loan = await service.create_loan(user.id, copy.id)
        clock.advance(days=LOAN_PERIOD_DAYS + 1, hours=2)

        result = await service.return_loan(loan.id)

        assert result.fine_applied == FINE_PER_DAY * 2
        assert result.loan.fine == FINE_PER_DAY * 2
        assert result.message.startswith("Copy returned late")

    @pytest.mark.anyio
    async def test_return_overdue_loan(self, service, test_db, clock, make_user, make_copy):
        user = await make_user()
        copy = await make_copy()
        loan = await service.create_loan(user.id, copy.id)
        clock.advance(days=LOAN_PERIOD_DAYS + 1)
        await service.update_overdue_loans()

        result = await service.return_loan(loan.id)

        assert result.loan.status == LoanStatus.RETURNED
        assert result.fine_applied == FINE_PER_DAY
        assert await copy_status(test_db, copy.id) == CopyStatus.AVAILABLE

    @pytest.mark.anyio
    async def test_return_twice(self, service, make_user, make_copy):
        user = await make_user()
        copy = await make_copy()
        loan = await service.create_loan(user.id, copy.id)
        await service.return_loan(loan.id)

        with pytest.raises(InvalidStateError):
            await service.return_loan(loan.id)

    @pytest.mark.anyio
    async def test_return_unknown(self, service):
        with pytest.raises(NotFoundError):
            await service.return_loan(uuid.uuid4())


class TestOverdueAndRemoval:
    """Varredura de atrasos e remoção de empréstimos."""

    @pytest.mark.anyio
    async def test_update_overdue(self, service, test_db, clock, make_user, make_copy):
        """Só empréstimos vencidos viram OVERDUE; o exemplar segue BORROWED."""
        user = await make_user()
        old_copy = await make_copy()
        new_copy = await make_copy()
        old_loan = await service.create_loan(user.id, old_copy.id)
        clock.advance(days=5)
        new_loan = await service.create_loan(user.id, new_copy.id)

        clock.advance(days=LOAN_PERIOD_DAYS - 4)
        result = await service.update_overdue_loans()

        assert result.updated_count == 1
        assert (await service.get_loan(old_loan.id)).status == LoanStatus.OVERDUE
        assert (await service.get_loan(new_loan.id)).status == LoanStatus.ACTIVE
        assert await copy_status(test_db, old_copy.id) == CopyStatus.BORROWED

        again = await service.update_overdue_loans()
        assert again.updated_count == 0

    @pytest.mark.anyio
    async def test_remove_open_loan_releases_copy(self, service, test_db, make_user, make_copy):
        user = await make_user()
        copy = await make_copy()
        loan = await service.create_loan(user.id, copy.id)

        await service.remove_loan(loan.id)

        assert await copy_status(test_db, copy.id) == CopyStatus.AVAILABLE
        with pytest.raises(NotFoundError):
            await service.get_loan(loan.id)

    @pytest.mark.anyio
    async def test_remove_returned_loan_keeps_status(self, service, test_db, make_user, make_copy):
        user = await make_user()
        copy = await make_copy()
        loan = await service.create_loan(user.id, copy.id)
        await service.return_loan(loan.id)
        await CopyService(test_db).change_status(copy.id, CopyStatus.LOST)

        await service.remove_loan(loan.id)

        assert await copy_status(test_db, copy.id) == CopyStatus.LOST

    @pytest.mark.anyio
    async def test_remove_unknown(self, service):
        with pytest.raises(NotFoundError):
            await service.remove_loan(uuid.uuid4())


class TestLoanQueries:
    """Consultas e estatísticas."""

    @pytest.mark.anyio
    async def test_get_loan_of_other_user_forbidden(self, service, make_user, make_copy):
        owner = await make_user()
        other = await make_user()
        copy = await make_copy()
        loan = await service.create_loan(owner.id, copy.id)

        with pytest.raises(ForbiddenError):
            await service.get_loan(loan.id, acting_user_id=other.id)

        assert (await service.get_loan(loan.id, acting_user_id=owner.id)).id == loan.id

    @pytest.mark.anyio
    async def test_lists_and_stats(self, service, clock, make_user, make_copy):
        user = await make_user()
        first = await make_copy()
        second = await make_copy()
        returned = await service.create_loan(user.id, first.id)
        await service.return_loan(returned.id)
        active = await service.create_loan(user.id, second.id)

        mine = await service.list_user_loans(user.id)
        active_list = await service.list_active_loans()
        page = await service.list_loans(status=LoanStatus.RETURNED)
        stats = await service.get_loan_stats()

        assert {loan.id for loan in mine} == {returned.id, active.id}
        assert [loan.id for loan in active_list] == [active.id]
        assert await service.list_overdue_loans() == []
        assert page.total == 1
        assert page.items[0].id == returned.id
        assert stats.total == 2
        assert stats.active == 1
        assert stats.returned == 1
        assert stats.overdue == 0
