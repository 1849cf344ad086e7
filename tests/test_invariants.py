"""
Testes de propriedade: sequências aleatórias de operações de circulação
nunca violam as regras por exemplar e por usuário.

Depois de cada operação (bem-sucedida ou recusada) o banco deve ter:
    - no máximo um empréstimo ACTIVE/OVERDUE por exemplar
    - no máximo uma reserva PENDING por exemplar
    - status do exemplar coerente com essas obrigações
    - no máximo 3 empréstimos ACTIVE e 3 reservas PENDING por usuário
"""

import random
from collections import Counter

import pytest
from sqlalchemy import func, select

from library_circulation.core.exceptions import LibraryError
from library_circulation.models.book import BookCopy
from library_circulation.models.enums import (
    OPEN_LOAN_STATUSES,
    CopyStatus,
    LoanStatus,
    ReservationStatus,
)
from library_circulation.models.loan import Loan
from library_circulation.models.reservation import Reservation
from library_circulation.schemas.loan import MAX_ACTIVE_LOANS
from library_circulation.schemas.reservation import MAX_PENDING_RESERVATIONS
from library_circulation.services.copy import CopyService
from library_circulation.services.loan import LoanService
from library_circulation.services.reservation import ReservationService

STEPS = 80


async def assert_invariants(db) -> None:
    open_loans = Counter(
        (await db.execute(
            select(Loan.copy_id).where(Loan.status.in_(OPEN_LOAN_STATUSES))
        )).scalars().all()
    )
    pending = Counter(
        (await db.execute(
            select(Reservation.copy_id).where(
                Reservation.status == ReservationStatus.PENDING
            )
        )).scalars().all()
    )
    assert all(count == 1 for count in open_loans.values())
    assert all(count == 1 for count in pending.values())
    assert not set(open_loans) & set(pending)

    copies = (await db.execute(select(BookCopy.id, BookCopy.status))).all()
    for copy_id, status in copies:
        if copy_id in open_loans:
            assert status == CopyStatus.BORROWED
        elif copy_id in pending:
            assert status == CopyStatus.RESERVED
        else:
            assert status not in (CopyStatus.BORROWED, CopyStatus.RESERVED)

    active_per_user = (await db.execute(
        select(func.count(Loan.id))
        .where(Loan.status == LoanStatus.ACTIVE)
        .group_by(Loan.user_id)
    )).scalars().all()
    pending_per_user = (await db.execute(
        select(func.count(Reservation.id))
        .where(Reservation.status == ReservationStatus.PENDING)
        .group_by(Reservation.user_id)
    )).scalars().all()
    assert all(count <= MAX_ACTIVE_LOANS for count in active_per_user)
    assert all(count <= MAX_PENDING_RESERVATIONS for count in pending_per_user)


@pytest.mark.anyio
@pytest.mark.parametrize("seed", [7, 42, 2024])
async def test_random_operation_sequences(seed, test_db, clock, make_user, make_book, make_copy):
    rng = random.Random(seed)
    book = await make_book()
    user_ids = [(await make_user()).id for _ in range(3)]
    copy_ids = [(await make_copy(book)).id for _ in range(5)]

    loans = LoanService(test_db, clock=clock)
    reservations = ReservationService(test_db, clock=clock)
    copies = CopyService(test_db)
    loan_ids: list = []
    reservation_ids: list = []

    async def reserve():
        detail = await reservations.create_reservation(
            rng.choice(user_ids), rng.choice(copy_ids)
        )
        reservation_ids.append(detail.id)

    async def borrow():
        detail = await loans.create_loan(rng.choice(user_ids), rng.choice(copy_ids))
        loan_ids.append(detail.id)

    async def return_loan():
        if loan_ids:
            await loans.return_loan(rng.choice(loan_ids))

    async def cancel():
        if reservation_ids:
            acting = rng.choice([None, *user_ids])
            await reservations.cancel_reservation(rng.choice(reservation_ids), acting)

    async def fulfill():
        if reservation_ids:
            await reservations.fulfill_reservation(rng.choice(reservation_ids))

    async def pass_time():
        clock.advance(hours=rng.choice([1, 12, 30, 24 * 10]))
        await reservations.expire_reservations()
        await loans.update_overdue_loans()

    async def remove_reservation():
        if reservation_ids:
            await reservations.remove_reservation(rng.choice(reservation_ids))

    async def remove_loan():
        if loan_ids:
            await loans.remove_loan(rng.choice(loan_ids))

    async def change_status():
        await copies.change_status(
            rng.choice(copy_ids),
            rng.choice([CopyStatus.AVAILABLE, CopyStatus.MAINTENANCE, CopyStatus.LOST]),
        )

    async def delete_copy():
        await copies.remove(rng.choice(copy_ids))

    operations = [
        (reserve, 5),
        (borrow, 5),
        (return_loan, 3),
        (cancel, 2),
        (fulfill, 2),
        (pass_time, 2),
        (remove_reservation, 1),
        (remove_loan, 1),
        (change_status, 1),
        (delete_copy, 1),
    ]
    functions = [op for op, _ in operations]
    weights = [weight for _, weight in operations]

    for _ in range(STEPS):
        operation = rng.choices(functions, weights)[0]
        try:
            await operation()
        except LibraryError:
            pass
        await assert_invariants(test_db)
