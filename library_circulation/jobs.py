"""
Tarefas periódicas de circulação.

Uso (cron, systemd timer, etc.):
    python -m library_circulation.jobs

Executa, cada uma em sua própria transação:
    1. Expiração de reservas PENDING vencidas
    2. Marcação de empréstimos vencidos como OVERDUE

As duas são idempotentes; rodar de novo não altera nada.
O resultado sai em stdout como JSON; os logs vão para stderr.
"""

import asyncio
import json
import sys

from library_circulation.core.clock import Clock
from library_circulation.core.logging import get_logger, setup_logging
from library_circulation.db.redis import close_redis, init_redis
from library_circulation.db.session import async_session_factory, engine
from library_circulation.services.loan import LoanService
from library_circulation.services.reservation import ReservationService

logger = get_logger(__name__)


async def run_circulation_jobs(
    session_factory=async_session_factory,
    clock: Clock | None = None,
) -> dict[str, int]:
    """
    Roda a varredura de reservas e de atrasos.

    Returns:
        Dict com expired_reservations e overdue_loans
    """
    async with session_factory() as db:
        expired = await ReservationService(db, clock=clock).expire_reservations()
    async with session_factory() as db:
        overdue = await LoanService(db, clock=clock).update_overdue_loans()

    logger.info(
        f"Jobs concluídos: {expired.expired_count} reserva(s) expirada(s), "
        f"{overdue.updated_count} empréstimo(s) em atraso"
    )
    return {
        "expired_reservations": expired.expired_count,
        "overdue_loans": overdue.updated_count,
    }


async def main() -> None:
    setup_logging(stream=sys.stderr)
    await init_redis()
    try:
        result = await run_circulation_jobs()
        print(json.dumps(result))
    finally:
        await close_redis()
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
