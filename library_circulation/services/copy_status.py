"""
Máquina de status do exemplar (BookCopy).

Transições:
    AVAILABLE   -> RESERVED, BORROWED, MAINTENANCE, LOST, DELETED
    RESERVED    -> AVAILABLE, BORROWED, DELETED
    BORROWED    -> AVAILABLE, DELETED
    MAINTENANCE -> AVAILABLE, DELETED
    LOST        -> AVAILABLE, DELETED
    DELETED     -> (terminal)

`set_status` é uma escrita mecânica: não valida a transição. Quem decide se a
transição é legal são os coordenadores (reserva, empréstimo, remoção) e a
alteração manual de status, via `ensure_transition`.
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from library_circulation.core.exceptions import InvalidStateError, NotFoundError
from library_circulation.models.book import BookCopy
from library_circulation.models.enums import CopyStatus
from library_circulation.repositories.book import BookCopyRepository

ALLOWED_TRANSITIONS: dict[CopyStatus, frozenset[CopyStatus]] = {
    CopyStatus.AVAILABLE: frozenset({
        CopyStatus.RESERVED,
        CopyStatus.BORROWED,
        CopyStatus.MAINTENANCE,
        CopyStatus.LOST,
        CopyStatus.DELETED,
    }),
    CopyStatus.RESERVED: frozenset({
        CopyStatus.AVAILABLE,
        CopyStatus.BORROWED,
        CopyStatus.DELETED,
    }),
    CopyStatus.BORROWED: frozenset({CopyStatus.AVAILABLE, CopyStatus.DELETED}),
    CopyStatus.MAINTENANCE: frozenset({CopyStatus.AVAILABLE, CopyStatus.DELETED}),
    CopyStatus.LOST: frozenset({CopyStatus.AVAILABLE, CopyStatus.DELETED}),
    CopyStatus.DELETED: frozenset(),
}


def can_transition(current: CopyStatus, new: CopyStatus) -> bool:
    """True se `current -> new` está na tabela de transições."""
    return new in ALLOWED_TRANSITIONS[current]


def ensure_transition(current: CopyStatus, new: CopyStatus) -> None:
    """
    Valida uma transição.

    Raises:
        InvalidStateError: Transição fora da tabela
    """
    if not can_transition(current, new):
        raise InvalidStateError(
            f"Cannot change copy status from {current.value} to {new.value}"
        )


class CopyStatusMachine:
    """Escrita do status de exemplares, compartilhada pelos coordenadores."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.copy_repo = BookCopyRepository(db)

    async def set_status(self, copy_id: UUID, new_status: CopyStatus) -> BookCopy:
        """
        Grava o novo status do exemplar.

        Args:
            copy_id: ID do exemplar
            new_status: Novo status

        Returns:
            Exemplar atualizado (flush feito, sem commit)

        Raises:
            NotFoundError: Exemplar inexistente ou DELETED
        """
        copy = await self.copy_repo.get_active(copy_id)
        if not copy:
            raise NotFoundError(f"Copy with ID {copy_id} not found")
        return await self.write(copy, new_status)

    async def write(self, copy: BookCopy, new_status: CopyStatus) -> BookCopy:
        """Grava o status de um exemplar já carregado (e travado) pelo chamador."""
        if copy.is_deleted:
            raise NotFoundError(f"Copy with ID {copy.id} not found")
        copy.status = new_status
        await self.db.flush()
        return copy
