"""
Service para exemplares (BookCopy): cadastro, disponibilidade,
alteração manual de status e política de remoção.

Política de remoção:
    - Exemplar com empréstimo ACTIVE/OVERDUE ou reserva PENDING não pode
      ser removido
    - Exemplar com histórico (empréstimos/reservas encerrados) recebe
      soft-delete (status DELETED) e continua resolvendo o histórico
    - Exemplar sem histórico é apagado da tabela
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from library_circulation.core.cache import cache_service
from library_circulation.core.exceptions import (
    ConflictError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
)
from library_circulation.core.logging import get_logger
from library_circulation.db.session import unit_of_work
from library_circulation.models.book import BookCopy
from library_circulation.models.enums import CopyStatus
from library_circulation.repositories.book import BookCopyRepository, BookRepository
from library_circulation.repositories.loan import LoanRepository
from library_circulation.repositories.reservation import ReservationRepository
from library_circulation.schemas.book import (
    BookCopyCreate,
    BookCopyUpdate,
    BookSummary,
    CopyAvailability,
)
from library_circulation.services.copy_status import CopyStatusMachine, ensure_transition

logger = get_logger(__name__)

# Status escritos apenas pelos coordenadores de empréstimo e reserva
COORDINATED_STATUSES = (CopyStatus.BORROWED, CopyStatus.RESERVED)


class CopyService:
    """Service para operações de BookCopy."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.copy_repo = BookCopyRepository(db)
        self.book_repo = BookRepository(db)
        self.loan_repo = LoanRepository(db)
        self.reservation_repo = ReservationRepository(db)
        self.status_machine = CopyStatusMachine(db)

    # ==========================================
    # Catálogo
    # ==========================================

    async def create(self, data: BookCopyCreate) -> BookCopy:
        """
        Cadastra um exemplar AVAILABLE.

        Raises:
            NotFoundError: Livro não encontrado
            ConflictError: Código já usado por outro exemplar
        """
        async with unit_of_work(self.db):
            if not await self.book_repo.get_by_id(data.book_id):
                raise NotFoundError(f"Book with ID {data.book_id} not found")
            if await self.copy_repo.get_by_code(data.code):
                raise ConflictError(f"Copy with code {data.code} already exists")

            copy = await self.copy_repo.create(
                code=data.code,
                book_id=data.book_id,
                status=CopyStatus.AVAILABLE,
            )

        logger.info(f"Exemplar {copy.code} cadastrado para o livro {copy.book_id}")
        return await self.find_one(copy.id)

    async def find_all(self, book_id: UUID | None = None) -> list[BookCopy]:
        """Lista exemplares (DELETED excluídos)."""
        return await self.copy_repo.list_active(book_id)

    async def find_available(self, book_id: UUID | None = None) -> list[BookCopy]:
        """Lista exemplares AVAILABLE."""
        return await self.copy_repo.list_available(book_id)

    async def find_one(self, copy_id: UUID) -> BookCopy:
        """
        Busca exemplar por ID.

        Raises:
            NotFoundError: Exemplar inexistente ou DELETED
        """
        copy = await self.copy_repo.get_active(copy_id)
        if not copy:
            raise NotFoundError(f"Copy with ID {copy_id} not found")
        return copy

    async def update(self, copy_id: UUID, data: BookCopyUpdate) -> BookCopy:
        """
        Atualiza código e/ou livro do exemplar.

        Raises:
            NotFoundError: Exemplar ou livro não encontrado
            ConflictError: Código já usado por outro exemplar
        """
        async with unit_of_work(self.db):
            copy = await self._lock(copy_id)

            if data.code and data.code != copy.code:
                if await self.copy_repo.get_by_code(data.code):
                    raise ConflictError(f"Copy with code {data.code} already exists")

            if data.book_id and data.book_id != copy.book_id:
                if not await self.book_repo.get_by_id(data.book_id):
                    raise NotFoundError(f"Book with ID {data.book_id} not found")

            await self.copy_repo.update(copy, code=data.code, book_id=data.book_id)

        await cache_service.invalidate_availability(copy_id)
        return await self.find_one(copy_id)

    # ==========================================
    # Disponibilidade
    # ==========================================

    async def get_availability(self, copy_id: UUID) -> CopyAvailability:
        """
        Disponibilidade de um exemplar (com cache Redis).

        Raises:
            NotFoundError: Exemplar inexistente ou DELETED
        """
        cached = await cache_service.get_availability(copy_id)
        if cached:
            return CopyAvailability.model_validate(cached)

        copy = await self.find_one(copy_id)
        availability = CopyAvailability(
            copy_id=copy.id,
            code=copy.code,
            status=copy.status,
            is_available=copy.status == CopyStatus.AVAILABLE,
            is_reserved=copy.status == CopyStatus.RESERVED,
            is_borrowed=copy.status == CopyStatus.BORROWED,
            book=BookSummary.model_validate(copy.book),
        )
        await cache_service.set_availability(copy_id, availability.model_dump(mode="json"))
        return availability

    # ==========================================
    # Status e remoção
    # ==========================================

    async def change_status(self, copy_id: UUID, new_status: CopyStatus) -> BookCopy:
        """
        Alteração manual de status pela equipe (manutenção, extravio, volta ao acervo).

        Raises:
            InvalidInputError: Tentativa de marcar DELETED (usar remove)
            NotFoundError: Exemplar inexistente ou DELETED
            InvalidStateError: Transição ilegal ou envolvendo BORROWED/RESERVED
        """
        if new_status == CopyStatus.DELETED:
            raise InvalidInputError("Use the delete operation to remove a copy")
        return await self.update_status(copy_id, new_status)

    async def remove(self, copy_id: UUID) -> None:
        """
        Remove um exemplar seguindo a política de remoção.

        Raises:
            NotFoundError: Exemplar inexistente ou já removido
            InvalidStateError: Exemplar com empréstimo aberto ou reserva PENDING
        """
        await self.update_status(copy_id, CopyStatus.DELETED)

    async def update_status(
        self,
        copy_id: UUID,
        new_status: CopyStatus,
    ) -> BookCopy | None:
        """
        Aplica uma mudança de status numa única transação.

        DELETED segue a política de remoção; os demais status passam pela
        tabela de transições e não podem entrar nem sair de BORROWED/RESERVED.

        Returns:
            Exemplar atualizado, ou None se foi apagado da tabela
        """
        async with unit_of_work(self.db):
            copy = await self._lock(copy_id)
            previous = copy.status

            if new_status == CopyStatus.DELETED:
                result = await self._delete(copy)
            else:
                if previous in COORDINATED_STATUSES or new_status in COORDINATED_STATUSES:
                    raise InvalidStateError(
                        f"Copy status {previous.value} -> {new_status.value} is managed by loans and reservations"
                    )
                ensure_transition(previous, new_status)
                result = await self.status_machine.write(copy, new_status)

        await cache_service.invalidate_availability(copy_id)
        logger.info(f"Exemplar {copy_id}: {previous.value} -> {new_status.value}")
        return result

    async def _delete(self, copy: BookCopy) -> BookCopy | None:
        if await self.loan_repo.get_open_by_copy(copy.id):
            raise InvalidStateError("Cannot delete copy with an active loan")
        if await self.reservation_repo.get_pending_by_copy(copy.id):
            raise InvalidStateError("Cannot delete copy with a pending reservation")

        history = (
            await self.loan_repo.count_by_copy(copy.id)
            + await self.reservation_repo.count_by_copy(copy.id)
        )
        if history:
            return await self.status_machine.write(copy, CopyStatus.DELETED)

        await self.copy_repo.delete(copy)
        return None

    async def _lock(self, copy_id: UUID) -> BookCopy:
        copy = await self.copy_repo.get_for_update(copy_id)
        if not copy:
            raise NotFoundError(f"Copy with ID {copy_id} not found")
        return copy
