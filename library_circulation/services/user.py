"""
Service para lógica de negócio de User (gestão pela equipe).
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from library_circulation.core.exceptions import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
)
from library_circulation.core.logging import get_logger
from library_circulation.core.security import hash_password
from library_circulation.db.session import unit_of_work
from library_circulation.models.user import User
from library_circulation.models.enums import UserRole
from library_circulation.repositories.user import UserRepository
from library_circulation.schemas.user import StaffUserCreate, UserUpdate

logger = get_logger(__name__)


class UserService:
    """Service para operações de User."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = UserRepository(db)

    async def get_by_id(self, user_id: UUID) -> User:
        """
        Busca usuário por ID.

        Raises:
            NotFoundError: Usuário não encontrado
        """
        user = await self.repo.get_by_id(user_id)
        if not user:
            raise NotFoundError(f"User with ID {user_id} not found")
        return user

    async def get_active(self, user_id: UUID) -> User:
        """
        Busca usuário apto a circular (emprestar ou reservar).

        Raises:
            NotFoundError: Usuário não encontrado
            InvalidStateError: Conta desativada
        """
        user = await self.get_by_id(user_id)
        if not user.is_active:
            raise InvalidStateError("User account is inactive")
        return user

    async def create(self, data: StaffUserCreate) -> User:
        """
        Cria usuário com role escolhida pela equipe.

        Raises:
            ConflictError: Email já cadastrado
        """
        async with unit_of_work(self.db):
            if await self.repo.email_exists(data.email):
                raise ConflictError("Email já cadastrado")

            user = await self.repo.create(
                name=data.name,
                email=data.email,
                password_hash=hash_password(data.password),
                role=data.role,
            )

        logger.info(f"Usuário {user.email} criado com role {user.role.value}")
        return user

    async def list_users(self, role: UserRole | None = None) -> list[User]:
        """Lista usuários, opcionalmente por role."""
        return await self.repo.list_by_role(role)

    async def update(
        self,
        user_id: UUID,
        data: UserUpdate,
        acting_user_id: UUID | None = None,
    ) -> User:
        """
        Atualiza nome, email, role, senha e/ou status da conta.

        Args:
            user_id: Usuário a alterar
            data: Campos a alterar (omitidos ficam como estão)
            acting_user_id: ADMIN que está alterando; não pode desativar
                nem rebaixar a própria conta

        Raises:
            NotFoundError: Usuário não encontrado
            ConflictError: Email já usado por outro usuário
            InvalidStateError: ADMIN desativando ou rebaixando a si mesmo
        """
        changes = data.model_dump(exclude_unset=True)

        async with unit_of_work(self.db):
            user = await self.get_by_id(user_id)

            if user_id == acting_user_id and (
                changes.get("is_active") is False
                or changes.get("role") not in (None, UserRole.ADMIN)
            ):
                raise InvalidStateError("You cannot deactivate or demote your own account")

            email = changes.get("email")
            if email and email != user.email and await self.repo.email_exists(email):
                raise ConflictError("Email já cadastrado")

            password = changes.pop("password", None)
            if password:
                changes["password_hash"] = hash_password(password)

            await self.repo.update(user, **changes)

        logger.info(f"Usuário {user_id} atualizado: {sorted(changes)}")
        return user

    async def deactivate(self, user_id: UUID, acting_user_id: UUID | None = None) -> User:
        """
        Desativa a conta (remoção lógica: histórico de empréstimos e
        reservas continua apontando para o usuário).
        """
        return await self.update(user_id, UserUpdate(is_active=False), acting_user_id)
