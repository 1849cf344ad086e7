"""
Service de autenticação.
"""

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from library_circulation.core.config import get_settings
from library_circulation.core.exceptions import ConflictError
from library_circulation.core.logging import get_logger
from library_circulation.core.security import create_access_token, hash_password, verify_password
from library_circulation.db.session import unit_of_work
from library_circulation.models.user import User
from library_circulation.models.enums import UserRole
from library_circulation.repositories.user import UserRepository
from library_circulation.schemas.user import UserCreate, UserRead, TokenResponse, UserWithToken

settings = get_settings()
logger = get_logger(__name__)


class AuthService:
    """Service para operações de autenticação."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.user_repo = UserRepository(db)

    async def signup(self, data: UserCreate) -> User:
        """
        Registra novo usuário STUDENT.

        Raises:
            ConflictError: Email já cadastrado
        """
        async with unit_of_work(self.db):
            if await self.user_repo.email_exists(data.email):
                raise ConflictError("Email já cadastrado")

            user = await self.user_repo.create(
                name=data.name,
                email=data.email,
                password_hash=hash_password(data.password),
                role=UserRole.STUDENT,
            )

        logger.info(f"Usuário {user.email} registrado")
        return user

    async def login(self, email: str, password: str) -> UserWithToken:
        """
        Autentica usuário e retorna token JWT.

        Raises:
            HTTPException 401: Credenciais inválidas ou usuário inativo
        """
        user = await self.user_repo.get_by_email(email)

        if (
            user is None
            or not user.is_active
            or not verify_password(password, user.password_hash)
        ):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Email ou senha incorretos",
                headers={"WWW-Authenticate": "Bearer"},
            )

        access_token = create_access_token(
            subject=str(user.id),
            extra_data={"role": user.role.value},
        )

        return UserWithToken(
            user=UserRead.model_validate(user),
            token=TokenResponse(
                access_token=access_token,
                token_type="bearer",
                expires_in=settings.JWT_EXPIRES_MINUTES * 60,
            ),
        )
