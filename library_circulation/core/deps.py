"""
Dependencies FastAPI para autenticação, autorização e injeção de services.
"""

from typing import Annotated, Callable
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from library_circulation.core.clock import Clock, get_clock
from library_circulation.core.permissions import Operation, ensure_allowed
from library_circulation.core.security import decode_token
from library_circulation.db.session import get_db
from library_circulation.models.user import User
from library_circulation.repositories.user import UserRepository
from library_circulation.services.copy import CopyService
from library_circulation.services.loan import LoanService
from library_circulation.services.reservation import ReservationService

# Scheme Bearer para extrair token do header Authorization
security = HTTPBearer()


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """
    Dependency que retorna o usuário autenticado.

    Extrai o token JWT do header Authorization, decodifica e
    busca o usuário no banco.

    Raises:
        HTTPException 401: Token inválido, expirado, usuário inexistente ou inativo
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Token inválido ou expirado",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_token(credentials.credentials)
    if payload is None:
        raise credentials_exception

    user_id: str | None = payload.get("sub")
    if user_id is None:
        raise credentials_exception

    try:
        user_uuid = UUID(user_id)
    except ValueError:
        raise credentials_exception

    user = await UserRepository(db).get_by_id(user_uuid)
    if user is None or not user.is_active:
        raise credentials_exception

    return user


def require_operation(operation: Operation) -> Callable:
    """
    Cria dependency que exige permissão para `operation`.

    Uso:
        @router.patch("/{id}/return")
        async def return_loan(
            user: Annotated[User, Depends(require_operation(Operation.LOAN_RETURN))],
        ): ...

    Raises:
        ForbiddenError: Role do usuário sem permissão
    """

    async def dependency(
        current_user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        ensure_allowed(current_user.role, operation)
        return current_user

    return dependency


def get_loan_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> LoanService:
    return LoanService(db, clock=clock)


def get_reservation_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> ReservationService:
    return ReservationService(db, clock=clock)


def get_copy_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> CopyService:
    return CopyService(db)


# Type aliases para uso nos endpoints
CurrentUser = Annotated[User, Depends(get_current_user)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
Loans = Annotated[LoanService, Depends(get_loan_service)]
Reservations = Annotated[ReservationService, Depends(get_reservation_service)]
Copies = Annotated[CopyService, Depends(get_copy_service)]
