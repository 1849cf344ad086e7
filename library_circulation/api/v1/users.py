"""
Endpoints de gestão de usuários pela equipe.

    - POST /users: Cria usuário com role (ADMIN)
    - GET /users: Lista usuários (ADMIN, LIBRARIAN)
    - GET /users/{id}: Detalhe de um usuário (ADMIN, LIBRARIAN)
    - PATCH /users/{id}: Altera nome, email, role, senha ou is_active (ADMIN)
    - DELETE /users/{id}: Desativa a conta; o histórico é mantido (ADMIN)
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from library_circulation.core.deps import DbSession, require_operation
from library_circulation.core.permissions import Operation
from library_circulation.models.enums import UserRole
from library_circulation.models.user import User
from library_circulation.schemas.user import StaffUserCreate, UserRead, UserUpdate
from library_circulation.services.user import UserService

router = APIRouter(prefix="/users", tags=["Users"])


@router.post(
    "",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    summary="Criar usuário",
)
async def create_user(
    data: StaffUserCreate,
    db: DbSession,
    _: Annotated[User, Depends(require_operation(Operation.USER_CREATE))],
) -> UserRead:
    user = await UserService(db).create(data)
    return UserRead.model_validate(user)


@router.get(
    "",
    response_model=list[UserRead],
    summary="Listar usuários",
)
async def list_users(
    db: DbSession,
    _: Annotated[User, Depends(require_operation(Operation.USER_LIST))],
    role: UserRole | None = Query(None, description="Filtrar por role"),
) -> list[UserRead]:
    users = await UserService(db).list_users(role)
    return [UserRead.model_validate(u) for u in users]


@router.get(
    "/{user_id}",
    response_model=UserRead,
    summary="Detalhar usuário",
)
async def get_user(
    user_id: UUID,
    db: DbSession,
    _: Annotated[User, Depends(require_operation(Operation.USER_READ))],
) -> UserRead:
    user = await UserService(db).get_by_id(user_id)
    return UserRead.model_validate(user)


@router.patch(
    "/{user_id}",
    response_model=UserRead,
    summary="Atualizar usuário",
    description="Campos omitidos ficam como estão. `is_active: false` bloqueia login e circulação.",
)
async def update_user(
    user_id: UUID,
    data: UserUpdate,
    db: DbSession,
    admin: Annotated[User, Depends(require_operation(Operation.USER_UPDATE))],
) -> UserRead:
    user = await UserService(db).update(user_id, data, acting_user_id=admin.id)
    return UserRead.model_validate(user)


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Desativar usuário",
)
async def deactivate_user(
    user_id: UUID,
    db: DbSession,
    admin: Annotated[User, Depends(require_operation(Operation.USER_DEACTIVATE))],
) -> None:
    await UserService(db).deactivate(user_id, acting_user_id=admin.id)
