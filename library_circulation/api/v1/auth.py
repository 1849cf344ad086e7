"""
Endpoints de autenticação.

Rate Limiting aplicado:
    - POST /signup: 10 req/min (rate_limit_auth)
    - POST /login: 10 req/min (rate_limit_auth)
"""

from fastapi import APIRouter, Depends, status

from library_circulation.core.deps import CurrentUser, DbSession
from library_circulation.core.rate_limit import rate_limit_auth
from library_circulation.schemas.user import UserCreate, UserLogin, UserRead, UserWithToken
from library_circulation.services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/signup",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    summary="Registrar novo usuário",
    description="Cria uma conta STUDENT. Email deve ser único.",
    dependencies=[Depends(rate_limit_auth)],
)
async def signup(data: UserCreate, db: DbSession) -> UserRead:
    """
    Registro público de usuário.

    - **name**: Nome completo (2-255 caracteres)
    - **email**: Email único (será usado como login)
    - **password**: Mínimo 8 caracteres, 1 maiúscula, 1 minúscula, 1 número
    """
    user = await AuthService(db).signup(data)
    return UserRead.model_validate(user)


@router.post(
    "/login",
    response_model=UserWithToken,
    summary="Autenticar usuário",
    description="Retorna token JWT para autenticação nos endpoints protegidos.",
    dependencies=[Depends(rate_limit_auth)],
)
async def login(data: UserLogin, db: DbSession) -> UserWithToken:
    """
    Login de usuário.

    Uso: `Authorization: Bearer <access_token>`
    """
    return await AuthService(db).login(data.email, data.password)


@router.get(
    "/me",
    response_model=UserRead,
    summary="Dados do usuário autenticado",
)
async def get_me(current_user: CurrentUser) -> UserRead:
    return UserRead.model_validate(current_user)
