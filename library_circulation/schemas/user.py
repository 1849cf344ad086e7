"""
Schemas Pydantic para User.
"""

import re
from uuid import UUID

from pydantic import EmailStr, Field, field_validator

from library_circulation.models.enums import UserRole
from library_circulation.schemas.base import BaseSchema, TimestampSchema


def _check_password_strength(v: str) -> str:
    if not re.search(r"[A-Z]", v):
        raise ValueError("Senha deve conter pelo menos uma letra maiúscula")
    if not re.search(r"[a-z]", v):
        raise ValueError("Senha deve conter pelo menos uma letra minúscula")
    if not re.search(r"\d", v):
        raise ValueError("Senha deve conter pelo menos um número")
    return v


class UserCreate(BaseSchema):
    """
    Schema para criação de usuário (sign-up).

    Sign-up público sempre cria STUDENT.

    Validações:
        - name: 2-255 caracteres
        - email: formato válido
        - password: mínimo 8 chars, 1 maiúscula, 1 minúscula, 1 número
    """
    name: str = Field(..., min_length=2, max_length=255, examples=["Maria Souza"])
    email: EmailStr = Field(..., examples=["maria@library.example.com"])
    password: str = Field(..., min_length=8, max_length=128, examples=["Senha123!"])

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        """Valida complexidade da senha."""
        return _check_password_strength(v)


class StaffUserCreate(UserCreate):
    """Criação de usuário pela equipe, com role explícita."""
    role: UserRole = UserRole.STUDENT


class UserUpdate(BaseSchema):
    """
    Atualização parcial de usuário pelo ADMIN.

    Campos omitidos ficam como estão. `password` é gravada como novo hash;
    `is_active=false` desativa a conta (login e token deixam de valer).
    """
    name: str | None = Field(None, min_length=2, max_length=255)
    email: EmailStr | None = None
    role: UserRole | None = None
    is_active: bool | None = None
    password: str | None = Field(None, min_length=8, max_length=128)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _check_password_strength(v)


class UserRead(TimestampSchema):
    """
    Schema para leitura de usuário.

    Retornado nos endpoints GET. Nunca expõe password_hash.
    """
    id: UUID
    name: str
    email: EmailStr
    role: UserRole
    is_active: bool


class UserLogin(BaseSchema):
    """Schema para login."""
    email: EmailStr
    password: str


class TokenResponse(BaseSchema):
    """Resposta de autenticação com token JWT."""
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class UserWithToken(BaseSchema):
    """Usuário com token JWT (retorno do login)."""
    user: UserRead
    token: TokenResponse
