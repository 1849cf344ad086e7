"""
Model de usuário do sistema.
"""

from sqlalchemy import Boolean, Enum as SQLEnum, String
from sqlalchemy.orm import Mapped, mapped_column

from library_circulation.db.session import Base
from library_circulation.models.base import UUIDMixin, TimestampMixin
from library_circulation.models.enums import UserRole


class User(Base, UUIDMixin, TimestampMixin):
    """
    Usuário do sistema de biblioteca.

    Attributes:
        id: UUID único do usuário
        name: Nome completo
        email: Email único (usado como login)
        password_hash: Hash bcrypt da senha
        role: ADMIN, LIBRARIAN ou STUDENT
        is_active: Usuários inativos não autenticam
    """
    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        SQLEnum(UserRole, name="user_role"),
        nullable=False,
        default=UserRole.STUDENT,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    @property
    def is_staff(self) -> bool:
        """ADMIN e LIBRARIAN operam em nome de outros usuários."""
        return self.role in (UserRole.ADMIN, UserRole.LIBRARIAN)

    def __repr__(self) -> str:
        return f"<User {self.email}>"
