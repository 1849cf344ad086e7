"""
Autorização por operação.

Cada operação exposta pela API tem uma lista fixa de roles permitidas.
Os endpoints declaram a operação via `require_operation` (core/deps.py),
que chama `ensure_allowed` com a role do usuário autenticado.
"""

import enum

from library_circulation.core.exceptions import ForbiddenError
from library_circulation.models.enums import UserRole


class Operation(str, enum.Enum):
    """Operações sujeitas a controle de acesso."""
    # Usuários
    USER_CREATE = "user:create"
    USER_LIST = "user:list"
    USER_READ = "user:read"
    USER_UPDATE = "user:update"
    USER_DEACTIVATE = "user:deactivate"
    # Catálogo
    BOOK_WRITE = "book:write"
    COPY_WRITE = "copy:write"
    COPY_CHANGE_STATUS = "copy:change_status"
    COPY_DELETE = "copy:delete"
    # Reservas
    RESERVATION_CREATE = "reservation:create"
    RESERVATION_READ_OWN = "reservation:read_own"
    RESERVATION_READ_ALL = "reservation:read_all"
    RESERVATION_FULFILL = "reservation:fulfill"
    RESERVATION_CANCEL = "reservation:cancel"
    RESERVATION_EXPIRE = "reservation:expire"
    RESERVATION_DELETE = "reservation:delete"
    # Empréstimos
    LOAN_CREATE = "loan:create"
    LOAN_CREATE_FOR_USER = "loan:create_for_user"
    LOAN_READ_OWN = "loan:read_own"
    LOAN_READ_ALL = "loan:read_all"
    LOAN_RETURN = "loan:return"
    LOAN_DELETE = "loan:delete"
    LOAN_UPDATE_OVERDUE = "loan:update_overdue"


STAFF_ROLES = frozenset({UserRole.ADMIN, UserRole.LIBRARIAN})
ALL_ROLES = frozenset(UserRole)
ADMIN_ONLY = frozenset({UserRole.ADMIN})

OPERATION_ROLES: dict[Operation, frozenset[UserRole]] = {
    Operation.USER_CREATE: ADMIN_ONLY,
    Operation.USER_LIST: STAFF_ROLES,
    Operation.USER_READ: STAFF_ROLES,
    Operation.USER_UPDATE: ADMIN_ONLY,
    Operation.USER_DEACTIVATE: ADMIN_ONLY,
    Operation.BOOK_WRITE: STAFF_ROLES,
    Operation.COPY_WRITE: STAFF_ROLES,
    Operation.COPY_CHANGE_STATUS: STAFF_ROLES,
    Operation.COPY_DELETE: STAFF_ROLES,
    Operation.RESERVATION_CREATE: ALL_ROLES,
    Operation.RESERVATION_READ_OWN: ALL_ROLES,
    Operation.RESERVATION_READ_ALL: STAFF_ROLES,
    Operation.RESERVATION_FULFILL: STAFF_ROLES,
    Operation.RESERVATION_CANCEL: ALL_ROLES,
    Operation.RESERVATION_EXPIRE: ADMIN_ONLY,
    Operation.RESERVATION_DELETE: ALL_ROLES,
    Operation.LOAN_CREATE: ALL_ROLES,
    Operation.LOAN_CREATE_FOR_USER: STAFF_ROLES,
    Operation.LOAN_READ_OWN: ALL_ROLES,
    Operation.LOAN_READ_ALL: STAFF_ROLES,
    Operation.LOAN_RETURN: STAFF_ROLES,
    Operation.LOAN_DELETE: STAFF_ROLES,
    Operation.LOAN_UPDATE_OVERDUE: ADMIN_ONLY,
}


def is_staff(role: UserRole) -> bool:
    """ADMIN e LIBRARIAN ignoram a verificação de dono em reservas."""
    return role in STAFF_ROLES


def is_allowed(role: UserRole, operation: Operation) -> bool:
    return role in OPERATION_ROLES.get(operation, frozenset())


def ensure_allowed(role: UserRole, operation: Operation) -> None:
    """
    Raises:
        ForbiddenError: Role sem permissão para a operação
    """
    if not is_allowed(role, operation):
        raise ForbiddenError(
            f"Role {role.value} is not allowed to perform {operation.value}"
        )
