"""
Exceções de domínio da circulação.

Os services levantam estas exceções; o handler registrado em main.py
converte cada uma para ErrorResponse com o status HTTP correspondente.

Taxonomia:
    - NotFoundError: entidade inexistente ou exemplar com soft-delete
    - InvalidStateError: operação ilegal para o status/dono/prazo atual
    - LimitExceededError: limite por usuário atingido
    - ConflictError: violação de unicidade
    - InvalidInputError: datas ou campos inválidos
    - ForbiddenError: papel do usuário não autorizado para a operação
    - ServiceUnavailableError: falha transitória de persistência
"""

from fastapi import status


class LibraryError(Exception):
    """
    Erro base de domínio.

    Attributes:
        kind: Identificador estável e legível por máquina
        status_code: Status HTTP usado pelo handler da API
        message: Motivo legível por humanos
    """

    kind: str = "library_error"
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.kind}: {self.message}>"


class NotFoundError(LibraryError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class InvalidStateError(LibraryError):
    kind = "invalid_state"
    status_code = status.HTTP_400_BAD_REQUEST


class LimitExceededError(LibraryError):
    kind = "limit_exceeded"
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(LibraryError):
    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT


class InvalidInputError(LibraryError):
    kind = "invalid_input"
    status_code = status.HTTP_400_BAD_REQUEST


class ForbiddenError(LibraryError):
    kind = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class ServiceUnavailableError(LibraryError):
    """Falha transitória (ex: conexão perdida). Deve ser reexecutada pelo cliente."""

    kind = "unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
