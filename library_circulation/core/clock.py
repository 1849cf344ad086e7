"""
Abstração de relógio usada nas regras de prazo (vencimento e expiração).

Os services recebem um Clock no construtor; em produção é o SystemClock,
nos testes um relógio congelado.
"""

from datetime import datetime, timezone
from typing import Protocol


class Clock(Protocol):
    """Fonte do instante atual (sempre timezone-aware, UTC)."""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Relógio de parede em UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """
    Normaliza datetime para UTC aware.

    Bancos sem suporte a timezone (ex: SQLite) devolvem datetimes naive;
    todos os valores gravados pela aplicação estão em UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


system_clock = SystemClock()


def get_clock() -> Clock:
    """Dependency FastAPI que fornece o relógio da aplicação."""
    return system_clock
