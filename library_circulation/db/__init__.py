"""
Módulo de banco de dados - conexões e sessões.

Exports:
    - Base: Classe base para modelos SQLAlchemy
    - engine: Engine async do SQLAlchemy
    - get_db: Dependency para injeção de sessão
    - unit_of_work: Bloco transacional dos services
"""

from library_circulation.db.session import (
    Base,
    engine,
    get_db,
    async_session_factory,
    unit_of_work,
)
from library_circulation.db.redis import init_redis, close_redis

__all__ = [
    "Base",
    "engine",
    "get_db",
    "async_session_factory",
    "unit_of_work",
    "init_redis",
    "close_redis",
]
