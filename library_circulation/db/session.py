"""
Configuração de sessão do banco de dados com SQLAlchemy async.

Este módulo fornece o engine async, session factory, a dependency
para injeção de sessão nos endpoints e o unit of work usado pelos services.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from library_circulation.core.config import get_settings
from library_circulation.core.exceptions import (
    ConflictError,
    InvalidInputError,
    ServiceUnavailableError,
)
from library_circulation.core.logging import get_logger

settings = get_settings()
logger = get_logger(__name__)

# Engine async com pool de conexões (SQLite não aceita opções de pool)
_engine_options = {} if settings.is_sqlite else {"pool_size": 5, "max_overflow": 10}

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DATABASE_ECHO,
    pool_pre_ping=True,
    **_engine_options,
)

# Factory de sessões async
async_session_factory = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    """Classe base para todos os modelos SQLAlchemy."""
    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency que fornece uma sessão de banco de dados.

    Uso nos endpoints:
        @app.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db)):
            ...

    A sessão é automaticamente fechada após o request.
    """
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


UNIQUE_VIOLATION_SQLSTATE = "23505"


def is_unique_violation(exc: IntegrityError) -> bool:
    """
    Diz se a IntegrityError veio de uma restrição de unicidade.

    PostgreSQL informa o SQLSTATE (23505); SQLite só a mensagem
    ("UNIQUE constraint failed: ...").
    """
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate:
        return sqlstate == UNIQUE_VIOLATION_SQLSTATE
    return "unique constraint" in str(orig).lower()


@asynccontextmanager
async def unit_of_work(session: AsyncSession) -> AsyncGenerator[AsyncSession, None]:
    """
    Executa um bloco como unidade atômica: commit no sucesso, rollback em erro.

    Todas as leituras de decisão, a escrita do status do exemplar e a escrita
    do empréstimo/reserva de uma operação acontecem dentro de um único bloco.

    Raises:
        ConflictError: Violação de unicidade detectada pelo banco
        InvalidInputError: Outra violação de integridade (FK, NOT NULL, CHECK)
        ServiceUnavailableError: Falha transitória de conexão
    """
    try:
        yield session
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        logger.warning(f"Violação de integridade revertida: {e.orig}")
        if is_unique_violation(e):
            raise ConflictError(
                "Operação conflita com outro registro (exemplar já comprometido ou valor duplicado)"
            ) from e
        raise InvalidInputError(
            "Operação viola uma restrição do banco (referência inexistente ou campo obrigatório ausente)"
        ) from e
    except OperationalError as e:
        await session.rollback()
        logger.error(f"Falha de persistência: {e.orig}")
        raise ServiceUnavailableError(
            "Banco de dados indisponível. Tente novamente."
        ) from e
    except Exception:
        await session.rollback()
        raise


async def check_database_connection() -> tuple[bool, str | None]:
    """
    Verifica se a conexão com o banco de dados está funcionando.

    Returns:
        Tupla (sucesso, mensagem_erro)
    """
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True, None
    except Exception as e:
        return False, str(e)
