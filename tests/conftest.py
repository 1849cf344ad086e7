"""
Fixtures compartilhadas para testes.

Cada teste recebe um banco SQLite (aiosqlite) próprio em arquivo temporário,
um relógio congelado e o Redis desligado (cache e rate limit em fail-open).
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator
from uuid import UUID

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

import library_circulation.models  # noqa: F401
from library_circulation.core.clock import get_clock
from library_circulation.core.security import create_access_token, hash_password
from library_circulation.db import redis as redis_db
from library_circulation.db.session import Base, get_db
from library_circulation.main import app
from library_circulation.models.book import Book, BookCopy
from library_circulation.models.enums import CopyStatus, UserRole
from library_circulation.models.user import User
from library_circulation.repositories.book import BookRepository
from library_circulation.repositories.user import UserRepository
from library_circulation.schemas.book import BookCopyCreate
from library_circulation.services.copy import CopyService

TEST_PASSWORD = "Senha123!"
START = datetime(2026, 1, 5, 12, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Relógio controlado pelos testes."""

    def __init__(self, start: datetime = START):
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


# ==========================================
# Event loop configuration
# ==========================================

@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def no_redis(monkeypatch):
    """Testes rodam sem Redis; cache e rate limit seguem em frente."""
    monkeypatch.setattr(redis_db, "redis_client", None)


# ==========================================
# Database fixtures
# ==========================================

@pytest.fixture
async def test_engine(tmp_path):
    """
    Engine SQLite em arquivo com NullPool.

    Cada sessão abre sua própria conexão, como no Postgres, então o
    que o client HTTP grava só aparece para o teste depois do commit.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'circulation.db'}",
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def test_db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


# ==========================================
# HTTP Client fixtures
# ==========================================

@pytest.fixture
async def client(session_factory, clock) -> AsyncGenerator[AsyncClient, None]:
    """
    Cliente HTTP assíncrono para testes.

    Substitui get_db (engine de teste) e get_clock (relógio congelado).
    """

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ==========================================
# Factories
# ==========================================

@pytest.fixture
def make_user(test_db):
    counter = {"n": 0}

    async def factory(role: UserRole = UserRole.STUDENT, is_active: bool = True) -> User:
        counter["n"] += 1
        user = await UserRepository(test_db).create(
            name=f"{role.value.title()} {counter['n']}",
            email=f"{role.value.lower()}{counter['n']}@example.com",
            password_hash=hash_password(TEST_PASSWORD),
            role=role,
            is_active=is_active,
        )
        await test_db.commit()
        return user

    return factory


@pytest.fixture
def make_book(test_db):
    counter = {"n": 0}

    async def factory(title: str = "Dom Casmurro") -> Book:
        counter["n"] += 1
        book = await BookRepository(test_db).create(
            isbn=f"978853591{counter['n']:04d}",
            title=title,
            author="Machado de Assis",
            published_year=1899,
        )
        await test_db.commit()
        return book

    return factory


@pytest.fixture
def make_copy(test_db, make_book):
    counter = {"n": 0}

    async def factory(book: Book | None = None) -> BookCopy:
        counter["n"] += 1
        if book is None:
            book = await make_book()
        return await CopyService(test_db).create(
            BookCopyCreate(code=f"CP-{counter['n']:04d}", book_id=book.id)
        )

    return factory


# ==========================================
# Helpers
# ==========================================

def auth_headers(user: User) -> dict:
    """Headers com token JWT válido para o usuário."""
    token = create_access_token(
        subject=str(user.id),
        extra_data={"role": user.role.value},
    )
    return {"Authorization": f"Bearer {token}"}


async def copy_status(db: AsyncSession, copy_id: UUID) -> CopyStatus | None:
    """Status atual gravado no banco (None se a linha foi apagada)."""
    result = await db.execute(select(BookCopy.status).where(BookCopy.id == copy_id))
    return result.scalar_one_or_none()
