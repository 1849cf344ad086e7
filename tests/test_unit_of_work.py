"""
Testes da unidade de trabalho: tradução de erros de integridade do banco.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from library_circulation.core.exceptions import ConflictError, InvalidInputError
from library_circulation.db.session import is_unique_violation, unit_of_work
from library_circulation.repositories.book import BookRepository


class FakeDriverError(Exception):
    """Erro de driver com SQLSTATE, como o asyncpg expõe."""

    def __init__(self, message: str, sqlstate: str | None = None):
        super().__init__(message)
        self.sqlstate = sqlstate


def integrity_error(orig: Exception) -> IntegrityError:
    return IntegrityError("INSERT ...", {}, orig)


class TestIsUniqueViolation:
    """Classificação pela origem do erro."""

    def test_postgres_unique_sqlstate(self):
        assert is_unique_violation(integrity_error(FakeDriverError("duplicate key", "23505")))

    def test_postgres_foreign_key_sqlstate(self):
        orig = FakeDriverError("violates foreign key constraint", "23503")

        assert not is_unique_violation(integrity_error(orig))

    def test_sqlite_message(self):
        unique = Exception("UNIQUE constraint failed: books.isbn")
        not_null = Exception("NOT NULL constraint failed: books.title")

        assert is_unique_violation(integrity_error(unique))
        assert not is_unique_violation(integrity_error(not_null))


class TestUnitOfWorkIntegrity:
    """Violação de unicidade vira conflito; as demais, entrada inválida."""

    @pytest.mark.anyio
    async def test_duplicate_isbn_is_conflict(self, test_db, make_book):
        book = await make_book()
        isbn = book.isbn

        with pytest.raises(ConflictError):
            async with unit_of_work(test_db):
                await BookRepository(test_db).create(
                    isbn=isbn, title="Outro", author="Outro Autor"
                )

    @pytest.mark.anyio
    async def test_missing_required_field_is_invalid_input(self, test_db):
        with pytest.raises(InvalidInputError) as exc_info:
            async with unit_of_work(test_db):
                await BookRepository(test_db).create(
                    isbn="9780000000001", title=None, author="Sem Título"
                )

        assert exc_info.value.kind == "invalid_input"
        assert "restrição do banco" in str(exc_info.value)

    @pytest.mark.anyio
    async def test_session_usable_after_rollback(self, test_db, make_book):
        book = await make_book()
        isbn = book.isbn

        with pytest.raises(ConflictError):
            async with unit_of_work(test_db):
                await BookRepository(test_db).create(isbn=isbn, title="Outro", author="X")

        assert await BookRepository(test_db).get_by_isbn(isbn) is not None
