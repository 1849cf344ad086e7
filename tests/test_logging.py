"""
Testes para a configuração de logging.
"""

import io
import logging

import pytest

from library_circulation.core.logging import setup_logging


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_setup_logging_writes_formatted_lines(root_logger):
    stream = io.StringIO()

    setup_logging(level="debug", stream=stream)
    logging.getLogger("library_circulation.services.loan").warning("Empréstimo x devolvido")

    lines = stream.getvalue().strip().splitlines()
    assert root_logger.level == logging.DEBUG
    assert "| WARNING  | library_circulation.services.loan | Empréstimo x devolvido" in lines[-1]


def test_setup_logging_does_not_duplicate_handlers(root_logger):
    setup_logging(stream=io.StringIO())
    setup_logging(stream=io.StringIO())

    assert len(root_logger.handlers) == 1
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
