"""
Script de seed para criar dados iniciais no banco.

Uso:
    python -m library_circulation.db.seed

Cria o usuário admin (ADMIN_EMAIL / ADMIN_PASSWORD) se não existir.
"""

import asyncio

from sqlalchemy.ext.asyncio import AsyncSession

from library_circulation.core.config import get_settings
from library_circulation.core.logging import get_logger, setup_logging
from library_circulation.core.security import hash_password
from library_circulation.db.session import async_session_factory, engine, unit_of_work
from library_circulation.models.enums import UserRole
from library_circulation.models.user import User
from library_circulation.repositories.user import UserRepository

logger = get_logger(__name__)
settings = get_settings()


async def create_admin(db: AsyncSession) -> User:
    """Cria o admin se ainda não existe e o retorna."""
    repo = UserRepository(db)
    existing = await repo.get_by_email(settings.ADMIN_EMAIL)
    if existing:
        logger.info(f"Admin já existe: {settings.ADMIN_EMAIL}")
        return existing

    async with unit_of_work(db):
        admin = await repo.create(
            name="Administrador",
            email=settings.ADMIN_EMAIL,
            password_hash=hash_password(settings.ADMIN_PASSWORD),
            role=UserRole.ADMIN,
        )

    logger.info(f"Admin criado: {settings.ADMIN_EMAIL} (ID: {admin.id})")
    return admin


async def main() -> None:
    setup_logging()
    logger.info("Executando seeds...")
    async with async_session_factory() as db:
        await create_admin(db)
    await engine.dispose()
    logger.info("Seeds concluídos!")


if __name__ == "__main__":
    asyncio.run(main())
