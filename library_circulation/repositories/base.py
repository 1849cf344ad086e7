"""
Repository base com operações genéricas.

Os repositories não fazem commit: apenas adicionam e fazem flush na sessão.
O commit é responsabilidade do service, dentro de unit_of_work().
"""

from typing import Any, Generic, Type, TypeVar
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from library_circulation.db.session import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Repository base.

    Fornece:
    - get_by_id: Buscar por ID
    - create / update / delete: Escrita com flush (sem commit)
    - paginate: Executa uma query de listagem devolvendo (itens, total)
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        self.model = model
        self.db = db

    async def get_by_id(self, id: UUID) -> ModelType | None:
        """Busca registro por ID."""
        result = await self.db.execute(
            select(self.model).where(self.model.id == id)
        )
        return result.scalar_one_or_none()

    async def create(self, **kwargs: Any) -> ModelType:
        """Cria novo registro (flush, sem commit)."""
        instance = self.model(**kwargs)
        self.db.add(instance)
        await self.db.flush()
        return instance

    async def update(
        self,
        instance: ModelType,
        **kwargs: Any,
    ) -> ModelType:
        """Atualiza campos não nulos de um registro existente."""
        for key, value in kwargs.items():
            if value is not None:
                setattr(instance, key, value)
        await self.db.flush()
        return instance

    async def delete(self, instance: ModelType) -> None:
        """Remove registro fisicamente."""
        await self.db.delete(instance)
        await self.db.flush()

    async def paginate(
        self,
        query: Select,
        *order_by: Any,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[ModelType], int]:
        """
        Conta o total da query filtrada e devolve a página pedida.

        Args:
            query: select já filtrado (sem ordenação nem limite)
            order_by: critérios de ordenação da página
            page: Página (1-indexed)
            page_size: Itens por página

        Returns:
            Tupla (itens da página, total sem paginação)
        """
        count_result = await self.db.execute(
            select(func.count()).select_from(query.subquery())
        )
        total = count_result.scalar_one()

        result = await self.db.execute(
            query.order_by(*order_by)
            .offset((page - 1) * page_size)
            .limit(page_size)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all()), total
