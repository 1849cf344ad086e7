"""
Cache service usando Redis.

Guarda a disponibilidade de exemplares (GET /copies/{id}/availability).
Configurável via variáveis de ambiente:
    - CACHE_ENABLED: bool (default: True) - Habilita/desabilita cache
    - CACHE_AVAILABILITY_TTL_SECONDS: int (default: 15) - TTL do cache de availability

Uso:
    data = await cache_service.get_availability(copy_id)
    if data:
        return data

    result = await compute_availability()
    await cache_service.set_availability(copy_id, result)

Invalidação (toda escrita de status do exemplar):
    await cache_service.invalidate_availability(copy_id)

Erros de Redis nunca propagam: o cache é opcional (fail-open).
"""

import json
import logging
from typing import Optional
from uuid import UUID

from library_circulation.core.config import get_settings
from library_circulation.db import redis as redis_db

logger = logging.getLogger(__name__)
settings = get_settings()


class CacheService:
    """
    Service para operações de cache usando Redis.

    Invalidado pelos coordenadores em:
        - criação/cancelamento/expiração/remoção de reserva
        - criação/devolução/remoção de empréstimo
        - alteração manual de status e remoção de exemplar
    """

    # Prefixos de chave
    PREFIX_AVAILABILITY = "cache:copy-availability"

    def __init__(self, ttl: Optional[int] = None):
        """
        Inicializa o cache service.

        Args:
            ttl: TTL padrão em segundos (default: config)
        """
        self.ttl = ttl or settings.CACHE_AVAILABILITY_TTL_SECONDS

    def _key(self, copy_id: UUID) -> str:
        return f"{self.PREFIX_AVAILABILITY}:{copy_id}"

    # ==========================================
    # Availability Cache
    # ==========================================

    async def get_availability(self, copy_id: UUID) -> Optional[dict]:
        """
        Busca availability do cache.

        Returns:
            Dados de availability ou None se não em cache
        """
        client = redis_db.redis_client
        if not settings.CACHE_ENABLED or client is None:
            return None

        try:
            data = await client.get(self._key(copy_id))
            if data:
                return json.loads(data)
            return None
        except Exception as e:
            logger.warning(f"Erro ao buscar cache availability: {e}")
            return None

    async def set_availability(
        self,
        copy_id: UUID,
        data: dict,
        ttl: Optional[int] = None,
    ) -> bool:
        """
        Salva availability no cache.

        Returns:
            True se salvou com sucesso, False caso contrário
        """
        client = redis_db.redis_client
        if not settings.CACHE_ENABLED or client is None:
            return False

        try:
            await client.setex(
                self._key(copy_id),
                ttl or self.ttl,
                json.dumps(data, default=str),
            )
            return True
        except Exception as e:
            logger.warning(f"Erro ao salvar cache availability: {e}")
            return False

    async def invalidate_availability(self, *copy_ids: UUID) -> bool:
        """
        Invalida cache de availability de um ou mais exemplares.

        Returns:
            True se invalidou com sucesso, False caso contrário
        """
        client = redis_db.redis_client
        if not settings.CACHE_ENABLED or client is None or not copy_ids:
            return False

        try:
            await client.delete(*(self._key(copy_id) for copy_id in copy_ids))
            return True
        except Exception as e:
            logger.warning(f"Erro ao invalidar cache availability: {e}")
            return False


# Instância global para uso nos services
cache_service = CacheService()
