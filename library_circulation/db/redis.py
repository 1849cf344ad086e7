"""
Configuração de conexão com Redis para cache e rate limiting.

Cache de disponibilidade e rate limiting são opcionais: sem Redis (ou com
Redis lento além de REDIS_SOCKET_TIMEOUT_SECONDS) a circulação segue
funcionando, só sem cache e sem limite de taxa.

Quem consome deve ler `redis.redis_client` pelo módulo (não importar o
nome), pois o valor é substituído em init_redis/close_redis.
"""

from typing import Optional

import redis.asyncio as redis

from library_circulation.core.config import get_settings
from library_circulation.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()

# Cliente Redis (será inicializado no startup)
redis_client: Optional[redis.Redis] = None


async def init_redis() -> redis.Redis:
    """
    Inicializa a conexão com o Redis.

    Returns:
        Cliente Redis conectado.
    """
    global redis_client
    redis_client = redis.from_url(
        settings.REDIS_URL,
        encoding="utf-8",
        decode_responses=True,
        socket_timeout=settings.REDIS_SOCKET_TIMEOUT_SECONDS,
        socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT_SECONDS,
    )
    logger.debug("Cliente Redis criado")
    return redis_client


async def close_redis() -> None:
    """Fecha a conexão com o Redis."""
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None


async def check_redis_connection() -> bool:
    """
    Verifica se a conexão com o Redis está funcionando.

    Returns:
        True se conectou com sucesso, False caso contrário.
    """
    try:
        if redis_client:
            await redis_client.ping()
            return True
        return False
    except Exception as e:
        logger.warning(f"Erro ao verificar conexão Redis: {e}")
        return False
