"""
Ponto de entrada da aplicação FastAPI.

Configura a aplicação, inclui rotas, registra os handlers de erro de
domínio e define o ciclo de vida (startup/shutdown).
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from library_circulation.api.v1.router import api_router
from library_circulation.core.config import get_settings
from library_circulation.core.exceptions import LibraryError, ServiceUnavailableError
from library_circulation.core.logging import setup_logging, get_logger
from library_circulation.db.session import check_database_connection, engine
from library_circulation.db.redis import init_redis, close_redis, check_redis_connection
from library_circulation.schemas.base import ErrorResponse
from library_circulation.schemas.health import HealthResponse

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Gerencia o ciclo de vida da aplicação.

    Startup:
        - Configura logging
        - Conecta ao Redis (opcional: cache e rate limit fazem fail-open)
        - Verifica conexão com o banco

    Shutdown:
        - Fecha conexão com Redis
        - Fecha pool de conexões do banco
    """
    setup_logging()
    logger.info(f"Iniciando {settings.APP_NAME} em ambiente {settings.ENVIRONMENT}")

    try:
        await init_redis()
        if await check_redis_connection():
            logger.info("Conexão com Redis estabelecida")
        else:
            logger.warning("Redis não disponível - cache desabilitado")
    except Exception as e:
        logger.warning(f"Falha ao conectar ao Redis: {e}")

    success, error = await check_database_connection()
    if success:
        logger.info("Conexão com o banco estabelecida")
    else:
        logger.warning(f"Banco não disponível: {error}")

    yield

    logger.info(f"Encerrando {settings.APP_NAME}")
    await close_redis()
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    description="API REST de circulação de biblioteca: exemplares, empréstimos e reservas",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.include_router(api_router)


# ==========================================
# Exception handlers
# ==========================================

@app.exception_handler(LibraryError)
async def library_error_handler(request: Request, exc: LibraryError) -> JSONResponse:
    """Converte erros de domínio em ErrorResponse."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse.from_error(exc).model_dump(),
    )


@app.exception_handler(OperationalError)
async def operational_error_handler(request: Request, exc: OperationalError) -> JSONResponse:
    """Falha de banco fora de uma unidade de trabalho (ex: leituras)."""
    logger.error(f"{request.method} {request.url.path}: banco indisponível ({exc.orig})")
    error = ServiceUnavailableError("Banco de dados indisponível. Tente novamente.")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=ErrorResponse.from_error(error).model_dump(),
    )


# ==========================================
# Health
# ==========================================

@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="Verifica status da aplicação",
)
async def health_check() -> HealthResponse:
    """
    Endpoint de healthcheck para monitoramento.

    "degraded" quando o banco não responde; Redis fora não degrada.
    """
    database_ok, _ = await check_database_connection()
    redis_ok = await check_redis_connection()
    return HealthResponse(
        status="healthy" if database_ok else "degraded",
        app_name=settings.APP_NAME,
        environment=settings.ENVIRONMENT,
        database=database_ok,
        redis=redis_ok,
    )
