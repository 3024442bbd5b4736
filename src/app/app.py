"""Entrypoint da aplicação quadro-lotacao-sync.

Este módulo é o ponto de entrada principal do serviço.
Inicializa o bootstrap e expõe a aplicação ASGI (FastAPI).

Uso (produção):
    uvicorn app.app:app --host 0.0.0.0 --port 8080

Uso (desenvolvimento):
    uvicorn app.app:app --reload --host 0.0.0.0 --port 8080
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import create_api_router
from app.bootstrap import SERVICE_NAME, SERVICE_VERSION, get_container, initialize_app
from app.bootstrap import validate_runtime_settings
from app.bootstrap.clients import (
    create_async_redis_client,
    create_firestore_client,
    create_sql_engine,
)
from config.logging import get_logger
from config.settings import get_base_settings, get_dedupe_settings, get_store_settings

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

# Inicializar logging e dependências ANTES de qualquer import que use logger
initialize_app()

logger = get_logger(__name__)


def _attach_clients(app: FastAPI) -> None:
    """Expõe no app.state os clients em uso (readiness)."""
    stores = get_store_settings()
    dedupe = get_dedupe_settings()
    app.state.sql_engine = None
    app.state.redis_client = None
    app.state.firestore_client = None

    if stores.uses_sql():
        try:
            engine = create_sql_engine()
            if get_base_settings().is_development:
                from app.infra.stores.sql_models import Base

                Base.metadata.create_all(engine)
            app.state.sql_engine = engine
        except Exception as exc:
            logger.warning("sql_engine_not_ready", extra={"error_type": type(exc).__name__})

    if dedupe.enabled and dedupe.backend == "redis":
        try:
            app.state.redis_client = create_async_redis_client()
        except Exception as exc:
            logger.warning("redis_client_not_ready", extra={"error_type": type(exc).__name__})

    if stores.audit_backend == "firestore":
        try:
            app.state.firestore_client = create_firestore_client()
        except Exception as exc:
            logger.warning("firestore_client_not_ready", extra={"error_type": type(exc).__name__})


async def _close_clients(app: FastAPI) -> None:
    redis_client = getattr(app.state, "redis_client", None)
    if redis_client is not None:
        await redis_client.aclose()
    engine = getattr(app.state, "sql_engine", None)
    if engine is not None:
        engine.dispose()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Gerencia ciclo de vida da aplicação.

    Startup:
    - Valida configurações
    - Inicializa conexões (SQL, Redis, Firestore) e o pipeline
    - Carrega snapshots do monitor e liga worker de notificações e varredura

    Shutdown:
    - Para a varredura, persiste snapshots e drena notificações
    - Fecha conexões
    """
    logger.info("app_starting", extra={"service": SERVICE_NAME})
    validate_runtime_settings()
    _attach_clients(app)

    container = get_container()
    app.state.container = container
    await container.startup()

    yield

    logger.info("app_shutting_down", extra={"service": SERVICE_NAME})
    await container.shutdown()
    await _close_clients(app)


def create_app() -> FastAPI:
    """Cria e configura a aplicação FastAPI.

    Returns:
        Aplicação FastAPI configurada.
    """
    fastapi_app = FastAPI(
        title="quadro-lotacao-sync",
        description="Sincronização do quadro de lotação com eventos de RH",
        version=SERVICE_VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # Em produção, restringir origins
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    fastapi_app.include_router(create_api_router())

    logger.info("app_configured", extra={"service": SERVICE_NAME})

    return fastapi_app


# Aplicação ASGI exposta para uvicorn
app = create_app()


def main() -> None:
    """Entrypoint para execução direta (desenvolvimento)."""
    import uvicorn

    logger.info("Starting quadro-lotacao-sync in development mode")
    uvicorn.run(
        "app.app:app",
        host="0.0.0.0",
        port=8080,
        reload=True,
    )


if __name__ == "__main__":
    main()
