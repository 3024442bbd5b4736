"""Factories de clientes externos: Redis, Firestore, SQLAlchemy e HTTP."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import TYPE_CHECKING

from config.settings import (
    get_base_settings,
    get_firestore_settings,
    get_integration_client_settings,
    get_store_settings,
)

if TYPE_CHECKING:
    from google.cloud.firestore import Client as FirestoreClient
    from redis.asyncio import Redis as AsyncRedis
    from sqlalchemy.engine import Engine
    from sqlalchemy.orm import sessionmaker

    from api.connectors.http_base import HttpClient

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────────────────────────────────────
# Redis Client Factory
# ──────────────────────────────────────────────────────────────────────────────


@lru_cache(maxsize=1)
def create_async_redis_client() -> AsyncRedis:
    """Cria cliente Redis assíncrono (singleton).

    Returns:
        Cliente Redis assíncrono

    Raises:
        ValueError: Se REDIS_URL não configurado
    """
    from redis.asyncio import Redis as AsyncRedis

    redis_url = get_base_settings().redis_url
    if not redis_url:
        msg = "REDIS_URL não configurado"
        raise ValueError(msg)

    client: AsyncRedis = AsyncRedis.from_url(
        redis_url,
        decode_responses=False,
        socket_timeout=5.0,
        socket_connect_timeout=5.0,
    )

    logger.info("async_redis_client_created")
    return client


# ──────────────────────────────────────────────────────────────────────────────
# Firestore Client Factory
# ──────────────────────────────────────────────────────────────────────────────


@lru_cache(maxsize=1)
def create_firestore_client() -> FirestoreClient:
    """Cria cliente Firestore (singleton)."""
    from google.cloud import firestore

    project_id = get_firestore_settings().project_id or get_base_settings().gcp_project
    client = firestore.Client(project=project_id or None)
    logger.info("firestore_client_created", extra={"project": project_id})
    return client


# ──────────────────────────────────────────────────────────────────────────────
# SQLAlchemy Engine / Session Factory
# ──────────────────────────────────────────────────────────────────────────────


@lru_cache(maxsize=1)
def create_sql_engine() -> Engine:
    """Cria engine SQLAlchemy do banco do quadro de lotação (singleton).

    SQLite (testes/dev) não aceita pool_size, então o parâmetro só é
    repassado para os demais dialetos.

    Raises:
        ValueError: Se DATABASE_URL não configurado
    """
    from sqlalchemy import create_engine

    database_url = get_base_settings().database_url
    if not database_url:
        msg = "DATABASE_URL não configurado"
        raise ValueError(msg)

    options: dict[str, object] = {"pool_pre_ping": True}
    if not database_url.startswith("sqlite"):
        options["pool_size"] = get_store_settings().sql_pool_size

    engine = create_engine(database_url, **options)
    logger.info("sql_engine_created", extra={"dialect": engine.dialect.name})
    return engine


@lru_cache(maxsize=1)
def create_session_factory() -> sessionmaker:
    """Cria sessionmaker ligado à engine compartilhada."""
    from sqlalchemy.orm import sessionmaker

    return sessionmaker(bind=create_sql_engine(), expire_on_commit=False)


# ──────────────────────────────────────────────────────────────────────────────
# HTTP Client Factory
# ──────────────────────────────────────────────────────────────────────────────


@lru_cache(maxsize=1)
def create_http_client() -> HttpClient:
    """Cria cliente HTTP compartilhado pelos conectores de saída."""
    from api.connectors.http_base import HttpClient, HttpClientConfig

    settings = get_integration_client_settings()
    return HttpClient(
        HttpClientConfig(
            timeout_seconds=settings.http_timeout_seconds,
            max_retries=settings.http_max_retries,
        )
    )
