"""Exceções de infraestrutura para falhas recuperáveis de armazenamento."""

from __future__ import annotations


class InfrastructureError(RuntimeError):
    """Base para falhas de infraestrutura transitórias."""


class TransientStoreError(InfrastructureError):
    """Contenção de lock ou queda de conexão no ledger (retentável)."""


class DatabaseUnavailableError(TransientStoreError):
    """Falha de conexão/timeout ao acessar o banco relacional."""


class RedisConnectionError(InfrastructureError):
    """Falha de conexão/timeout ao acessar Redis."""
