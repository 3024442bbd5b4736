"""Exceções utilitárias compartilhadas."""

from .exceptions import (
    DatabaseUnavailableError,
    InfrastructureError,
    RedisConnectionError,
    TransientStoreError,
)

__all__ = [
    "DatabaseUnavailableError",
    "InfrastructureError",
    "RedisConnectionError",
    "TransientStoreError",
]
