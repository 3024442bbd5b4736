"""Protocolo de detecção de entregas duplicadas de webhook."""

from __future__ import annotations

from abc import ABC, abstractmethod


class AsyncDedupeProtocol(ABC):
    """Contrato assíncrono para stores de deduplicação.

    Keys devem ser opacas (hash), nunca CPF ou nome.
    """

    @abstractmethod
    async def check_and_mark(self, key: str, ttl: int) -> bool:
        """Marca a chave atomicamente.

        Returns:
            True se já havia sido vista (duplicado); False se marcada agora.
        """

    @abstractmethod
    async def release(self, key: str) -> None:
        """Remove a marca (evento falhou e pode ser reentregue)."""
