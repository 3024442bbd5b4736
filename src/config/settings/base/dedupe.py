"""Settings de detecção de entregas duplicadas de webhook.

O sistema de RH legado entrega eventos "at-least-once". A chave de
idempotência correta é decisão de negócio ainda em aberto, então o
padrão é não deduplicar (`off`).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from config.settings.base.core import BaseSettings

DedupeBackend = Literal["memory", "redis"]
DedupeMode = Literal["off", "detect", "enforce"]


@dataclass(frozen=True)
class DedupeSettings:
    """Configurações de dedupe.

    Attributes:
        mode: off (sem checagem), detect (registra e processa), enforce (descarta)
        backend: Backend para dedupe (memory|redis)
        ttl_seconds: TTL para entradas de dedupe
    """

    mode: DedupeMode = "off"
    backend: DedupeBackend = "memory"
    ttl_seconds: int = 86400  # 24h

    @property
    def enabled(self) -> bool:
        return self.mode != "off"

    def validate(self, base: BaseSettings) -> list[str]:
        """Valida configurações de dedupe.

        Args:
            base: BaseSettings para verificar ambiente.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []

        if self.mode not in ("off", "detect", "enforce"):
            errors.append(f"DEDUPE_MODE inválido: {self.mode}")

        if self.backend not in ("memory", "redis"):
            errors.append(f"DEDUPE_BACKEND inválido: {self.backend}")

        if not self.enabled:
            return errors

        if self.backend == "memory" and not base.is_development:
            errors.append(
                "DEDUPE_BACKEND=memory proibido em staging/production. Use Redis."
            )

        if self.backend == "redis" and not base.redis_url:
            errors.append("DEDUPE_BACKEND=redis requer REDIS_URL configurado")

        if self.ttl_seconds <= 0:
            errors.append("DEDUPE_TTL_SECONDS deve ser > 0")

        return errors


def _load_dedupe_from_env() -> DedupeSettings:
    """Carrega DedupeSettings de variáveis de ambiente."""
    mode_str = os.getenv("DEDUPE_MODE", "off").lower()
    mode: DedupeMode = mode_str if mode_str in ("off", "detect", "enforce") else "off"
    backend_str = os.getenv("DEDUPE_BACKEND", "memory").lower()
    backend: DedupeBackend = backend_str if backend_str in ("memory", "redis") else "memory"
    return DedupeSettings(
        mode=mode,
        backend=backend,
        ttl_seconds=int(os.getenv("DEDUPE_TTL_SECONDS", "86400")),
    )


@lru_cache(maxsize=1)
def get_dedupe_settings() -> DedupeSettings:
    """Retorna instância cacheada de DedupeSettings."""
    return _load_dedupe_from_env()
