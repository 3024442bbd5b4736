"""Settings de backends de persistência.

Cada store pode rodar em memória (dev/test) ou no backend real:
- Ledger e log de integração: SQLAlchemy (DATABASE_URL)
- Auditoria: Firestore
- Política da empresa: SQLAlchemy
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from config.settings.base.core import BaseSettings

RelationalBackend = Literal["memory", "sql"]
AuditBackend = Literal["memory", "firestore"]


@dataclass(frozen=True)
class StoreSettings:
    """Seleção de backends por store.

    Attributes:
        ledger_backend: Backend do quadro de lotação
        integration_backend: Backend do log de integração/monitoramento
        audit_backend: Backend da trilha de auditoria
        company_policy_backend: Backend das configurações de empresa
        sql_pool_size: Tamanho do pool SQLAlchemy
        sql_lock_timeout_ms: Timeout de lock de linha (SELECT ... FOR UPDATE)
    """

    ledger_backend: RelationalBackend = "memory"
    integration_backend: RelationalBackend = "memory"
    audit_backend: AuditBackend = "memory"
    company_policy_backend: RelationalBackend = "memory"
    sql_pool_size: int = 5
    sql_lock_timeout_ms: int = 5000

    def uses_sql(self) -> bool:
        return "sql" in (
            self.ledger_backend,
            self.integration_backend,
            self.company_policy_backend,
        )

    def validate(self, base: BaseSettings) -> list[str]:
        """Valida combinação de backends para o ambiente.

        Args:
            base: BaseSettings para verificar ambiente e URLs.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []
        relational = {
            "LEDGER_STORE_BACKEND": self.ledger_backend,
            "INTEGRATION_STORE_BACKEND": self.integration_backend,
            "COMPANY_POLICY_BACKEND": self.company_policy_backend,
        }
        for env_name, backend in relational.items():
            if backend not in ("memory", "sql"):
                errors.append(f"{env_name} inválido: {backend}")
            elif backend == "memory" and not base.is_development:
                errors.append(f"{env_name}=memory proibido em staging/production")

        if self.audit_backend not in ("memory", "firestore"):
            errors.append(f"AUDIT_STORE_BACKEND inválido: {self.audit_backend}")
        elif self.audit_backend == "memory" and not base.is_development:
            errors.append("AUDIT_STORE_BACKEND=memory proibido em staging/production")

        if self.uses_sql() and not base.database_url:
            errors.append("Backends sql requerem DATABASE_URL configurado")

        if self.sql_pool_size <= 0:
            errors.append("SQL_POOL_SIZE deve ser > 0")

        return errors


def _backend(env_name: str, default: str = "memory") -> str:
    """Lê backend da env; valores inválidos são reportados por validate()."""
    return os.getenv(env_name, default).strip().lower() or default


def _load_store_from_env() -> StoreSettings:
    """Carrega StoreSettings de variáveis de ambiente."""
    return StoreSettings(
        ledger_backend=_backend("LEDGER_STORE_BACKEND"),  # type: ignore[arg-type]
        integration_backend=_backend("INTEGRATION_STORE_BACKEND"),  # type: ignore[arg-type]
        audit_backend=_backend("AUDIT_STORE_BACKEND"),  # type: ignore[arg-type]
        company_policy_backend=_backend("COMPANY_POLICY_BACKEND"),  # type: ignore[arg-type]
        sql_pool_size=int(os.getenv("SQL_POOL_SIZE", "5")),
        sql_lock_timeout_ms=int(os.getenv("SQL_LOCK_TIMEOUT_MS", "5000")),
    )


@lru_cache(maxsize=1)
def get_store_settings() -> StoreSettings:
    """Retorna instância cacheada de StoreSettings."""
    return _load_store_from_env()
