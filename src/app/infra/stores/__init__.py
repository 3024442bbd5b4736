"""Stores — implementações concretas de persistência.

Módulos disponíveis:
    - memory_ledger_store: Quadro de lotação transacional em memória
    - memory_integration_store: Log de integrações em memória
    - memory_stores: Auditoria, dedupe, política e cadastro em memória
    - sql_ledger_store: Quadro de lotação em banco relacional (SQLAlchemy)
    - sql_integration_store: Log de integrações em banco relacional
    - sql_company_policy: Política de empresa e cadastro de ativos (SQL)
    - firestore_audit_store: Trilha de auditoria no Firestore
    - redis_dedupe_store: Detecção de entregas duplicadas no Redis
"""

from __future__ import annotations

from app.infra.stores.firestore_audit_store import FirestoreAuditStore
from app.infra.stores.memory_integration_store import MemoryIntegrationStore
from app.infra.stores.memory_ledger_store import MemoryLedgerStore
from app.infra.stores.memory_stores import (
    MemoryActiveRoster,
    MemoryAuditStore,
    MemoryCompanyPolicyStore,
    MemoryDedupeStore,
)
from app.infra.stores.redis_dedupe_store import RedisDedupeStore
from app.infra.stores.sql_company_policy import SqlActiveRoster, SqlCompanyPolicyStore
from app.infra.stores.sql_integration_store import SqlIntegrationStore
from app.infra.stores.sql_ledger_store import SqlLedgerStore

__all__ = [
    # Firestore
    "FirestoreAuditStore",
    # Memory (dev/test)
    "MemoryActiveRoster",
    "MemoryAuditStore",
    "MemoryCompanyPolicyStore",
    "MemoryDedupeStore",
    "MemoryIntegrationStore",
    "MemoryLedgerStore",
    # Redis
    "RedisDedupeStore",
    # SQL
    "SqlActiveRoster",
    "SqlCompanyPolicyStore",
    "SqlIntegrationStore",
    "SqlLedgerStore",
]
