"""Stores em memória — apenas para desenvolvimento e testes.

ATENÇÃO: Não usar em staging/production. Sem persistência entre reinícios.
"""

from __future__ import annotations

import time
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from app.domain.errors import PolicyResolutionError
from app.protocols.audit_store import AuditServiceProtocol
from app.protocols.company_policy import CompanyPolicyProtocol
from app.protocols.dedupe import AsyncDedupeProtocol

if TYPE_CHECKING:
    from app.domain.audit import AuditActor


class MemoryDedupeStore(AsyncDedupeProtocol):
    """Store de dedupe em memória — apenas para dev/test."""

    def __init__(self) -> None:
        self._store: dict[str, float] = {}  # key -> expires_at

    def _cleanup_expired(self) -> None:
        """Remove entradas expiradas."""
        now = time.time()
        expired = [k for k, v in self._store.items() if v < now]
        for k in expired:
            del self._store[k]

    async def check_and_mark(self, key: str, ttl: int) -> bool:
        self._cleanup_expired()
        if key in self._store:
            return True
        self._store[key] = time.time() + ttl
        return False

    async def release(self, key: str) -> None:
        self._store.pop(key, None)


class MemoryAuditStore(AuditServiceProtocol):
    """Trilha de auditoria em memória — apenas para dev/test."""

    def __init__(self, max_records: int = 10000) -> None:
        self._records: list[dict[str, Any]] = []
        self._max_records = max_records

    async def log_action(
        self,
        entity_id: str,
        entity_type: str,
        action: str,
        actor: AuditActor,
        before: dict[str, Any] | None = None,
        after: dict[str, Any] | None = None,
    ) -> None:
        self._records.append(
            {
                "entity_id": entity_id,
                "entity_type": entity_type,
                "action": action,
                "actor": actor.to_dict(),
                "before": before,
                "after": after,
                "timestamp": datetime.now(UTC).isoformat(),
            }
        )
        # Limita tamanho para evitar memory leak em dev
        if len(self._records) > self._max_records:
            self._records = self._records[-self._max_records:]

    def get_records(self, action: str | None = None) -> list[dict[str, Any]]:
        """Retorna registros, opcionalmente filtrados por ação (testes)."""
        if action is None:
            return list(self._records)
        return [record for record in self._records if record["action"] == action]

    def actions(self) -> list[str]:
        return [record["action"] for record in self._records]


class MemoryCompanyPolicyStore(CompanyPolicyProtocol):
    """Configuração de empresas em memória.

    Args:
        plan_companies: plano de vagas -> empresa
        company_actions: empresa -> acao_cargo_discrepante
    """

    def __init__(
        self,
        plan_companies: dict[str, str] | None = None,
        company_actions: dict[str, str] | None = None,
    ) -> None:
        self._plan_companies = dict(plan_companies or {})
        self._company_actions = dict(company_actions or {})
        self.fail_with: Exception | None = None

    def set_action(self, company_id: str, action: str) -> None:
        self._company_actions[company_id] = action

    def link_plan(self, staffing_plan_id: str, company_id: str) -> None:
        self._plan_companies[staffing_plan_id] = company_id

    def _check_failure(self) -> None:
        if self.fail_with is not None:
            raise PolicyResolutionError(str(self.fail_with)) from self.fail_with

    async def get_company_id(self, staffing_plan_id: str) -> str | None:
        self._check_failure()
        return self._plan_companies.get(staffing_plan_id)

    async def get_discrepancy_action(self, company_id: str) -> str | None:
        self._check_failure()
        return self._company_actions.get(company_id)


class MemoryActiveRoster:
    """Contagem de colaboradores ativos em memória (posto, cargo) -> total."""

    def __init__(self, counts: dict[tuple[str, str], int] | None = None) -> None:
        self._counts = dict(counts or {})

    def set_count(self, job_slot_id: str, job_code_id: str, count: int) -> None:
        self._counts[(job_slot_id, job_code_id)] = count

    async def count_active(self, job_slot_id: str, job_code_id: str) -> int:
        return self._counts.get((job_slot_id, job_code_id), 0)
