"""Ledger em memória com semântica transacional — apenas dev/test.

Cada transação trabalha sobre uma cópia do mapa de registros; o commit
substitui o mapa, qualquer exceção descarta a cópia (rollback total).
Transações são serializadas por um lock único: não há locks de linha.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, TypeVar

from app.protocols.ledger_store import LedgerStoreProtocol, LedgerTransaction

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from app.domain.audit import AuditActor
    from app.domain.headcount import HeadcountRecord

T = TypeVar("T")

logger = logging.getLogger(__name__)


class _MemoryLedgerTransaction(LedgerTransaction):
    def __init__(self, records: dict[str, HeadcountRecord]) -> None:
        self.working = dict(records)
        self.updates: list[str] = []

    def _select(self, predicate: Callable[[HeadcountRecord], bool]) -> list[HeadcountRecord]:
        return [record for record in self.working.values() if predicate(record)]

    def find_by_cost_center_and_job_code(
        self, job_slot_id: str, job_code_id: str
    ) -> list[HeadcountRecord]:
        return self._select(
            lambda r: r.job_slot_id == job_slot_id and r.job_code_id == job_code_id
        )

    def find_by_cost_center(self, job_slot_id: str) -> list[HeadcountRecord]:
        return self._select(lambda r: r.job_slot_id == job_slot_id)

    def find_by_staffing_plan(self, staffing_plan_id: str) -> list[HeadcountRecord]:
        return self._select(lambda r: r.staffing_plan_id == staffing_plan_id and r.active)

    def update(self, record: HeadcountRecord, audit_context: AuditActor) -> HeadcountRecord:
        if record.actual_count < 0 or record.planned_count < 0:
            msg = f"contagens negativas no registro {record.id}"
            raise ValueError(msg)
        if record.id not in self.working:
            msg = f"registro inexistente: {record.id}"
            raise KeyError(msg)
        self.working[record.id] = record
        self.updates.append(record.id)
        return record


class MemoryLedgerStore(LedgerStoreProtocol):
    """Quadro de lotação em memória.

    Args:
        records: Registros iniciais.
    """

    def __init__(self, records: Iterable[HeadcountRecord] = ()) -> None:
        self._records: dict[str, HeadcountRecord] = {r.id: r for r in records}
        self._lock = threading.Lock()
        self.commits = 0
        self.rollbacks = 0

    def add(self, record: HeadcountRecord) -> None:
        self._records[record.id] = record

    def get(self, record_id: str) -> HeadcountRecord | None:
        return self._records.get(record_id)

    def all(self) -> list[HeadcountRecord]:
        return list(self._records.values())

    async def run_in_transaction(self, work: Callable[[LedgerTransaction], T]) -> T:
        with self._lock:
            tx = _MemoryLedgerTransaction(self._records)
            try:
                result = work(tx)
            except Exception:
                self.rollbacks += 1
                logger.debug("memory_ledger_rollback", extra={"pending_updates": len(tx.updates)})
                raise
            self._records = tx.working
            self.commits += 1
            return result

    async def find_by_cost_center_and_job_code(
        self, job_slot_id: str, job_code_id: str
    ) -> list[HeadcountRecord]:
        return _MemoryLedgerTransaction(self._records).find_by_cost_center_and_job_code(
            job_slot_id, job_code_id
        )

    async def find_by_cost_center(self, job_slot_id: str) -> list[HeadcountRecord]:
        return _MemoryLedgerTransaction(self._records).find_by_cost_center(job_slot_id)

    async def find_by_staffing_plan(self, staffing_plan_id: str) -> list[HeadcountRecord]:
        return _MemoryLedgerTransaction(self._records).find_by_staffing_plan(staffing_plan_id)
