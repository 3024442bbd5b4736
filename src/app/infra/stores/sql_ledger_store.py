"""Ledger relacional (SQLAlchemy) com locks de linha.

Cada `run_in_transaction` abre uma sessão, inicia a transação e executa
o trabalho síncrono em thread separada (asyncio.to_thread), já que o
driver é bloqueante. Leituras dentro da transação usam
SELECT ... FOR UPDATE (no SQLite, BEGIN IMMEDIATE): admissões concorrentes
no mesmo posto são serializadas pelo banco, não pela aplicação.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC
from typing import TYPE_CHECKING, TypeVar

from sqlalchemy import select, text
from sqlalchemy.exc import DBAPIError, OperationalError

from app.domain.headcount import ControlMode, HeadcountRecord
from app.infra.stores.sql_models import HeadcountRow
from app.protocols.ledger_store import LedgerStoreProtocol, LedgerTransaction
from utils.errors import DatabaseUnavailableError, TransientStoreError

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.orm import Session, sessionmaker
    from sqlalchemy.sql import Select

    from app.domain.audit import AuditActor

T = TypeVar("T")

logger = logging.getLogger(__name__)


def row_to_record(row: HeadcountRow) -> HeadcountRecord:
    """Converte linha ORM em HeadcountRecord imutável."""
    updated_at = row.updated_at
    if updated_at is not None and updated_at.tzinfo is None:
        updated_at = updated_at.replace(tzinfo=UTC)
    return HeadcountRecord(
        id=row.id,
        staffing_plan_id=row.plano_vagas_id,
        job_slot_id=row.posto_trabalho_id,
        job_code_id=row.cargo_id,
        planned_count=row.vagas_previstas or 0,
        actual_count=row.vagas_efetivas or 0,
        reserved_count=row.vagas_reservadas or 0,
        control_start_date=row.data_inicio_controle,
        control_mode=ControlMode(row.tipo_controle or ControlMode.DAILY.value),
        active=bool(row.ativo),
        slot_job_code=row.cargo_vaga,
        updated_at=updated_at,
    )


class _SqlLedgerTransaction(LedgerTransaction):
    def __init__(self, session: Session, locking: bool = True) -> None:
        self._session = session
        self._locking = locking

    def _locked(self, stmt: Select) -> list[HeadcountRecord]:
        stmt = stmt.order_by(HeadcountRow.id)
        if self._locking:
            stmt = stmt.with_for_update()
        return [row_to_record(row) for row in self._session.execute(stmt).scalars()]

    def find_by_cost_center_and_job_code(
        self, job_slot_id: str, job_code_id: str
    ) -> list[HeadcountRecord]:
        return self._locked(
            select(HeadcountRow).where(
                HeadcountRow.posto_trabalho_id == job_slot_id,
                HeadcountRow.cargo_id == job_code_id,
            )
        )

    def find_by_cost_center(self, job_slot_id: str) -> list[HeadcountRecord]:
        stmt = (
            select(HeadcountRow)
            .where(HeadcountRow.posto_trabalho_id == job_slot_id)
            .order_by(HeadcountRow.id)
        )
        return [row_to_record(row) for row in self._session.execute(stmt).scalars()]

    def find_by_staffing_plan(self, staffing_plan_id: str) -> list[HeadcountRecord]:
        return self._locked(
            select(HeadcountRow).where(
                HeadcountRow.plano_vagas_id == staffing_plan_id,
                HeadcountRow.ativo.is_(True),
            )
        )

    def update(self, record: HeadcountRecord, audit_context: AuditActor) -> HeadcountRecord:
        if record.actual_count < 0 or record.planned_count < 0:
            msg = f"contagens negativas no registro {record.id}"
            raise ValueError(msg)
        row = self._session.get(HeadcountRow, record.id, with_for_update=True)
        if row is None:
            msg = f"registro inexistente: {record.id}"
            raise KeyError(msg)
        row.vagas_previstas = record.planned_count
        row.vagas_efetivas = record.actual_count
        row.vagas_reservadas = record.reserved_count
        row.ativo = record.active
        row.updated_by = audit_context.user_id
        self._session.flush()
        return row_to_record(row)


class SqlLedgerStore(LedgerStoreProtocol):
    """Quadro de lotação em banco relacional.

    Args:
        session_factory: sessionmaker ligado ao engine do serviço
        lock_timeout_ms: Timeout de lock de linha (apenas PostgreSQL)
    """

    def __init__(self, session_factory: sessionmaker, lock_timeout_ms: int = 5000) -> None:
        self._session_factory = session_factory
        self._lock_timeout_ms = lock_timeout_ms

    def _lock_transaction(self, session: Session) -> None:
        dialect = session.get_bind().dialect.name
        if dialect == "postgresql":
            session.execute(text(f"SET LOCAL lock_timeout = {int(self._lock_timeout_ms)}"))
        elif dialect == "sqlite":
            # SQLite ignora FOR UPDATE: o lock de escrita é tomado antes da primeira leitura
            session.execute(text("BEGIN IMMEDIATE"))

    def _run_sync(self, work: Callable[[LedgerTransaction], T]) -> T:
        session = self._session_factory()
        try:
            with session.begin():
                self._lock_transaction(session)
                return work(_SqlLedgerTransaction(session))
        except OperationalError as exc:
            logger.warning("ledger_transaction_transient_error", extra={"error_type": type(exc).__name__})
            raise TransientStoreError("Contenção ou queda de conexão no ledger") from exc
        except DBAPIError as exc:
            if exc.connection_invalidated:
                raise DatabaseUnavailableError("Conexão com o ledger invalidada") from exc
            raise
        finally:
            session.close()

    def _read_sync(
        self, reader: Callable[[LedgerTransaction], list[HeadcountRecord]]
    ) -> list[HeadcountRecord]:
        session = self._session_factory()
        try:
            return reader(_SqlLedgerTransaction(session, locking=False))
        except OperationalError as exc:
            raise DatabaseUnavailableError("Falha de leitura no ledger") from exc
        finally:
            session.close()

    async def run_in_transaction(self, work: Callable[[LedgerTransaction], T]) -> T:
        return await asyncio.to_thread(self._run_sync, work)

    async def find_by_cost_center_and_job_code(
        self, job_slot_id: str, job_code_id: str
    ) -> list[HeadcountRecord]:
        return await asyncio.to_thread(
            self._read_sync,
            lambda tx: tx.find_by_cost_center_and_job_code(job_slot_id, job_code_id),
        )

    async def find_by_cost_center(self, job_slot_id: str) -> list[HeadcountRecord]:
        return await asyncio.to_thread(
            self._read_sync, lambda tx: tx.find_by_cost_center(job_slot_id)
        )

    async def find_by_staffing_plan(self, staffing_plan_id: str) -> list[HeadcountRecord]:
        return await asyncio.to_thread(
            self._read_sync, lambda tx: tx.find_by_staffing_plan(staffing_plan_id)
        )
