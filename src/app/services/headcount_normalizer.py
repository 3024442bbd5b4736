"""Normalizador do quadro de lotação.

Aplica eventos de colaborador ao ledger (uma transação por evento),
processa lotes com concorrência limitada e recalcula o efetivo de um
plano de vagas a partir do cadastro de ativos.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from app.domain.audit import AuditActor, AuditEntry
from app.observability import get_correlation_id, record_latency, record_ledger_mutation
from app.services._headcount_transitions import TransitionOutcome, apply_event, validate_event
from app.services.audit_trail import emit_audit, emit_audits

if TYPE_CHECKING:
    from collections.abc import Sequence

    from app.domain.colaborador import ColaboradorEvent
    from app.domain.headcount import HeadcountRecord
    from app.protocols.audit_store import AuditServiceProtocol
    from app.protocols.ledger_store import LedgerStoreProtocol, LedgerTransaction
    from app.protocols.roster import ActiveRosterProtocol

logger = logging.getLogger(__name__)

NORMALIZER_USER_NAME = "Sistema de Normalização"


@dataclass(frozen=True, slots=True)
class NormalizationResult:
    """Resultado de um evento aplicado e confirmado."""

    employee_id: str
    event_type: str
    duration_ms: float
    records: list[dict[str, Any]]
    warnings: list[str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "colaborador_id": self.employee_id,
            "event_type": self.event_type,
            "duration_ms": round(self.duration_ms, 2),
            "quadros": self.records,
            "warnings": self.warnings,
        }


@dataclass(slots=True)
class BatchResult:
    processed: int = 0
    failed: int = 0
    errors: list[dict[str, str]] = field(default_factory=list)

    def add_failure(self, employee_id: str, event_type: str, error: str) -> None:
        self.failed += 1
        self.errors.append(
            {"colaborador_id": employee_id, "event_type": event_type, "error": error}
        )

    def to_dict(self) -> dict[str, Any]:
        return {"processed": self.processed, "failed": self.failed, "errors": self.errors}


@dataclass(frozen=True, slots=True)
class ReconcileResult:
    staffing_plan_id: str
    updated: int
    unchanged: int
    duration_ms: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "plano_vagas_id": self.staffing_plan_id,
            "updated": self.updated,
            "unchanged": self.unchanged,
            "duration_ms": round(self.duration_ms, 2),
        }


class HeadcountNormalizer:
    """Aplica eventos de colaborador ao quadro de lotação.

    Args:
        ledger: Quadro de lotação transacional
        audit: Trilha de auditoria
        roster: Cadastro de colaboradores ativos (recálculo)
        performance_warning_ms: Limite para aviso de lentidão por evento
        batch_concurrency: Eventos simultâneos por bloco no lote
    """

    def __init__(
        self,
        ledger: LedgerStoreProtocol,
        audit: AuditServiceProtocol,
        roster: ActiveRosterProtocol,
        performance_warning_ms: int = 2000,
        batch_concurrency: int = 10,
    ) -> None:
        self._ledger = ledger
        self._audit = audit
        self._roster = roster
        self._performance_warning_ms = performance_warning_ms
        self._batch_concurrency = max(1, batch_concurrency)

    def _actor(self, event: ColaboradorEvent, actor: AuditActor | None) -> AuditActor:
        if actor is not None:
            return actor
        return AuditActor(
            user_name=NORMALIZER_USER_NAME,
            correlation_id=get_correlation_id(),
            reason=f"Processamento automático - {event.event_type.value}: {event.employee_id}",
        )

    async def process_event(
        self,
        event: ColaboradorEvent,
        actor: AuditActor | None = None,
    ) -> NormalizationResult:
        """Aplica um evento em uma única transação do ledger.

        Raises:
            EventValidationError: Evento inválido (não retentável).
            SlotNotFoundError: Sem registro de destino (retentável).
            TransientStoreError: Contenção ou queda do banco (retentável).
        """
        actor = self._actor(event, actor)
        event_type = event.event_type.value
        started = time.perf_counter()

        def work(tx: LedgerTransaction) -> TransitionOutcome:
            return apply_event(tx, event, actor)

        try:
            validate_event(event)
            outcome = await self._ledger.run_in_transaction(work)
        except Exception as exc:
            duration_ms = (time.perf_counter() - started) * 1000
            logger.warning(
                "ledger_event_failed",
                extra={
                    **event.to_log_dict(),
                    "error_type": type(exc).__name__,
                    "duration_ms": round(duration_ms, 2),
                },
            )
            await emit_audit(
                self._audit,
                AuditEntry(
                    entity_id=event.employee_id,
                    entity_type="colaborador",
                    action=f"normalizacao_erro_{event_type}",
                    reason=f"Erro no processamento: {exc}",
                    before={"event": event.to_log_dict()},
                    after={"error": str(exc), "duration_ms": round(duration_ms, 2)},
                ),
                actor,
            )
            raise

        duration_ms = (time.perf_counter() - started) * 1000
        for mutation in outcome.mutations:
            record_ledger_mutation(
                mutation.record_id, mutation.operation, mutation.delta, mutation.after
            )
        await emit_audits(self._audit, outcome.warnings, actor)
        await emit_audit(
            self._audit,
            AuditEntry(
                entity_id=event.employee_id,
                entity_type="colaborador",
                action=f"normalizacao_{event_type}",
                reason=f"Processamento concluído em {round(duration_ms)}ms",
                after={"event": event.to_log_dict(), "duration_ms": round(duration_ms, 2)},
            ),
            actor,
        )
        record_latency("headcount_normalizer", event_type, duration_ms, actor.correlation_id)
        logger.info(
            "ledger_event_applied",
            extra={
                **event.to_log_dict(),
                "mutations": len(outcome.mutations),
                "warnings": len(outcome.warnings),
                "duration_ms": round(duration_ms, 2),
            },
        )

        if duration_ms > self._performance_warning_ms:
            await self._performance_warning(event, actor, duration_ms)

        return NormalizationResult(
            employee_id=event.employee_id,
            event_type=event_type,
            duration_ms=duration_ms,
            records=[record.to_dict() for record in outcome.records],
            warnings=[warning.action for warning in outcome.warnings],
        )

    async def _performance_warning(
        self, event: ColaboradorEvent, actor: AuditActor, duration_ms: float
    ) -> None:
        logger.warning(
            "ledger_event_slow",
            extra={
                **event.to_log_dict(),
                "duration_ms": round(duration_ms, 2),
                "threshold_ms": self._performance_warning_ms,
            },
        )
        await emit_audit(
            self._audit,
            AuditEntry(
                entity_id=event.employee_id,
                entity_type="performance",
                action="normalizacao_performance_warning",
                reason=(
                    f"Processamento excedeu limite de {self._performance_warning_ms}ms: "
                    f"{round(duration_ms)}ms"
                ),
                after={
                    "event": event.to_log_dict(),
                    "duration_ms": round(duration_ms, 2),
                    "threshold_ms": self._performance_warning_ms,
                },
            ),
            actor,
        )

    async def process_batch(
        self,
        events: Sequence[ColaboradorEvent],
        result: BatchResult | None = None,
    ) -> BatchResult:
        """Processa eventos em blocos concorrentes.

        Falhas individuais não interrompem o lote; cada evento continua em
        sua própria transação.
        """
        result = result or BatchResult()
        started = time.perf_counter()

        async def run_one(event: ColaboradorEvent) -> None:
            try:
                await self.process_event(event)
            except Exception as exc:
                result.add_failure(event.employee_id, event.event_type.value, str(exc))
            else:
                result.processed += 1

        for start in range(0, len(events), self._batch_concurrency):
            chunk = events[start : start + self._batch_concurrency]
            await asyncio.gather(*(run_one(event) for event in chunk))

        duration_ms = (time.perf_counter() - started) * 1000
        total = result.processed + result.failed
        logger.info(
            "batch_processing_completed",
            extra={
                "total_events": total,
                "processed": result.processed,
                "failed": result.failed,
                "duration_ms": round(duration_ms, 2),
            },
        )
        await emit_audit(
            self._audit,
            AuditEntry(
                entity_id="batch_processing",
                entity_type="normalizacao_batch",
                action="batch_processing_completed",
                reason=(
                    f"Processamento em lote concluído - {result.processed} sucessos, "
                    f"{result.failed} falhas em {round(duration_ms)}ms"
                ),
                after={
                    "total_events": total,
                    "processed": result.processed,
                    "failed": result.failed,
                    "duration_ms": round(duration_ms, 2),
                    "average_time_per_event_ms": round(duration_ms / total, 2) if total else 0,
                },
            ),
            AuditActor(user_name=NORMALIZER_USER_NAME, correlation_id=get_correlation_id()),
        )
        return result

    async def reconcile_plan(self, staffing_plan_id: str, force: bool = False) -> ReconcileResult:
        """Recalcula vagas efetivas dos registros ativos de um plano.

        Contagens vêm do cadastro de ativos (lidas antes da transação);
        a escrita acontece em uma única transação. Sem `force`, só
        registros com contagem diferente são gravados.
        """
        started = time.perf_counter()
        actor = AuditActor(
            user_name=NORMALIZER_USER_NAME,
            correlation_id=get_correlation_id(),
            reason="Normalização automática",
        )

        records = await self._ledger.find_by_staffing_plan(staffing_plan_id)
        targets: dict[str, int] = {}
        for record in records:
            targets[record.id] = await self._roster.count_active(
                record.job_slot_id, record.job_code_id
            )

        def work(tx: LedgerTransaction) -> tuple[int, int]:
            updated = 0
            unchanged = 0
            for record in tx.find_by_staffing_plan(staffing_plan_id):
                target = targets.get(record.id)
                if target is None or (target == record.actual_count and not force):
                    unchanged += 1
                    continue
                tx.update(
                    _recounted(record, target),
                    actor.with_reason(
                        f"Normalização automática - Efetivo: {record.actual_count} → {target}"
                    ),
                )
                updated += 1
            return updated, unchanged

        updated, unchanged = await self._ledger.run_in_transaction(work)
        duration_ms = (time.perf_counter() - started) * 1000
        result = ReconcileResult(staffing_plan_id, updated, unchanged, duration_ms)

        logger.info("ledger_plan_reconciled", extra=result.to_dict())
        await emit_audit(
            self._audit,
            AuditEntry(
                entity_id=staffing_plan_id,
                entity_type="plano_vagas",
                action="normalizacao_completa",
                reason="Normalização executada" + (" (forçada)" if force else ""),
                after=result.to_dict(),
            ),
            actor,
        )
        return result


def _recounted(record: HeadcountRecord, target: int) -> HeadcountRecord:
    return record.with_actual_count(max(0, target))
