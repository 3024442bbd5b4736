"""Transições do quadro por tipo de evento.

Módulo interno (prefixo _). Funções síncronas executadas dentro de uma
transação do ledger: qualquer exceção desfaz todas as mutações do evento.
Avisos (déficit, efetivo ausente) voltam como AuditEntry pendentes e só
são emitidos depois do commit.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from app.domain.audit import AuditEntry
from app.domain.colaborador import ColaboradorEvent, ColaboradorEventType
from app.domain.errors import EventValidationError, SlotNotFoundError, UnsupportedEventTypeError
from app.domain.headcount import HeadcountRecord, pick_record

if TYPE_CHECKING:
    from app.domain.audit import AuditActor
    from app.protocols.ledger_store import LedgerTransaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LedgerMutation:
    record_id: str
    operation: str
    delta: int
    before: int
    after: int


@dataclass(slots=True)
class TransitionOutcome:
    """Resultado de uma transição aplicada (ainda não confirmada)."""

    event_type: ColaboradorEventType
    mutations: list[LedgerMutation] = field(default_factory=list)
    records: list[HeadcountRecord] = field(default_factory=list)
    warnings: list[AuditEntry] = field(default_factory=list)


def validate_event(event: ColaboradorEvent) -> None:
    """Regras mínimas por tipo, independentes do envelope do webhook.

    Raises:
        EventValidationError: Com todas as violações.
    """
    errors: list[str] = []
    required = (
        ("colaborador_id", event.employee_id),
        ("nome", event.name),
        ("cpf", event.national_id),
        ("cargo_id", event.job_code_id),
        ("centro_custo_id", event.cost_center_id),
    )
    errors.extend(f"{name} é obrigatório" for name, value in required if not value)
    if event.event_type is ColaboradorEventType.TRANSFER and not event.previous_cost_center_id:
        errors.append("centro_custo_anterior é obrigatório para transferência")
    if event.event_type is ColaboradorEventType.PROMOTION and not event.previous_job_code_id:
        errors.append("cargo_anterior é obrigatório para promoção")
    if errors:
        raise EventValidationError(errors)


def _sibling_codes(tx: LedgerTransaction, job_slot_id: str) -> list[str]:
    return sorted({record.job_code_id for record in tx.find_by_cost_center(job_slot_id)})


def _increment(
    tx: LedgerTransaction,
    outcome: TransitionOutcome,
    actor: AuditActor,
    job_slot_id: str,
    job_code_id: str,
    operation: str,
    context: str = "",
) -> HeadcountRecord:
    record = pick_record(tx.find_by_cost_center_and_job_code(job_slot_id, job_code_id))
    if record is None:
        raise SlotNotFoundError(
            job_slot_id, job_code_id, _sibling_codes(tx, job_slot_id), context=context
        )
    if not record.active:
        logger.warning(
            "ledger_admission_inactive_record",
            extra={"record_id": record.id, "operation": operation},
        )
    updated = tx.update(
        record.with_actual_delta(1),
        actor.with_reason(
            f"{operation} - Efetivo: {record.actual_count} → {record.actual_count + 1}"
        ),
    )
    outcome.mutations.append(
        LedgerMutation(record.id, operation, 1, record.actual_count, updated.actual_count)
    )
    outcome.records.append(updated)
    return record


def _decrement_first_available(
    tx: LedgerTransaction,
    outcome: TransitionOutcome,
    actor: AuditActor,
    job_slot_id: str,
    job_code_id: str,
    operation: str,
) -> tuple[bool, list[HeadcountRecord]]:
    """Decrementa o primeiro registro com efetivo > 0.

    Returns:
        (removido, registros encontrados)
    """
    candidates = tx.find_by_cost_center_and_job_code(job_slot_id, job_code_id)
    for record in candidates:
        if record.actual_count > 0:
            updated = tx.update(
                record.with_actual_delta(-1),
                actor.with_reason(
                    f"{operation} - Efetivo: {record.actual_count} → {record.actual_count - 1}"
                ),
            )
            outcome.mutations.append(
                LedgerMutation(record.id, operation, -1, record.actual_count, updated.actual_count)
            )
            outcome.records.append(updated)
            return True, candidates
    return False, candidates


def _drift_warning(
    event: ColaboradorEvent,
    action: str,
    reason: str,
    job_slot_id: str,
    job_code_id: str,
    candidates: list[HeadcountRecord],
) -> AuditEntry:
    logger.warning(
        "ledger_drift_detected",
        extra={
            **event.to_log_dict(),
            "action": action,
            "posto_trabalho_id": job_slot_id,
            "cargo_procurado": job_code_id,
            "records_found": len(candidates),
        },
    )
    return AuditEntry(
        entity_id=event.employee_id,
        entity_type="colaborador",
        action=action,
        reason=reason,
        after={
            "event": event.to_log_dict(),
            "quadros": [{"id": r.id, "vagas_efetivas": r.actual_count} for r in candidates],
        },
    )


def apply_admission(
    tx: LedgerTransaction, event: ColaboradorEvent, actor: AuditActor
) -> TransitionOutcome:
    outcome = TransitionOutcome(ColaboradorEventType.ADMISSION)
    record = _increment(
        tx, outcome, actor, event.job_slot_id, event.job_code_id, "Admissão"
    )
    if not record.has_capacity():
        logger.warning(
            "ledger_admission_without_capacity",
            extra={**event.to_log_dict(), "record_id": record.id},
        )
        outcome.warnings.append(
            AuditEntry(
                entity_id=record.id,
                entity_type="quadro_lotacao",
                action="admissao_sem_vagas",
                reason=f"Admissão realizada sem vagas disponíveis - Colaborador: {event.employee_id}",
                before={
                    "vagas_previstas": record.planned_count,
                    "vagas_efetivas": record.actual_count,
                    "vagas_reservadas": record.reserved_count,
                },
                after={"event": event.to_log_dict()},
            )
        )
    return outcome


def apply_transfer(
    tx: LedgerTransaction, event: ColaboradorEvent, actor: AuditActor
) -> TransitionOutcome:
    outcome = TransitionOutcome(ColaboradorEventType.TRANSFER)
    source_slot = event.previous_cost_center_id or ""
    source_code = event.previous_job_code_id or event.job_code_id

    removed, candidates = _decrement_first_available(
        tx, outcome, actor, source_slot, source_code, "Saída por transferência"
    )
    if not removed:
        outcome.warnings.append(
            _drift_warning(
                event,
                "transferencia_sem_efetivo",
                "Transferência processada sem colaborador efetivo no quadro de origem",
                source_slot,
                source_code,
                candidates,
            )
        )

    _increment(
        tx,
        outcome,
        actor,
        event.job_slot_id,
        event.job_code_id,
        "Entrada por transferência",
        context="Destino da transferência",
    )
    return outcome


def apply_termination(
    tx: LedgerTransaction, event: ColaboradorEvent, actor: AuditActor
) -> TransitionOutcome:
    outcome = TransitionOutcome(ColaboradorEventType.TERMINATION)
    removed, candidates = _decrement_first_available(
        tx, outcome, actor, event.job_slot_id, event.job_code_id, "Desligamento"
    )
    if not removed:
        outcome.warnings.append(
            _drift_warning(
                event,
                "desligamento_sem_efetivo",
                "Desligamento processado mas nenhum colaborador efetivo encontrado no quadro",
                event.job_slot_id,
                event.job_code_id,
                candidates,
            )
        )
    return outcome


def apply_promotion(
    tx: LedgerTransaction, event: ColaboradorEvent, actor: AuditActor
) -> TransitionOutcome:
    outcome = TransitionOutcome(ColaboradorEventType.PROMOTION)
    previous_code = event.previous_job_code_id or ""

    removed, candidates = _decrement_first_available(
        tx, outcome, actor, event.job_slot_id, previous_code, "Saída por promoção"
    )
    if not removed:
        outcome.warnings.append(
            _drift_warning(
                event,
                "promocao_sem_efetivo",
                "Promoção processada sem colaborador efetivo no cargo anterior",
                event.job_slot_id,
                previous_code,
                candidates,
            )
        )

    _increment(
        tx,
        outcome,
        actor,
        event.job_slot_id,
        event.job_code_id,
        "Entrada por promoção",
        context="Novo cargo da promoção",
    )
    return outcome


Transition = Callable[["LedgerTransaction", ColaboradorEvent, "AuditActor"], TransitionOutcome]

TRANSITIONS: dict[ColaboradorEventType, Transition] = {
    ColaboradorEventType.ADMISSION: apply_admission,
    ColaboradorEventType.TRANSFER: apply_transfer,
    ColaboradorEventType.TERMINATION: apply_termination,
    ColaboradorEventType.PROMOTION: apply_promotion,
}


def apply_event(
    tx: LedgerTransaction, event: ColaboradorEvent, actor: AuditActor
) -> TransitionOutcome:
    """Aplica a transição do tipo do evento.

    Raises:
        UnsupportedEventTypeError: Tipo sem transição.
        SlotNotFoundError: Destino sem registro no quadro.
    """
    transition = TRANSITIONS.get(event.event_type)
    if transition is None:
        raise UnsupportedEventTypeError(str(event.event_type))
    return transition(tx, event, actor)
