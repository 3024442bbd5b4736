"""Resolvedor de discrepância de cargo em admissões.

Compara o cargo do evento com o cargo esperado pelo posto e aplica a
política da empresa (permitir, alertar, bloquear, exigir_aprovacao).

Fail closed: empresa ausente, política ausente/desconhecida ou qualquer
erro de leitura resultam em `bloquear`. A única exceção que propaga é
EscalationError: se a política exige aprovação e o caso não pôde ser
criado, a admissão falha.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from app.domain.audit import AuditActor, AuditEntry
from app.domain.discrepancy import DiscrepancyAction, DiscrepancyResult
from app.domain.errors import EscalationError
from app.domain.headcount import HeadcountRecord, pick_record
from app.domain.notifications import NotificationIntent
from app.observability import get_correlation_id, record_discrepancy_decision
from app.services.audit_trail import emit_audit

if TYPE_CHECKING:
    from app.domain.colaborador import ColaboradorEvent
    from app.protocols.audit_store import AuditServiceProtocol
    from app.protocols.company_policy import CompanyPolicyProtocol
    from app.protocols.escalation import EscalationGatewayProtocol
    from app.protocols.ledger_store import LedgerStoreProtocol
    from app.services.notification_dispatcher import NotificationDispatcher

logger = logging.getLogger(__name__)

ALERT_TEMPLATE = "cargo_discrepancy_alert"
PROPOSAL_TEMPLATE = "proposal_created"


@dataclass(frozen=True, slots=True)
class _Expectation:
    expected_job_code: str
    reference: HeadcountRecord
    slot_records: list[HeadcountRecord]


class DiscrepancyResolver:
    """Decide se uma admissão com cargo divergente pode seguir.

    Args:
        ledger: Quadro de lotação (leitura sem lock)
        company_policy: Configuração de empresas
        escalation: Workflow de aprovação
        notifications: Fila de notificações (best-effort)
        audit: Trilha de auditoria
        hr_recipient: Destinatário das notificações de RH
    """

    def __init__(
        self,
        ledger: LedgerStoreProtocol,
        company_policy: CompanyPolicyProtocol,
        escalation: EscalationGatewayProtocol,
        notifications: NotificationDispatcher,
        audit: AuditServiceProtocol,
        hr_recipient: str = "rh_team",
    ) -> None:
        self._ledger = ledger
        self._company_policy = company_policy
        self._escalation = escalation
        self._notifications = notifications
        self._audit = audit
        self._hr_recipient = hr_recipient

    async def resolve(
        self,
        event: ColaboradorEvent,
        actor: AuditActor | None = None,
    ) -> DiscrepancyResult:
        """Avalia a admissão.

        Raises:
            EscalationError: Política exige aprovação e o caso não foi criado.
        """
        actor = actor or AuditActor(correlation_id=get_correlation_id())
        try:
            result = await self._evaluate(event, actor)
        except EscalationError:
            raise
        except Exception as exc:
            result = await self._fail_closed(event, actor, exc)

        if result.discrepancy_detected and result.action is not None:
            record_discrepancy_decision(result.action.value, result.allowed)
        return result

    async def _find_expectation(self, event: ColaboradorEvent) -> _Expectation | None:
        matches = await self._ledger.find_by_cost_center_and_job_code(
            event.job_slot_id, event.job_code_id
        )
        if matches:
            record = pick_record(matches)
            if (
                record is not None
                and record.slot_job_code
                and record.slot_job_code != event.job_code_id
            ):
                return _Expectation(record.slot_job_code, record, matches)
            return None

        siblings = await self._ledger.find_by_cost_center(event.job_slot_id)
        sibling = pick_record(siblings)
        if sibling is None or sibling.expected_job_code() == event.job_code_id:
            return None
        return _Expectation(sibling.expected_job_code(), sibling, siblings)

    async def _evaluate(self, event: ColaboradorEvent, actor: AuditActor) -> DiscrepancyResult:
        expectation = await self._find_expectation(event)
        if expectation is None:
            return DiscrepancyResult.no_discrepancy(event.job_code_id)

        expected = expectation.expected_job_code
        company_id = await self._company_policy.get_company_id(
            expectation.reference.staffing_plan_id
        )
        if company_id is None:
            return await self._fail_closed(
                event,
                actor,
                reason=f"Empresa não encontrada para o plano {expectation.reference.staffing_plan_id}",
                expected=expected,
            )

        raw_action = await self._company_policy.get_discrepancy_action(company_id)
        action = DiscrepancyAction.parse(raw_action)
        if action is None:
            return await self._fail_closed(
                event,
                actor,
                reason=f"Política de cargo divergente inválida ou ausente: {raw_action!r}",
                expected=expected,
                company_id=company_id,
            )

        await self._log_discrepancy(event, actor, expected, action)

        base = DiscrepancyResult(
            allowed=True,
            action=action,
            discrepancy_detected=True,
            expected_job_code=expected,
            actual_job_code=event.job_code_id,
            company_id=company_id,
        )
        summary = f"esperado {expected}, recebido {event.job_code_id}"

        if action is DiscrepancyAction.ALLOW:
            return _with(base, message=f"Cargo divergente permitido pela configuração: {summary}")

        if action is DiscrepancyAction.ALERT:
            self._notifications.enqueue(
                NotificationIntent(
                    template_id=ALERT_TEMPLATE,
                    recipient=self._hr_recipient,
                    variables={
                        "colaborador_nome": event.name,
                        "cargo_esperado": expected,
                        "cargo_real": event.job_code_id,
                        "centro_custo": event.cost_center_id,
                        "data_admissao": event.hire_date.isoformat(),
                    },
                )
            )
            return _with(base, message=f"Cargo divergente ({summary}). Alerta enviado ao RH.")

        if action is DiscrepancyAction.BLOCK:
            return _with(
                base,
                allowed=False,
                message=(
                    f"Admissão bloqueada por cargo divergente ({summary}). "
                    "Crie uma proposta de correção antes de reenviar."
                ),
            )

        case_id = await self._create_case(event, expected, expectation)
        return _with(
            base,
            allowed=False,
            case_id=case_id,
            message=f"Cargo divergente ({summary}). Proposta {case_id} criada para aprovação.",
        )

    async def _create_case(
        self,
        event: ColaboradorEvent,
        expected: str,
        expectation: _Expectation,
    ) -> str:
        target = next(
            (r for r in expectation.slot_records if r.slot_job_code == expected),
            expectation.reference,
        )
        detail = (
            f"Colaborador: {event.name} ({event.employee_id})\n"
            f"Cargo esperado: {expected}\n"
            f"Cargo real: {event.job_code_id}\n"
            f"Centro de custo: {event.cost_center_id}\n"
            f"Data de admissão: {event.hire_date.isoformat()}\n"
            "Proposta criada automaticamente por discrepância entre o cargo "
            "previsto na vaga e o cargo da contratação."
        )
        case_id = await self._escalation.create_case(
            f"Aprovação de discrepância de cargo - Admissão de {event.name}",
            detail,
            target.id,
            expected,
            event.job_code_id,
        )
        self._notifications.enqueue(
            NotificationIntent(
                template_id=PROPOSAL_TEMPLATE,
                recipient=self._hr_recipient,
                variables={
                    "proposta_id": case_id,
                    "tipo": "Discrepância de Cargo",
                    "colaborador_nome": event.name,
                    "cargo_esperado": expected,
                    "cargo_real": event.job_code_id,
                },
            )
        )
        return case_id

    async def _log_discrepancy(
        self,
        event: ColaboradorEvent,
        actor: AuditActor,
        expected: str,
        action: DiscrepancyAction,
    ) -> None:
        logger.warning(
            "cargo_discrepancy_detected",
            extra={**event.to_log_dict(), "cargo_esperado": expected, "action": action.value},
        )
        await emit_audit(
            self._audit,
            AuditEntry(
                entity_id=event.employee_id,
                entity_type="colaborador",
                action="cargo_discrepancy_detected",
                reason=f"Discrepância de cargo tratada com ação: {action.value}",
                before={
                    "cargo_esperado": expected,
                    "cargo_real": event.job_code_id,
                    "centro_custo": event.cost_center_id,
                },
                after={"action": action.value, "data_admissao": event.hire_date.isoformat()},
            ),
            actor,
        )

    async def _fail_closed(
        self,
        event: ColaboradorEvent,
        actor: AuditActor,
        error: Exception | None = None,
        reason: str = "",
        expected: str | None = None,
        company_id: str | None = None,
    ) -> DiscrepancyResult:
        cause = reason or f"{type(error).__name__}: {error}"
        logger.warning(
            "cargo_discrepancy_fail_closed",
            extra={
                **event.to_log_dict(),
                "reason": cause,
                "error_type": type(error).__name__ if error else None,
            },
        )
        await emit_audit(
            self._audit,
            AuditEntry(
                entity_id=event.employee_id,
                entity_type="webhook",
                action="cargo_discrepancy_error",
                reason=f"Erro ao tratar discrepância de cargo: {cause}",
                before={"event": event.to_log_dict()},
                after={"error": cause, "action": DiscrepancyAction.BLOCK.value},
            ),
            actor,
        )
        return DiscrepancyResult(
            allowed=False,
            action=DiscrepancyAction.BLOCK,
            discrepancy_detected=True,
            expected_job_code=expected,
            actual_job_code=event.job_code_id,
            company_id=company_id,
            message="Erro ao processar discrepância de cargo. Admissão bloqueada por segurança.",
        )


def _with(result: DiscrepancyResult, **changes: object) -> DiscrepancyResult:
    return replace(result, **changes)
