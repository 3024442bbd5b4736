"""Use case de replay de um pedido de reprocessamento.

Reexecuta o envelope armazenado no evento original pelo mesmo pipeline
do webhook (validação, resolvedor, retry, normalizador), sem checagem de
assinatura: o envelope já foi autenticado na ingestão.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from app.domain.audit import AuditActor, AuditEntry
from app.domain.integration import ReprocessingStatus
from app.observability import get_correlation_id
from app.services.audit_trail import emit_audit

if TYPE_CHECKING:
    from app.domain.integration import ReprocessingRequest
    from app.protocols.audit_store import AuditServiceProtocol
    from app.services.integration_monitor import IntegrationHealthMonitor
    from app.use_cases.colaborador._webhook_helpers import WebhookOutcome
    from app.use_cases.colaborador.process_webhook_event import (
        ProcessColaboradorWebhookUseCase,
    )

logger = logging.getLogger(__name__)

MISSING_PAYLOAD_ERROR = "Evento original sem payload armazenado"


@dataclass(frozen=True, slots=True)
class ReprocessingResult:
    request: ReprocessingRequest
    outcome: WebhookOutcome | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "request": self.request.to_dict(),
            "result": self.outcome.body if self.outcome else None,
        }


class ExecuteReprocessingUseCase:
    """Executa uma tentativa de um ReprocessingRequest pendente."""

    def __init__(
        self,
        *,
        monitor: IntegrationHealthMonitor,
        webhook: ProcessColaboradorWebhookUseCase,
        audit: AuditServiceProtocol,
    ) -> None:
        self._monitor = monitor
        self._webhook = webhook
        self._audit = audit

    async def execute(self, request_id: str, executed_by: str = "system") -> ReprocessingResult:
        """Executa uma tentativa.

        Raises:
            IntegrationNotFoundError: Pedido inexistente.
            ReprocessingNotAllowedError: Pedido não está pendente.
        """
        request = await self._monitor.claim_reprocessing_request(request_id)

        outcome: WebhookOutcome | None = None
        if not isinstance(request.payload, dict) or "data" not in request.payload:
            request.status = ReprocessingStatus.FAILED
            request.last_error = MISSING_PAYLOAD_ERROR
        else:
            outcome = await self._webhook.process_envelope(request.payload, None, replay=True)
            if outcome.acknowledged:
                request.status = ReprocessingStatus.COMPLETED
                request.last_error = None
            else:
                request.last_error = outcome.error_message
                request.status = (
                    ReprocessingStatus.FAILED
                    if request.attempts >= request.max_attempts
                    else ReprocessingStatus.PENDING
                )

        await self._monitor.save_reprocessing_request(request)
        logger.info(
            "reprocessing_executed",
            extra={
                "request_id": request.id,
                "status": request.status.value,
                "attempts": request.attempts,
            },
        )
        await emit_audit(
            self._audit,
            AuditEntry(
                entity_id=request.id,
                entity_type="reprocessing_request",
                action=f"reprocessing_{request.status.value}",
                reason=f"Tentativa {request.attempts} de {request.max_attempts}",
                after=request.to_dict(),
            ),
            AuditActor(
                user_id=executed_by, user_name=executed_by, correlation_id=get_correlation_id()
            ),
        )
        return ReprocessingResult(request, outcome)
