"""Use case do webhook de colaborador (gateway de ingestão).

Fluxo por chamada:
1. Assinatura HMAC do corpo bruto (falha -> 401, registrada no monitor)
2. Validação do envelope por tipo (falha -> 400 com todas as violações)
3. Evento "received" no monitor antes de qualquer regra de negócio
4. Resolvedor de discrepância (apenas admissão)
5. Coordenador de retry envolvendo o normalizador
6. Evento "processed" no monitor e auditoria em qualquer desfecho
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

from api.connectors.rh_legado import (
    InvalidJsonError,
    InvalidSignatureError,
    parse_webhook_request,
)
from api.normalizers.colaborador import normalize_webhook_payload
from api.validators.colaborador import validate_webhook_payload
from app.domain.audit import AuditActor, AuditEntry
from app.domain.colaborador import ColaboradorEventType
from app.domain.integration import IntegrationEventStatus, IntegrationEventType
from app.observability import get_correlation_id, record_latency
from app.services.audit_trail import emit_audit
from app.services.retry_policy import RetryExhaustedError
from app.use_cases.colaborador._webhook_helpers import (
    SUCCESS_MESSAGES,
    WebhookOutcome,
    acknowledged,
    build_dedupe_key,
    discrepancy_conflict,
    employee_id_of,
    internal_error,
    invalid_payload,
    unauthorized,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from app.domain.colaborador import ColaboradorEvent
    from app.protocols.audit_store import AuditServiceProtocol
    from app.protocols.dedupe import AsyncDedupeProtocol
    from app.services.discrepancy_resolver import DiscrepancyResolver
    from app.services.headcount_normalizer import HeadcountNormalizer
    from app.services.integration_monitor import IntegrationHealthMonitor
    from app.services.retry_coordinator import RetryCoordinator
    from config.settings import DedupeSettings

logger = logging.getLogger(__name__)

GATEWAY_COMPONENT = "webhook_gateway"


class ProcessColaboradorWebhookUseCase:
    """Processa uma chamada de webhook de colaborador.

    Args:
        resolver: Resolvedor de discrepância de cargo
        coordinator: Coordenador de retry
        normalizer: Normalizador do quadro
        monitor: Monitor de integrações
        audit: Trilha de auditoria
        service_name: Nome do serviço no monitor
        secret_key: Segredo HMAC compartilhado
        allow_unsigned: Aceita chamadas sem assinatura (apenas development sem segredo)
        dedupe: Store de dedupe (None desliga)
        dedupe_settings: Modo e TTL do dedupe
    """

    def __init__(
        self,
        *,
        resolver: DiscrepancyResolver,
        coordinator: RetryCoordinator,
        normalizer: HeadcountNormalizer,
        monitor: IntegrationHealthMonitor,
        audit: AuditServiceProtocol,
        service_name: str,
        secret_key: str,
        allow_unsigned: bool = False,
        dedupe: AsyncDedupeProtocol | None = None,
        dedupe_settings: DedupeSettings | None = None,
    ) -> None:
        self._resolver = resolver
        self._coordinator = coordinator
        self._normalizer = normalizer
        self._monitor = monitor
        self._audit = audit
        self._service_name = service_name
        self._secret_key = secret_key
        self._allow_unsigned = allow_unsigned
        self._dedupe = dedupe
        self._dedupe_settings = dedupe_settings

    async def execute(
        self,
        raw_body: bytes,
        headers: Mapping[str, str],
        expected_type: ColaboradorEventType,
    ) -> WebhookOutcome:
        """Processa a chamada HTTP completa (assinatura + envelope)."""
        started = time.perf_counter()
        correlation_id = get_correlation_id()
        try:
            payload, signature = parse_webhook_request(
                raw_body, headers, self._secret_key, self._allow_unsigned
            )
        except InvalidSignatureError as exc:
            logger.warning(
                "webhook_signature_rejected",
                extra={"reason": str(exc), "event_type": expected_type.value},
            )
            await self._record_rejection(started, f"Invalid webhook signature: {exc}")
            return unauthorized()
        except InvalidJsonError as exc:
            logger.warning("webhook_invalid_json", extra={"reason": str(exc)})
            await self._record_rejection(started, f"Invalid JSON: {exc}")
            return invalid_payload(["JSON inválido"])

        if signature.skipped:
            logger.warning("webhook_signature_skipped", extra={"correlation_id": correlation_id})

        return await self.process_envelope(payload, expected_type, started=started)

    async def process_envelope(
        self,
        payload: dict[str, Any],
        expected_type: ColaboradorEventType | None,
        *,
        started: float | None = None,
        replay: bool = False,
    ) -> WebhookOutcome:
        """Valida e processa um envelope já autenticado.

        Usado também pelo reprocessamento (`replay=True` ignora dedupe).
        """
        started = started if started is not None else time.perf_counter()
        correlation_id = get_correlation_id()

        errors = validate_webhook_payload(payload, expected_type)
        if errors:
            logger.info(
                "webhook_validation_failed",
                extra={"violations": len(errors), "colaborador_id": employee_id_of(payload)},
            )
            await self._record_rejection(
                started, f"Validation errors: {', '.join(errors)}", payload=payload
            )
            return invalid_payload(errors)

        event = normalize_webhook_payload(payload)
        actor = AuditActor(correlation_id=correlation_id)

        duplicate = False
        dedupe_key: str | None = None
        if not replay and self._dedupe is not None and self._dedupe_settings is not None:
            if self._dedupe_settings.enabled:
                dedupe_key = build_dedupe_key(
                    event.employee_id, str(payload.get("event_type")), str(payload.get("timestamp"))
                )
                duplicate = await self._dedupe.check_and_mark(
                    dedupe_key, self._dedupe_settings.ttl_seconds
                )

        received: dict[str, Any] = {
            "event_type": payload.get("event_type"),
            "colaborador_id": event.employee_id,
        }
        if duplicate:
            received["duplicate"] = True
            logger.warning(
                "webhook_duplicate_detected",
                extra={**event.to_log_dict(), "mode": self._dedupe_settings.mode},
            )
        if replay:
            received["replay"] = True
        await self._monitor.record_event(
            self._service_name,
            IntegrationEventType.RECEIVED,
            IntegrationEventStatus.SUCCESS,
            0,
            payload=received,
            correlation_id=correlation_id,
        )

        if duplicate and self._dedupe_settings.mode == "enforce":
            return acknowledged(
                event.employee_id, "Duplicate delivery ignored", correlation_id
            )

        outcome = await self._run_pipeline(event, payload, actor, started)
        if dedupe_key is not None and not duplicate and not outcome.acknowledged:
            # entrega rejeitada pode ser reenviada
            await self._dedupe.release(dedupe_key)
        return outcome

    async def _run_pipeline(
        self,
        event: ColaboradorEvent,
        payload: dict[str, Any],
        actor: AuditActor,
        started: float,
    ) -> WebhookOutcome:
        event_type = event.event_type
        try:
            if event_type is ColaboradorEventType.ADMISSION:
                decision = await self._resolver.resolve(event, actor)
                if not decision.allowed:
                    await self._record_processed(
                        started,
                        IntegrationEventStatus.FAILURE,
                        payload,
                        error=f"Cargo discrepancy: {decision.message}",
                    )
                    return discrepancy_conflict(
                        event.employee_id,
                        decision.message,
                        decision.action.value if decision.action else None,
                        decision.case_id,
                    )

            await self._coordinator.execute(
                lambda: self._normalizer.process_event(event, actor),
                event,
                actor,
                payload=payload,
            )
        except Exception as exc:
            cause = exc.last_error if isinstance(exc, RetryExhaustedError) else exc
            message = str(cause) or type(cause).__name__
            logger.error(
                "webhook_processing_failed",
                extra={**event.to_log_dict(), "error_type": type(cause).__name__},
            )
            await self._record_processed(
                started, IntegrationEventStatus.FAILURE, payload, error=message
            )
            await emit_audit(
                self._audit,
                AuditEntry(
                    entity_id=event.employee_id,
                    entity_type="webhook",
                    action=f"webhook_{event_type.value}_erro",
                    reason=f"Erro no processamento: {message}",
                    before={"event": event.to_log_dict()},
                    after={"error": message},
                ),
                actor,
            )
            return internal_error(event.employee_id, message)

        await self._record_processed(started, IntegrationEventStatus.SUCCESS, payload)
        await emit_audit(
            self._audit,
            AuditEntry(
                entity_id=event.employee_id,
                entity_type="webhook",
                action=f"webhook_{event_type.value}_processado",
                reason=f"Webhook de {event_type.value} processado com sucesso",
                after={"event": event.to_log_dict()},
            ),
            actor,
        )
        logger.info("webhook_processed", extra=event.to_log_dict())
        return acknowledged(
            event.employee_id, SUCCESS_MESSAGES[event_type], actor.correlation_id or ""
        )

    async def _record_rejection(
        self,
        started: float,
        error: str,
        payload: dict[str, Any] | None = None,
    ) -> None:
        elapsed_ms = (time.perf_counter() - started) * 1000
        await self._monitor.record_event(
            self._service_name,
            IntegrationEventType.FAILED,
            IntegrationEventStatus.FAILURE,
            elapsed_ms,
            payload=payload,
            error=error,
            correlation_id=get_correlation_id(),
        )

    async def _record_processed(
        self,
        started: float,
        status: IntegrationEventStatus,
        payload: dict[str, Any],
        error: str | None = None,
    ) -> None:
        elapsed_ms = (time.perf_counter() - started) * 1000
        record_latency(GATEWAY_COMPONENT, "webhook", elapsed_ms, get_correlation_id())
        await self._monitor.record_event(
            self._service_name,
            IntegrationEventType.PROCESSED,
            status,
            elapsed_ms,
            payload=payload,
            error=error,
            correlation_id=get_correlation_id(),
        )
