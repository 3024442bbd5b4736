"""Coordenador de retry do processamento de eventos de colaborador.

Aplica RetryPolicy ao normalizador, registrando cada retry no monitor
de integrações e na auditoria. Exaustão é auditada e propagada: o
gateway nunca recebe sucesso silencioso.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, TypeVar

from app.domain.audit import AuditActor, AuditEntry
from app.domain.integration import IntegrationEventStatus, IntegrationEventType
from app.observability import get_correlation_id, record_retry
from app.services.audit_trail import emit_audit
from app.services.retry_policy import (
    RetryExhaustedError,
    RetryOutcome,
    RetryPolicy,
    SleepFn,
    execute_with_policy,
)

if TYPE_CHECKING:
    from app.domain.colaborador import ColaboradorEvent
    from app.protocols.audit_store import AuditServiceProtocol
    from app.services.integration_monitor import IntegrationHealthMonitor

T = TypeVar("T")

logger = logging.getLogger(__name__)

ENTITY_TYPE = "webhook"


class RetryCoordinator:
    """Executa o normalizador sob a política de retry.

    Args:
        policy: Política de retry
        monitor: Monitor de integrações (recebe eventos "retry")
        audit: Trilha de auditoria
        service_name: Nome do serviço no monitor
        sleep: Função de espera (None usa asyncio.sleep)
    """

    def __init__(
        self,
        policy: RetryPolicy,
        monitor: IntegrationHealthMonitor,
        audit: AuditServiceProtocol,
        service_name: str,
        sleep: SleepFn | None = None,
    ) -> None:
        self._policy = policy
        self._monitor = monitor
        self._audit = audit
        self._service_name = service_name
        self._sleep = sleep

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        event: ColaboradorEvent,
        actor: AuditActor | None = None,
        payload: dict[str, Any] | None = None,
    ) -> RetryOutcome[T]:
        """Executa `operation` com retry.

        Raises:
            RetryExhaustedError: Todas as tentativas falharam.
        """
        actor = actor or AuditActor(correlation_id=get_correlation_id())
        event_info = event.to_log_dict()

        async def on_retry(attempt: int, delay_ms: float, error: BaseException) -> None:
            logger.warning(
                "webhook_retry_scheduled",
                extra={
                    **event_info,
                    "attempt": attempt,
                    "delay_ms": round(delay_ms, 2),
                    "error_type": type(error).__name__,
                },
            )
            record_retry(event.event_type.value, attempt, delay_ms)
            await self._monitor.record_event(
                self._service_name,
                IntegrationEventType.RETRY,
                IntegrationEventStatus.RETRY,
                delay_ms,
                payload=payload,
                error=str(error),
                correlation_id=actor.correlation_id,
            )
            await emit_audit(
                self._audit,
                AuditEntry(
                    entity_id=event.employee_id,
                    entity_type=ENTITY_TYPE,
                    action="webhook_retry",
                    reason=f"Tentativa {attempt} falhou, nova tentativa em {round(delay_ms)}ms",
                    before={"attempt": attempt, "error": str(error)},
                    after={"next_attempt": attempt + 1, "delay_ms": round(delay_ms, 2)},
                ),
                actor,
            )

        sleep_kwargs = {"sleep": self._sleep} if self._sleep is not None else {}
        try:
            outcome = await execute_with_policy(
                operation, self._policy, on_retry=on_retry, **sleep_kwargs
            )
        except RetryExhaustedError as exc:
            logger.error(
                "webhook_retry_exhausted",
                extra={
                    **event_info,
                    "attempts": exc.attempts,
                    "elapsed_ms": round(exc.elapsed_ms, 2),
                    "error_type": type(exc.last_error).__name__,
                },
            )
            await emit_audit(
                self._audit,
                AuditEntry(
                    entity_id=event.employee_id,
                    entity_type=ENTITY_TYPE,
                    action="webhook_retry_exhausted",
                    reason=(
                        f"Todas as {exc.attempts} tentativas falharam após "
                        f"{round(exc.elapsed_ms)}ms"
                    ),
                    before={"total_attempts": exc.attempts, "total_duration_ms": exc.elapsed_ms},
                    after={"error": str(exc.last_error), "event": event_info},
                ),
                actor,
            )
            raise

        if outcome.attempts > 1:
            logger.info(
                "webhook_retry_success",
                extra={**event_info, "attempts": outcome.attempts},
            )
            await emit_audit(
                self._audit,
                AuditEntry(
                    entity_id=event.employee_id,
                    entity_type=ENTITY_TYPE,
                    action="webhook_retry_success",
                    reason=f"Processamento bem-sucedido na tentativa {outcome.attempts}",
                    before={
                        "total_attempts": outcome.attempts,
                        "total_duration_ms": round(outcome.elapsed_ms, 2),
                    },
                    after={"event": event_info},
                ),
                actor,
            )
        return outcome
