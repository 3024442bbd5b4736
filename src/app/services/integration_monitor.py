"""Monitor de saúde das integrações.

Recebe um evento estruturado de cada etapa do pipeline, mantém
estatísticas por serviço externo, deriva o estado de saúde, abre alertas
e expõe pedidos de reprocessamento.

Concorrência:
- Estado por serviço protegido por um asyncio.Lock por serviço
- Alertas criados sob o lock do serviço (um ativo por serviço e tipo)
- Snapshots de status persistidos pela varredura e no shutdown
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import uuid
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Any

from app.domain.audit import AuditActor, AuditEntry
from app.domain.errors import IntegrationNotFoundError, ReprocessingNotAllowedError
from app.domain.integration import (
    AlertSeverity,
    AlertType,
    HealthState,
    IntegrationAlert,
    IntegrationEvent,
    IntegrationEventStatus,
    IntegrationEventType,
    IntegrationStats,
    IntegrationStatus,
    ReprocessingRequest,
    utcnow,
)
from app.domain.notifications import NotificationIntent
from app.services._monitor_rules import (
    derive_health,
    evaluate_breaches,
    seconds_without_success,
)
from app.services.audit_trail import emit_audit

if TYPE_CHECKING:
    from app.protocols.audit_store import AuditServiceProtocol
    from app.protocols.integration_store import IntegrationStoreProtocol
    from app.services.notification_dispatcher import NotificationDispatcher
    from config.settings import MonitoringSettings

logger = logging.getLogger(__name__)

MONITOR_ACTOR = AuditActor(user_name="Integration Monitoring")
ALERT_TEMPLATE = "integration_alert"
SILENT_SERVICE_ERROR = "Nenhuma atividade recente detectada na verificação de saúde"


class IntegrationHealthMonitor:
    """Monitor de integrações.

    Args:
        store: Log relacional de integrações
        audit: Trilha de auditoria
        notifications: Fila de notificações (alertas)
        settings: Limiares e agenda
        admin_recipient: Destinatário dos alertas de integração
        clock: Relógio (injetável em testes)
    """

    def __init__(
        self,
        store: IntegrationStoreProtocol,
        audit: AuditServiceProtocol,
        notifications: NotificationDispatcher,
        settings: MonitoringSettings,
        admin_recipient: str = "admin_team",
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._audit = audit
        self._notifications = notifications
        self._settings = settings
        self._admin_recipient = admin_recipient
        self._clock = clock
        self._statuses: dict[str, IntegrationStatus] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._active_alerts: dict[tuple[str, AlertType], IntegrationAlert] = {}
        self._dirty: set[str] = set()
        self._sweep_task: asyncio.Task[None] | None = None

    @property
    def settings(self) -> MonitoringSettings:
        return self._settings

    def _lock_for(self, service_name: str) -> asyncio.Lock:
        lock = self._locks.get(service_name)
        if lock is None:
            lock = self._locks.setdefault(service_name, asyncio.Lock())
        return lock

    def _status_for(self, service_name: str) -> IntegrationStatus:
        status = self._statuses.get(service_name)
        if status is None:
            status = IntegrationStatus(service_name=service_name, tracking_since=self._clock())
            self._statuses[service_name] = status
            self._dirty.add(service_name)
            logger.info("integration_service_tracked", extra={"service_name": service_name})
        return status

    def ensure_services(self, service_names: tuple[str, ...] | list[str]) -> None:
        """Inicializa status dos serviços conhecidos (estado unknown)."""
        for name in service_names:
            self._status_for(name)

    # ──────────────────────────────────────────────────────────────────────
    # Registro de eventos
    # ──────────────────────────────────────────────────────────────────────

    async def record_event(
        self,
        service_name: str,
        event_type: IntegrationEventType,
        status: IntegrationEventStatus,
        response_time_ms: float,
        payload: dict[str, Any] | None = None,
        error: str | None = None,
        correlation_id: str | None = None,
    ) -> str:
        """Registra evento, atualiza estatísticas e avalia alertas.

        Returns:
            ID do evento registrado.
        """
        now = self._clock()
        event = IntegrationEvent(
            id=str(uuid.uuid4()),
            service_name=service_name,
            event_type=event_type,
            status=status,
            response_time_ms=response_time_ms,
            timestamp=now,
            payload=payload,
            error=error,
            correlation_id=correlation_id,
        )
        try:
            await self._store.append_event(event)
        except Exception as exc:
            logger.error(
                "integration_event_persist_failed",
                extra={
                    "service_name": service_name,
                    "event_id": event.id,
                    "error_type": type(exc).__name__,
                },
            )

        created: list[IntegrationAlert] = []
        async with self._lock_for(service_name):
            current = self._status_for(service_name)
            previous_state = current.status
            current.register(event.is_success, response_time_ms, now)
            current.status = derive_health(current, now, self._settings)
            self._dirty.add(service_name)

            for breach in evaluate_breaches(current, self._settings):
                key = (service_name, breach.alert_type)
                if key in self._active_alerts:
                    continue
                alert = IntegrationAlert(
                    id=f"alert_{uuid.uuid4().hex[:16]}",
                    service_name=service_name,
                    alert_type=breach.alert_type,
                    severity=breach.severity,
                    message=breach.message,
                    threshold=breach.threshold,
                    current_value=breach.current_value,
                    created_at=now,
                )
                self._active_alerts[key] = alert
                created.append(alert)
            new_state = current.status

        if new_state is not previous_state:
            logger.info(
                "integration_health_changed",
                extra={
                    "service_name": service_name,
                    "from_state": previous_state.value,
                    "to_state": new_state.value,
                },
            )

        for alert in created:
            await self._on_alert_created(alert)
        return event.id

    async def _on_alert_created(self, alert: IntegrationAlert) -> None:
        logger.warning(
            "integration_alert_created",
            extra={
                "service_name": alert.service_name,
                "alert_type": alert.alert_type.value,
                "severity": alert.severity.value,
                "alert_id": alert.id,
            },
        )
        try:
            await self._store.save_alert(alert)
        except Exception as exc:
            logger.error(
                "integration_alert_persist_failed",
                extra={"alert_id": alert.id, "error_type": type(exc).__name__},
            )
        self._notifications.enqueue(
            NotificationIntent(
                template_id=ALERT_TEMPLATE,
                recipient=self._admin_recipient,
                variables={
                    "service_name": alert.service_name,
                    "alert_type": alert.alert_type.value,
                    "severity": alert.severity.value,
                    "message": alert.message,
                    "threshold": str(alert.threshold),
                    "current_value": str(alert.current_value),
                },
                priority="urgent" if alert.severity is AlertSeverity.CRITICAL else "high",
            )
        )
        await emit_audit(
            self._audit,
            AuditEntry(
                entity_id=alert.id,
                entity_type="integration_alert",
                action="alert_created",
                reason=f"Alerta de integração criado: {alert.alert_type.value} para {alert.service_name}",
                after=alert.to_dict(),
            ),
            MONITOR_ACTOR,
        )

    # ──────────────────────────────────────────────────────────────────────
    # Consultas
    # ──────────────────────────────────────────────────────────────────────

    async def get_statuses(self) -> list[IntegrationStatus]:
        result: list[IntegrationStatus] = []
        for name in sorted(self._statuses):
            async with self._lock_for(name):
                result.append(self._statuses[name].snapshot())
        return result

    async def get_service_status(self, service_name: str) -> IntegrationStatus:
        """Raises: IntegrationNotFoundError se o serviço nunca foi visto."""
        if service_name not in self._statuses:
            raise IntegrationNotFoundError(f"Serviço não monitorado: {service_name}")
        async with self._lock_for(service_name):
            return self._statuses[service_name].snapshot()

    async def get_recent_events(
        self,
        service_name: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[IntegrationEvent]:
        return await self._store.list_events(service_name, limit, offset)

    def get_active_alerts(self) -> list[IntegrationAlert]:
        return sorted(self._active_alerts.values(), key=lambda a: a.created_at, reverse=True)

    async def resolve_alert(self, alert_id: str, resolved_by: str) -> IntegrationAlert:
        """Resolve alerta ativo; o tipo volta a poder alertar.

        Raises:
            IntegrationNotFoundError: Alerta inexistente.
        """
        key = next(
            (k for k, alert in self._active_alerts.items() if alert.id == alert_id), None
        )
        if key is not None:
            async with self._lock_for(key[0]):
                alert = self._active_alerts.pop(key)
        else:
            stored = await self._store.get_alert(alert_id)
            if stored is None:
                raise IntegrationNotFoundError(f"Alerta não encontrado: {alert_id}")
            alert = stored

        if alert.is_active:
            alert.is_active = False
            alert.resolved_at = self._clock()
            alert.resolved_by = resolved_by
            await self._store.save_alert(alert)
            logger.info(
                "integration_alert_resolved",
                extra={"alert_id": alert.id, "service_name": alert.service_name},
            )
            await emit_audit(
                self._audit,
                AuditEntry(
                    entity_id=alert.id,
                    entity_type="integration_alert",
                    action="alert_resolved",
                    reason=f"Alerta resolvido por {resolved_by}",
                    before={"is_active": True},
                    after=alert.to_dict(),
                ),
                AuditActor(user_id=resolved_by, user_name=resolved_by),
            )
        return alert

    async def get_integration_stats(self) -> IntegrationStats:
        statuses = await self.get_statuses()
        total_events = sum(s.total_calls for s in statuses)
        weighted = sum(s.average_response_time_ms * s.total_calls for s in statuses)
        return IntegrationStats(
            total_services=len(statuses),
            healthy_services=sum(1 for s in statuses if s.status is HealthState.HEALTHY),
            degraded_services=sum(1 for s in statuses if s.status is HealthState.DEGRADED),
            unhealthy_services=sum(1 for s in statuses if s.status is HealthState.UNHEALTHY),
            total_events=total_events,
            successful_events=sum(s.successful_calls for s in statuses),
            failed_events=sum(s.failed_calls for s in statuses),
            active_alerts=len(self._active_alerts),
            average_response_time_ms=weighted / total_events if total_events else 0.0,
        )

    # ──────────────────────────────────────────────────────────────────────
    # Reprocessamento
    # ──────────────────────────────────────────────────────────────────────

    async def request_reprocessing(
        self,
        event_id: str,
        requested_by: str,
        max_attempts: int = 3,
    ) -> ReprocessingRequest:
        """Cria pedido de reprocessamento (não executa o replay).

        Raises:
            IntegrationNotFoundError: Evento original inexistente.
        """
        original = await self._store.get_event(event_id)
        if original is None:
            raise IntegrationNotFoundError(f"Evento de integração não encontrado: {event_id}")

        request = ReprocessingRequest(
            id=f"reprocess_{uuid.uuid4().hex[:16]}",
            original_event_id=event_id,
            service_name=original.service_name,
            payload=original.payload,
            requested_by=requested_by,
            max_attempts=max(1, max_attempts),
            created_at=self._clock(),
            updated_at=self._clock(),
        )
        await self._store.save_reprocessing_request(request)
        logger.info(
            "reprocessing_requested",
            extra={"request_id": request.id, "original_event_id": event_id},
        )
        await emit_audit(
            self._audit,
            AuditEntry(
                entity_id=request.id,
                entity_type="reprocessing_request",
                action="reprocessing_requested",
                reason=f"Reprocessamento solicitado para o evento {event_id}",
                after=request.to_dict(),
            ),
            AuditActor(user_id=requested_by, user_name=requested_by),
        )
        return request

    async def get_reprocessing_request(self, request_id: str) -> ReprocessingRequest:
        request = await self._store.get_reprocessing_request(request_id)
        if request is None:
            raise IntegrationNotFoundError(f"Pedido de reprocessamento não encontrado: {request_id}")
        return request

    async def claim_reprocessing_request(self, request_id: str) -> ReprocessingRequest:
        """Reivindica o pedido para uma tentativa (PENDING -> PROCESSING).

        Raises:
            IntegrationNotFoundError: Pedido inexistente.
            ReprocessingNotAllowedError: Pedido não está pendente ou já foi reivindicado.
        """
        claimed = await self._store.claim_reprocessing_request(request_id, self._clock())
        if claimed is not None:
            return claimed
        request = await self.get_reprocessing_request(request_id)
        raise ReprocessingNotAllowedError(
            f"Pedido {request_id} não pode ser executado (status={request.status.value}, "
            f"tentativas={request.attempts}/{request.max_attempts})"
        )

    async def save_reprocessing_request(self, request: ReprocessingRequest) -> None:
        request.updated_at = self._clock()
        await self._store.save_reprocessing_request(request)

    # ──────────────────────────────────────────────────────────────────────
    # Snapshots e varredura periódica
    # ──────────────────────────────────────────────────────────────────────

    async def load_snapshots(self) -> int:
        """Carrega status e alertas ativos persistidos (startup)."""
        statuses = await self._store.load_statuses()
        for status in statuses:
            self._statuses[status.service_name] = status
        for alert in await self._store.list_active_alerts():
            self._active_alerts.setdefault((alert.service_name, alert.alert_type), alert)
        logger.info(
            "integration_snapshots_loaded",
            extra={"services": len(statuses), "active_alerts": len(self._active_alerts)},
        )
        return len(statuses)

    async def flush_snapshots(self) -> int:
        """Persiste status alterados desde o último flush."""
        dirty = sorted(self._dirty)
        if not dirty:
            return 0
        snapshots: list[IntegrationStatus] = []
        for name in dirty:
            async with self._lock_for(name):
                snapshots.append(self._statuses[name].snapshot())
        try:
            await self._store.save_statuses(snapshots)
        except Exception as exc:
            logger.error(
                "integration_snapshot_flush_failed",
                extra={"services": len(snapshots), "error_type": type(exc).__name__},
            )
            return 0
        self._dirty.difference_update(dirty)
        return len(snapshots)

    async def run_health_sweep(self) -> list[str]:
        """Sintetiza falha para serviços silenciosos além da janela.

        Returns:
            Serviços marcados nesta varredura.
        """
        now = self._clock()
        flagged: list[str] = []
        for name in sorted(set(self._statuses) | set(self._settings.known_services)):
            async with self._lock_for(name):
                status = self._status_for(name)
                silent = (
                    seconds_without_success(status, now) > self._settings.service_down_window_seconds
                    and status.status is not HealthState.UNHEALTHY
                )
            if silent:
                flagged.append(name)
                await self.record_event(
                    name,
                    IntegrationEventType.FAILED,
                    IntegrationEventStatus.FAILURE,
                    0,
                    error=SILENT_SERVICE_ERROR,
                )
        if flagged:
            logger.warning("integration_silent_services", extra={"services": flagged})
        await self.flush_snapshots()
        return flagged

    def start_sweep(self) -> None:
        if self._sweep_task is not None and not self._sweep_task.done():
            return
        self._sweep_task = asyncio.create_task(self._sweep_loop(), name="integration-health-sweep")
        logger.info(
            "integration_sweep_started",
            extra={"interval_seconds": self._settings.health_check_interval_seconds},
        )

    async def stop_sweep(self) -> None:
        if self._sweep_task is None:
            return
        self._sweep_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._sweep_task
        self._sweep_task = None
        logger.info("integration_sweep_stopped")

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._settings.health_check_interval_seconds)
            try:
                await self.run_health_sweep()
            except Exception:
                logger.exception("integration_sweep_error")
