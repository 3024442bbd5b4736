"""Wiring do pipeline de eventos de colaborador.

`build_container` monta todos os serviços a partir de stores e gateways
já criados; `build_container_from_env` usa as factories de ambiente.
Testes passam stores em memória explicitamente.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from app.services import (
    DiscrepancyResolver,
    HeadcountNormalizer,
    IntegrationHealthMonitor,
    NotificationDispatcher,
    RetryCoordinator,
    RetryPolicy,
)
from app.use_cases.colaborador import (
    ExecuteReprocessingUseCase,
    ProcessColaboradorWebhookUseCase,
)
from config.settings import (
    DedupeSettings,
    IntegrationClientSettings,
    MonitoringSettings,
    WebhookSettings,
)

if TYPE_CHECKING:
    from app.protocols.audit_store import AuditServiceProtocol
    from app.protocols.company_policy import CompanyPolicyProtocol
    from app.protocols.dedupe import AsyncDedupeProtocol
    from app.protocols.escalation import EscalationGatewayProtocol
    from app.protocols.integration_store import IntegrationStoreProtocol
    from app.protocols.ledger_store import LedgerStoreProtocol
    from app.protocols.notification import NotificationServiceProtocol
    from app.protocols.roster import ActiveRosterProtocol
    from app.services.retry_policy import SleepFn

logger = logging.getLogger(__name__)


@dataclass
class PipelineContainer:
    """Serviços e casos de uso compartilhados pelas rotas."""

    ledger: LedgerStoreProtocol
    integration_store: IntegrationStoreProtocol
    audit: AuditServiceProtocol
    dispatcher: NotificationDispatcher
    monitor: IntegrationHealthMonitor
    resolver: DiscrepancyResolver
    normalizer: HeadcountNormalizer
    coordinator: RetryCoordinator
    webhook: ProcessColaboradorWebhookUseCase
    reprocessing: ExecuteReprocessingUseCase
    webhook_settings: WebhookSettings
    monitoring_settings: MonitoringSettings

    async def startup(self) -> None:
        """Carrega snapshots, registra serviços conhecidos e liga workers."""
        await self.monitor.load_snapshots()
        self.monitor.ensure_services(self.monitoring_settings.known_services)
        self.dispatcher.start()
        if self.monitoring_settings.sweep_enabled:
            self.monitor.start_sweep()
        logger.info(
            "pipeline_started",
            extra={
                "component": "bootstrap",
                "known_services": list(self.monitoring_settings.known_services),
                "sweep_enabled": self.monitoring_settings.sweep_enabled,
            },
        )

    async def shutdown(self) -> None:
        """Para a varredura, persiste snapshots e drena notificações."""
        await self.monitor.stop_sweep()
        await self.monitor.flush_snapshots()
        await self.dispatcher.stop()
        logger.info("pipeline_stopped", extra={"component": "bootstrap"})


def build_container(
    *,
    ledger: LedgerStoreProtocol,
    integration_store: IntegrationStoreProtocol,
    audit: AuditServiceProtocol,
    company_policy: CompanyPolicyProtocol,
    roster: ActiveRosterProtocol,
    escalation: EscalationGatewayProtocol,
    notification_service: NotificationServiceProtocol,
    webhook_settings: WebhookSettings,
    monitoring_settings: MonitoringSettings | None = None,
    integration_settings: IntegrationClientSettings | None = None,
    dedupe: AsyncDedupeProtocol | None = None,
    dedupe_settings: DedupeSettings | None = None,
    allow_unsigned: bool = False,
    retry_sleep: SleepFn | None = None,
) -> PipelineContainer:
    """Monta o pipeline completo.

    Args:
        ledger: Store do quadro de lotação
        integration_store: Log de integrações
        audit: Trilha de auditoria
        company_policy: Política de cargo discrepante por empresa
        roster: Cadastro de colaboradores ativos (recálculo)
        escalation: Workflow de aprovação
        notification_service: Serviço de notificações
        webhook_settings: Segredo, retry e limites de processamento
        monitoring_settings: Limiares do monitor
        integration_settings: Fila de notificações e destinatários
        dedupe: Store de dedupe (None desliga)
        dedupe_settings: Modo e TTL do dedupe
        allow_unsigned: Aceita requisições sem segredo configurado
        retry_sleep: Função de espera do retry (testes usam no-op)
    """
    monitoring_settings = monitoring_settings or MonitoringSettings()
    integration_settings = integration_settings or IntegrationClientSettings()

    dispatcher = NotificationDispatcher(
        notification_service,
        queue_maxsize=integration_settings.notification_queue_maxsize,
        max_attempts=integration_settings.notification_max_attempts,
    )
    monitor = IntegrationHealthMonitor(
        integration_store,
        audit,
        dispatcher,
        monitoring_settings,
        admin_recipient=integration_settings.admin_team_recipient,
    )
    resolver = DiscrepancyResolver(
        ledger,
        company_policy,
        escalation,
        dispatcher,
        audit,
        hr_recipient=integration_settings.hr_team_recipient,
    )
    normalizer = HeadcountNormalizer(
        ledger,
        audit,
        roster,
        performance_warning_ms=webhook_settings.performance_warning_ms,
        batch_concurrency=webhook_settings.batch_concurrency,
    )
    policy = RetryPolicy(
        max_attempts=webhook_settings.retry_attempts,
        base_delay_ms=float(webhook_settings.retry_delay_ms),
        max_delay_ms=float(webhook_settings.max_retry_delay_ms),
    )
    coordinator = RetryCoordinator(
        policy,
        monitor,
        audit,
        webhook_settings.service_name,
        sleep=retry_sleep,
    )
    webhook = ProcessColaboradorWebhookUseCase(
        resolver=resolver,
        coordinator=coordinator,
        normalizer=normalizer,
        monitor=monitor,
        audit=audit,
        service_name=webhook_settings.service_name,
        secret_key=webhook_settings.secret_key,
        allow_unsigned=allow_unsigned,
        dedupe=dedupe,
        dedupe_settings=dedupe_settings,
    )
    reprocessing = ExecuteReprocessingUseCase(monitor=monitor, webhook=webhook, audit=audit)

    return PipelineContainer(
        ledger=ledger,
        integration_store=integration_store,
        audit=audit,
        dispatcher=dispatcher,
        monitor=monitor,
        resolver=resolver,
        normalizer=normalizer,
        coordinator=coordinator,
        webhook=webhook,
        reprocessing=reprocessing,
        webhook_settings=webhook_settings,
        monitoring_settings=monitoring_settings,
    )


def build_container_from_env() -> PipelineContainer:
    """Monta o pipeline com backends escolhidos pelas settings de ambiente."""
    from app.bootstrap.dependencies import (
        create_audit_store,
        create_company_policy,
        create_dedupe_store,
        create_escalation_gateway,
        create_integration_store,
        create_ledger_store,
        create_notification_service,
        create_roster,
    )
    from config.settings import (
        get_base_settings,
        get_dedupe_settings,
        get_integration_client_settings,
        get_monitoring_settings,
        get_webhook_settings,
    )

    webhook_settings = get_webhook_settings()
    allow_unsigned = get_base_settings().is_development and not webhook_settings.secret_key
    if allow_unsigned:
        logger.warning(
            "webhook_signature_disabled",
            extra={"component": "bootstrap", "reason": "missing_secret_in_development"},
        )

    return build_container(
        ledger=create_ledger_store(),
        integration_store=create_integration_store(),
        audit=create_audit_store(),
        company_policy=create_company_policy(),
        roster=create_roster(),
        escalation=create_escalation_gateway(),
        notification_service=create_notification_service(),
        webhook_settings=webhook_settings,
        monitoring_settings=get_monitoring_settings(),
        integration_settings=get_integration_client_settings(),
        dedupe=create_dedupe_store(),
        dedupe_settings=get_dedupe_settings(),
        allow_unsigned=allow_unsigned,
    )
