"""Factories de stores e gateways baseadas em configuração de ambiente.

Cada factory lê o backend das settings, cria a implementação concreta e
loga a escolha. Backend em memória fora de development é permitido aqui
(apenas logado); a recusa fica com validate_runtime_settings().
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.bootstrap.clients import (
    create_async_redis_client,
    create_firestore_client,
    create_http_client,
    create_session_factory,
)
from app.infra.stores import (
    FirestoreAuditStore,
    MemoryActiveRoster,
    MemoryAuditStore,
    MemoryCompanyPolicyStore,
    MemoryDedupeStore,
    MemoryIntegrationStore,
    MemoryLedgerStore,
    RedisDedupeStore,
    SqlActiveRoster,
    SqlCompanyPolicyStore,
    SqlIntegrationStore,
    SqlLedgerStore,
)
from config.settings import (
    get_base_settings,
    get_dedupe_settings,
    get_firestore_settings,
    get_integration_client_settings,
    get_store_settings,
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

logger = logging.getLogger(__name__)


def _warn_memory_outside_dev(component: str) -> None:
    environment = get_base_settings().environment
    if environment != "development":
        logger.warning(
            "memory_store_in_non_dev",
            extra={"component": component, "backend": "memory", "environment": environment},
        )


# ──────────────────────────────────────────────────────────────────────────────
# Stores
# ──────────────────────────────────────────────────────────────────────────────


def create_ledger_store() -> LedgerStoreProtocol:
    """Cria store do quadro de lotação."""
    settings = get_store_settings()
    backend = settings.ledger_backend

    if backend == "sql":
        store = SqlLedgerStore(create_session_factory(), settings.sql_lock_timeout_ms)
        logger.info("ledger_store_created", extra={"backend": "sql"})
        return store

    if backend == "memory":
        _warn_memory_outside_dev("ledger_store")
        logger.info("ledger_store_created", extra={"backend": "memory"})
        return MemoryLedgerStore()

    msg = f"LEDGER_STORE_BACKEND inválido: {backend}"
    raise ValueError(msg)


def create_integration_store() -> IntegrationStoreProtocol:
    """Cria store do log de integrações."""
    backend = get_store_settings().integration_backend

    if backend == "sql":
        logger.info("integration_store_created", extra={"backend": "sql"})
        return SqlIntegrationStore(create_session_factory())

    if backend == "memory":
        _warn_memory_outside_dev("integration_store")
        logger.info("integration_store_created", extra={"backend": "memory"})
        return MemoryIntegrationStore()

    msg = f"INTEGRATION_STORE_BACKEND inválido: {backend}"
    raise ValueError(msg)


def create_audit_store() -> AuditServiceProtocol:
    """Cria store da trilha de auditoria."""
    backend = get_store_settings().audit_backend

    if backend == "firestore":
        store = FirestoreAuditStore(
            create_firestore_client(),
            collection_name=get_firestore_settings().collection_audit,
        )
        logger.info("audit_store_created", extra={"backend": "firestore"})
        return store

    if backend == "memory":
        _warn_memory_outside_dev("audit_store")
        logger.info("audit_store_created", extra={"backend": "memory"})
        return MemoryAuditStore()

    msg = f"AUDIT_STORE_BACKEND inválido: {backend}"
    raise ValueError(msg)


def create_company_policy() -> CompanyPolicyProtocol:
    """Cria leitor de política de empresa (acao_cargo_discrepante)."""
    backend = get_store_settings().company_policy_backend

    if backend == "sql":
        logger.info("company_policy_created", extra={"backend": "sql"})
        return SqlCompanyPolicyStore(create_session_factory())

    if backend == "memory":
        _warn_memory_outside_dev("company_policy")
        logger.info("company_policy_created", extra={"backend": "memory"})
        return MemoryCompanyPolicyStore()

    msg = f"COMPANY_POLICY_BACKEND inválido: {backend}"
    raise ValueError(msg)


def create_roster() -> ActiveRosterProtocol:
    """Cria leitor do cadastro de colaboradores ativos (mesmo backend da política)."""
    if get_store_settings().company_policy_backend == "sql":
        return SqlActiveRoster(create_session_factory())
    return MemoryActiveRoster()


def create_dedupe_store() -> AsyncDedupeProtocol | None:
    """Cria store de dedupe; None quando DEDUPE_MODE=off."""
    settings = get_dedupe_settings()
    if not settings.enabled:
        logger.info("dedupe_store_disabled", extra={"mode": settings.mode})
        return None

    if settings.backend == "redis":
        store = RedisDedupeStore(create_async_redis_client())
        logger.info("dedupe_store_created", extra={"backend": "redis", "mode": settings.mode})
        return store

    if settings.backend == "memory":
        _warn_memory_outside_dev("dedupe_store")
        logger.info("dedupe_store_created", extra={"backend": "memory", "mode": settings.mode})
        return MemoryDedupeStore()

    msg = f"DEDUPE_BACKEND inválido: {settings.backend}"
    raise ValueError(msg)


# ──────────────────────────────────────────────────────────────────────────────
# Gateways externos
# ──────────────────────────────────────────────────────────────────────────────


def create_escalation_gateway() -> EscalationGatewayProtocol:
    """Cria gateway do workflow de aprovação (HTTP ou em memória)."""
    from api.connectors.approval_workflow import (
        ApprovalWorkflowClient,
        InMemoryEscalationGateway,
    )

    settings = get_integration_client_settings()
    if settings.approval_workflow_base_url:
        logger.info("escalation_gateway_created", extra={"backend": "http"})
        return ApprovalWorkflowClient(
            settings.approval_workflow_base_url,
            create_http_client(),
            api_token=settings.api_token,
        )

    _warn_memory_outside_dev("escalation_gateway")
    logger.info("escalation_gateway_created", extra={"backend": "memory"})
    return InMemoryEscalationGateway()


def create_notification_service() -> NotificationServiceProtocol:
    """Cria serviço de notificações (HTTP ou apenas log)."""
    from api.connectors.notifications import (
        LoggingNotificationService,
        NotificationServiceClient,
    )

    settings = get_integration_client_settings()
    if settings.notification_service_base_url:
        logger.info("notification_service_created", extra={"backend": "http"})
        return NotificationServiceClient(
            settings.notification_service_base_url,
            create_http_client(),
            api_token=settings.api_token,
        )

    _warn_memory_outside_dev("notification_service")
    logger.info("notification_service_created", extra={"backend": "logging"})
    return LoggingNotificationService()
