"""Agregador de settings do quadro-lotacao-sync.

Re-exporta todas as settings e funções de cada módulo.
Organização por domínio para isolamento de mudanças.
"""

from __future__ import annotations

# Base settings
from config.settings.base import (
    AuditBackend,
    BaseSettings,
    DedupeBackend,
    DedupeMode,
    DedupeSettings,
    Environment,
    RelationalBackend,
    StoreSettings,
    get_base_settings,
    get_dedupe_settings,
    get_store_settings,
)

# Infrastructure settings
from config.settings.infra import (
    FirestoreSettings,
    get_firestore_settings,
)

# Outbound integrations
from config.settings.integrations import (
    IntegrationClientSettings,
    get_integration_client_settings,
)

# Monitoring
from config.settings.monitoring import (
    DEFAULT_KNOWN_SERVICES,
    MonitoringSettings,
    get_monitoring_settings,
)

# Webhook
from config.settings.webhook import (
    WEBHOOK_SERVICE_NAME,
    WebhookSettings,
    get_webhook_settings,
)

__all__ = [
    # Constants
    "DEFAULT_KNOWN_SERVICES",
    "WEBHOOK_SERVICE_NAME",
    # Base
    "AuditBackend",
    "BaseSettings",
    "DedupeBackend",
    "DedupeMode",
    "DedupeSettings",
    "Environment",
    # Infrastructure
    "FirestoreSettings",
    # Integrations
    "IntegrationClientSettings",
    # Monitoring
    "MonitoringSettings",
    "RelationalBackend",
    "StoreSettings",
    # Webhook
    "WebhookSettings",
    "get_base_settings",
    "get_dedupe_settings",
    "get_firestore_settings",
    "get_integration_client_settings",
    "get_monitoring_settings",
    "get_store_settings",
    "get_webhook_settings",
]
