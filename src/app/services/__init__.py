"""Serviços de aplicação.

Unidades reutilizáveis de orquestração (sem IO direto).
Implementações concretas de IO ficam em app/infra/ e api/connectors/.
"""

from app.services.discrepancy_resolver import DiscrepancyResolver
from app.services.headcount_normalizer import (
    BatchResult,
    HeadcountNormalizer,
    NormalizationResult,
    ReconcileResult,
)
from app.services.integration_monitor import IntegrationHealthMonitor
from app.services.notification_dispatcher import NotificationDispatcher
from app.services.retry_coordinator import RetryCoordinator
from app.services.retry_policy import (
    RetryExhaustedError,
    RetryOutcome,
    RetryPolicy,
    execute_with_policy,
)

__all__ = [
    "BatchResult",
    "DiscrepancyResolver",
    "HeadcountNormalizer",
    "IntegrationHealthMonitor",
    "NormalizationResult",
    "NotificationDispatcher",
    "ReconcileResult",
    "RetryCoordinator",
    "RetryExhaustedError",
    "RetryOutcome",
    "RetryPolicy",
    "execute_with_policy",
]
