"""Use cases do webhook de colaborador (RH legado)."""

from ._webhook_helpers import WebhookOutcome, employee_id_of
from .execute_reprocessing import ExecuteReprocessingUseCase, ReprocessingResult
from .process_webhook_event import ProcessColaboradorWebhookUseCase

__all__ = [
    "ExecuteReprocessingUseCase",
    "ProcessColaboradorWebhookUseCase",
    "ReprocessingResult",
    "WebhookOutcome",
    "employee_id_of",
]
