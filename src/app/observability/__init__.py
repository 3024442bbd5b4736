"""Observabilidade — logs estruturados, correlation_id e métricas.

Uso:
    from app.observability import get_correlation_id, set_correlation_id
    from app.observability import record_latency, record_ledger_mutation
"""

from app.observability.correlation import (
    correlation_scope,
    generate_correlation_id,
    get_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)
from app.observability.metrics import (
    record_discrepancy_decision,
    record_latency,
    record_ledger_mutation,
    record_retry,
)

__all__ = [
    "correlation_scope",
    "generate_correlation_id",
    "get_correlation_id",
    "record_discrepancy_decision",
    "record_latency",
    "record_ledger_mutation",
    "record_retry",
    "reset_correlation_id",
    "set_correlation_id",
]
