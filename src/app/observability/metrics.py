"""Registro de métricas via structured logging.

As métricas são registradas como logs estruturados e agregadas depois
(Cloud Logging / BigQuery).

Métricas suportadas:
- Latência: tempo de execução por componente/operação
- Mutação do ledger: delta aplicado em vagas efetivas por registro
- Decisão de discrepância: ação aplicada para cargo divergente
- Retry: tentativas e atraso aplicados pelo coordenador
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def record_latency(
    component: str,
    operation: str,
    latency_ms: float,
    correlation_id: str | None = None,
) -> None:
    """Registra latência de operação.

    Args:
        component: Nome do componente (ex: "webhook_gateway")
        operation: Nome da operação (ex: "admissao")
        latency_ms: Latência em milissegundos
        correlation_id: ID de correlação para rastreamento
    """
    logger.info(
        "metric_latency",
        extra={
            "metric_type": "latency",
            "component": component,
            "operation": operation,
            "latency_ms": round(latency_ms, 2),
            "correlation_id": correlation_id,
        },
    )


def record_ledger_mutation(
    record_id: str,
    operation: str,
    delta: int,
    actual_count: int,
) -> None:
    """Registra mutação de vagas efetivas em um registro do quadro."""
    logger.info(
        "metric_ledger_mutation",
        extra={
            "metric_type": "counter",
            "record_id": record_id,
            "operation": operation,
            "delta": delta,
            "actual_count": actual_count,
        },
    )


def record_discrepancy_decision(action: str, allowed: bool) -> None:
    """Registra decisão tomada para cargo divergente."""
    logger.info(
        "metric_discrepancy_decision",
        extra={"metric_type": "counter", "action": action, "allowed": allowed},
    )


def record_retry(operation: str, attempt: int, delay_ms: float) -> None:
    """Registra retry agendado pelo coordenador."""
    logger.info(
        "metric_retry",
        extra={
            "metric_type": "counter",
            "operation": operation,
            "attempt": attempt,
            "delay_ms": round(delay_ms, 2),
        },
    )
