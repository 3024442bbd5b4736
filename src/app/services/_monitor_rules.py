"""Regras de saúde e alerta do monitor de integrações.

Módulo interno (prefixo _). Funções puras sobre IntegrationStatus.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from app.domain.integration import AlertSeverity, AlertType, HealthState

if TYPE_CHECKING:
    from datetime import datetime

    from app.domain.integration import IntegrationStatus
    from config.settings import MonitoringSettings


@dataclass(frozen=True, slots=True)
class AlertBreach:
    alert_type: AlertType
    severity: AlertSeverity
    message: str
    threshold: float
    current_value: float


def seconds_without_success(status: IntegrationStatus, now: datetime) -> float:
    """Tempo desde o último sucesso (ou desde o início do acompanhamento)."""
    reference = status.last_successful_call or status.tracking_since
    return (now - reference).total_seconds()


def derive_health(
    status: IntegrationStatus,
    now: datetime,
    thresholds: MonitoringSettings,
) -> HealthState:
    if status.total_calls == 0:
        return HealthState.UNKNOWN
    if (
        status.consecutive_failures >= thresholds.consecutive_failures_threshold
        or seconds_without_success(status, now) > thresholds.service_down_window_seconds
    ):
        return HealthState.UNHEALTHY
    if (
        status.error_rate > thresholds.error_rate_threshold
        or status.average_response_time_ms > thresholds.response_time_threshold_ms
    ):
        return HealthState.DEGRADED
    return HealthState.HEALTHY


def evaluate_breaches(
    status: IntegrationStatus,
    thresholds: MonitoringSettings,
) -> list[AlertBreach]:
    """Limiares violados pelo status atual (deduplicação fica com o monitor)."""
    breaches: list[AlertBreach] = []
    name = status.service_name

    if status.status is HealthState.UNHEALTHY:
        breaches.append(
            AlertBreach(
                AlertType.SERVICE_DOWN,
                AlertSeverity.CRITICAL,
                f"Serviço {name} está unhealthy",
                float(thresholds.consecutive_failures_threshold),
                float(status.consecutive_failures),
            )
        )

    if status.error_rate > thresholds.error_rate_threshold:
        breaches.append(
            AlertBreach(
                AlertType.HIGH_ERROR_RATE,
                AlertSeverity.HIGH,
                f"Taxa de erro alta em {name}: {status.error_rate * 100:.1f}%",
                thresholds.error_rate_threshold,
                status.error_rate,
            )
        )

    if status.average_response_time_ms > thresholds.response_time_threshold_ms:
        breaches.append(
            AlertBreach(
                AlertType.SLOW_RESPONSE,
                AlertSeverity.MEDIUM,
                f"Tempo de resposta lento em {name}: "
                f"{status.average_response_time_ms:.0f}ms de média",
                thresholds.response_time_threshold_ms,
                status.average_response_time_ms,
            )
        )
    return breaches
