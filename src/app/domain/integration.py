"""Modelos do monitor de integrações.

- IntegrationEvent: linha imutável do log de eventos
- IntegrationStatus: agregado por serviço externo (upsert)
- IntegrationAlert: alerta ativo/resolvido por (serviço, tipo)
- ReprocessingRequest: pedido explícito de reprocessamento
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any


class IntegrationEventType(StrEnum):
    RECEIVED = "received"
    PROCESSED = "processed"
    FAILED = "failed"
    RETRY = "retry"


class IntegrationEventStatus(StrEnum):
    SUCCESS = "success"
    FAILURE = "failure"
    TIMEOUT = "timeout"
    RETRY = "retry"


class HealthState(StrEnum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"


class AlertType(StrEnum):
    SERVICE_DOWN = "service_down"
    HIGH_ERROR_RATE = "high_error_rate"
    SLOW_RESPONSE = "slow_response"
    CONSECUTIVE_FAILURES = "consecutive_failures"


class AlertSeverity(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ReprocessingStatus(StrEnum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class IntegrationEvent:
    """Evento registrado no log de integração (append-only)."""

    id: str
    service_name: str
    event_type: IntegrationEventType
    status: IntegrationEventStatus
    response_time_ms: float
    timestamp: datetime
    payload: dict[str, Any] | None = None
    error: str | None = None
    correlation_id: str | None = None

    @property
    def is_success(self) -> bool:
        return self.status is IntegrationEventStatus.SUCCESS

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "service_name": self.service_name,
            "event_type": self.event_type.value,
            "status": self.status.value,
            "payload": self.payload,
            "response_time_ms": self.response_time_ms,
            "error": self.error,
            "timestamp": _iso(self.timestamp),
            "correlation_id": self.correlation_id,
        }


@dataclass(slots=True)
class IntegrationStatus:
    """Estatísticas acumuladas por serviço externo.

    Invariante: total_calls == successful_calls + failed_calls.
    Instâncias são estado do monitor; acessar apenas sob o lock do serviço.
    """

    service_name: str
    status: HealthState = HealthState.UNKNOWN
    total_calls: int = 0
    successful_calls: int = 0
    failed_calls: int = 0
    consecutive_failures: int = 0
    average_response_time_ms: float = 0.0
    last_successful_call: datetime | None = None
    last_failed_call: datetime | None = None
    last_health_check: datetime | None = None
    error_rate: float = 0.0
    tracking_since: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def register(self, success: bool, response_time_ms: float, at: datetime) -> None:
        """Acumula um evento (média móvel cumulativa da latência)."""
        self.total_calls += 1
        if success:
            self.successful_calls += 1
            self.consecutive_failures = 0
            self.last_successful_call = at
        else:
            self.failed_calls += 1
            self.consecutive_failures += 1
            self.last_failed_call = at
        n = self.total_calls
        self.average_response_time_ms = (
            self.average_response_time_ms * (n - 1) + response_time_ms
        ) / n
        self.error_rate = self.failed_calls / n
        self.last_health_check = at
        self.updated_at = at

    def snapshot(self) -> IntegrationStatus:
        """Cópia desacoplada para leitura fora do lock."""
        return IntegrationStatus(
            service_name=self.service_name,
            status=self.status,
            total_calls=self.total_calls,
            successful_calls=self.successful_calls,
            failed_calls=self.failed_calls,
            consecutive_failures=self.consecutive_failures,
            average_response_time_ms=self.average_response_time_ms,
            last_successful_call=self.last_successful_call,
            last_failed_call=self.last_failed_call,
            last_health_check=self.last_health_check,
            error_rate=self.error_rate,
            tracking_since=self.tracking_since,
            updated_at=self.updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "service_name": self.service_name,
            "status": self.status.value,
            "total_calls": self.total_calls,
            "successful_calls": self.successful_calls,
            "failed_calls": self.failed_calls,
            "consecutive_failures": self.consecutive_failures,
            "average_response_time_ms": round(self.average_response_time_ms, 2),
            "error_rate": round(self.error_rate, 4),
            "last_successful_call": _iso(self.last_successful_call),
            "last_failed_call": _iso(self.last_failed_call),
            "last_health_check": _iso(self.last_health_check),
        }


@dataclass(slots=True)
class IntegrationAlert:
    """Alerta de integração. Um ativo por (serviço, tipo)."""

    id: str
    service_name: str
    alert_type: AlertType
    severity: AlertSeverity
    message: str
    threshold: float
    current_value: float
    created_at: datetime
    is_active: bool = True
    resolved_at: datetime | None = None
    resolved_by: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "service_name": self.service_name,
            "alert_type": self.alert_type.value,
            "severity": self.severity.value,
            "message": self.message,
            "threshold": self.threshold,
            "current_value": self.current_value,
            "is_active": self.is_active,
            "created_at": _iso(self.created_at),
            "resolved_at": _iso(self.resolved_at),
            "resolved_by": self.resolved_by,
        }


@dataclass(slots=True)
class ReprocessingRequest:
    """Pedido de reprocessamento criado por ação explícita de operador."""

    id: str
    original_event_id: str
    service_name: str
    payload: dict[str, Any] | None
    requested_by: str
    max_attempts: int = 3
    attempts: int = 0
    status: ReprocessingStatus = ReprocessingStatus.PENDING
    last_error: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def can_attempt(self) -> bool:
        return self.status is ReprocessingStatus.PENDING and self.attempts < self.max_attempts

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "original_event_id": self.original_event_id,
            "service_name": self.service_name,
            "status": self.status.value,
            "attempts": self.attempts,
            "max_attempts": self.max_attempts,
            "requested_by": self.requested_by,
            "last_error": self.last_error,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


@dataclass(frozen=True, slots=True)
class IntegrationStats:
    """Agregado de saúde de todos os serviços."""

    total_services: int
    healthy_services: int
    degraded_services: int
    unhealthy_services: int
    total_events: int
    successful_events: int
    failed_events: int
    active_alerts: int
    average_response_time_ms: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_services": self.total_services,
            "healthy_services": self.healthy_services,
            "degraded_services": self.degraded_services,
            "unhealthy_services": self.unhealthy_services,
            "total_events": self.total_events,
            "successful_events": self.successful_events,
            "failed_events": self.failed_events,
            "active_alerts": self.active_alerts,
            "average_response_time_ms": round(self.average_response_time_ms, 2),
        }
