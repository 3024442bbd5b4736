"""Settings do monitor de saúde das integrações."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache

DEFAULT_KNOWN_SERVICES = (
    "rh_legado_webhook",
    "platform_auth",
    "platform_authz",
    "platform_notifications",
)


@dataclass(frozen=True)
class MonitoringSettings:
    """Limiares e agenda do monitor de integrações.

    Attributes:
        health_check_interval_seconds: Intervalo da varredura periódica
        consecutive_failures_threshold: Falhas seguidas para marcar unhealthy
        error_rate_threshold: Fração de falhas para marcar degraded
        response_time_threshold_ms: Média de latência para marcar degraded
        service_down_window_seconds: Janela sem sucesso para marcar unhealthy
        known_services: Serviços conhecidos desde o startup
        sweep_enabled: Liga/desliga a varredura periódica
    """

    health_check_interval_seconds: float = 30.0
    consecutive_failures_threshold: int = 5
    error_rate_threshold: float = 0.10
    response_time_threshold_ms: float = 5000.0
    service_down_window_seconds: float = 300.0
    known_services: tuple[str, ...] = field(default=DEFAULT_KNOWN_SERVICES)
    sweep_enabled: bool = True

    def validate(self) -> list[str]:
        """Valida limiares do monitor.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []

        if self.health_check_interval_seconds <= 0:
            errors.append("MONITOR_HEALTH_CHECK_INTERVAL_SECONDS deve ser > 0")

        if self.consecutive_failures_threshold < 1:
            errors.append("MONITOR_CONSECUTIVE_FAILURES_THRESHOLD deve ser >= 1")

        if not 0 < self.error_rate_threshold < 1:
            errors.append("MONITOR_ERROR_RATE_THRESHOLD deve estar entre 0 e 1")

        if self.response_time_threshold_ms <= 0:
            errors.append("MONITOR_RESPONSE_TIME_THRESHOLD_MS deve ser > 0")

        if self.service_down_window_seconds <= 0:
            errors.append("MONITOR_SERVICE_DOWN_WINDOW_SECONDS deve ser > 0")

        return errors


def _parse_services(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return DEFAULT_KNOWN_SERVICES
    return tuple(name.strip() for name in raw.split(",") if name.strip())


def _load_monitoring_from_env() -> MonitoringSettings:
    """Carrega MonitoringSettings de variáveis de ambiente."""
    return MonitoringSettings(
        health_check_interval_seconds=float(
            os.getenv("MONITOR_HEALTH_CHECK_INTERVAL_SECONDS", "30")
        ),
        consecutive_failures_threshold=int(
            os.getenv("MONITOR_CONSECUTIVE_FAILURES_THRESHOLD", "5")
        ),
        error_rate_threshold=float(os.getenv("MONITOR_ERROR_RATE_THRESHOLD", "0.10")),
        response_time_threshold_ms=float(
            os.getenv("MONITOR_RESPONSE_TIME_THRESHOLD_MS", "5000")
        ),
        service_down_window_seconds=float(
            os.getenv("MONITOR_SERVICE_DOWN_WINDOW_SECONDS", "300")
        ),
        known_services=_parse_services(os.getenv("MONITOR_KNOWN_SERVICES")),
        sweep_enabled=os.getenv("MONITOR_SWEEP_ENABLED", "true").lower() in ("true", "1"),
    )


@lru_cache(maxsize=1)
def get_monitoring_settings() -> MonitoringSettings:
    """Retorna instância cacheada de MonitoringSettings."""
    return _load_monitoring_from_env()
