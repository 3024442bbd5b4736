"""Settings do webhook do sistema de RH legado.

Configurações de assinatura, retry e processamento de eventos de colaborador.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from config.settings.base.core import BaseSettings

# Nome do serviço externo monitorado para eventos de webhook
WEBHOOK_SERVICE_NAME = "rh_legado_webhook"


@dataclass(frozen=True)
class WebhookSettings:
    """Configurações do gateway de webhook.

    Attributes:
        secret_key: Segredo compartilhado para HMAC-SHA256 do corpo bruto
        retry_attempts: Número máximo de tentativas do normalizador
        retry_delay_ms: Atraso base do backoff exponencial
        max_retry_delay_ms: Teto do atraso entre tentativas
        service_name: Nome registrado no monitor de integrações
        performance_warning_ms: Limite para alerta de lentidão por evento
        batch_concurrency: Eventos processados em paralelo por lote
    """

    secret_key: str = ""
    retry_attempts: int = 3
    retry_delay_ms: int = 1000
    max_retry_delay_ms: int = 10000
    service_name: str = WEBHOOK_SERVICE_NAME
    performance_warning_ms: int = 2000
    batch_concurrency: int = 10

    def validate(self, base: BaseSettings | None = None) -> list[str]:
        """Valida configurações do webhook.

        Args:
            base: BaseSettings para regras dependentes de ambiente.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []

        if not self.secret_key and (base is None or not base.is_development):
            errors.append("WEBHOOK_SECRET_KEY é obrigatório")

        if self.retry_attempts < 1:
            errors.append("WEBHOOK_RETRY_ATTEMPTS deve ser >= 1")

        if self.retry_delay_ms <= 0:
            errors.append("WEBHOOK_RETRY_DELAY_MS deve ser > 0")

        if self.max_retry_delay_ms < self.retry_delay_ms:
            errors.append("WEBHOOK_MAX_RETRY_DELAY_MS deve ser >= WEBHOOK_RETRY_DELAY_MS")

        if self.batch_concurrency < 1:
            errors.append("WEBHOOK_BATCH_CONCURRENCY deve ser >= 1")

        return errors


def _load_webhook_from_env() -> WebhookSettings:
    """Carrega WebhookSettings de variáveis de ambiente."""
    return WebhookSettings(
        secret_key=os.getenv("WEBHOOK_SECRET_KEY", ""),
        retry_attempts=int(os.getenv("WEBHOOK_RETRY_ATTEMPTS", "3")),
        retry_delay_ms=int(os.getenv("WEBHOOK_RETRY_DELAY_MS", "1000")),
        max_retry_delay_ms=int(os.getenv("WEBHOOK_MAX_RETRY_DELAY_MS", "10000")),
        service_name=os.getenv("WEBHOOK_SERVICE_NAME", WEBHOOK_SERVICE_NAME),
        performance_warning_ms=int(os.getenv("WEBHOOK_PERFORMANCE_WARNING_MS", "2000")),
        batch_concurrency=int(os.getenv("WEBHOOK_BATCH_CONCURRENCY", "10")),
    )


@lru_cache(maxsize=1)
def get_webhook_settings() -> WebhookSettings:
    """Retorna instância cacheada de WebhookSettings."""
    return _load_webhook_from_env()
