"""Settings dos colaboradores externos (workflow de aprovação e notificações).

URLs vazias selecionam clients em memória que apenas logam (desenvolvimento).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from config.settings.base.core import BaseSettings


@dataclass(frozen=True)
class IntegrationClientSettings:
    """Configurações de chamadas de saída.

    Attributes:
        approval_workflow_base_url: Base URL do workflow de aprovação
        notification_service_base_url: Base URL do serviço de notificações
        http_timeout_seconds: Timeout por requisição
        http_max_retries: Retries do client HTTP para status retentáveis
        api_token: Bearer token de serviço (opcional)
        notification_queue_maxsize: Capacidade da fila de notificações
        notification_max_attempts: Tentativas do worker por notificação
        hr_team_recipient: Destinatário de alertas de cargo
        admin_team_recipient: Destinatário de alertas de integração
    """

    approval_workflow_base_url: str = ""
    notification_service_base_url: str = ""
    http_timeout_seconds: float = 5.0
    http_max_retries: int = 2
    api_token: str = ""
    notification_queue_maxsize: int = 1000
    notification_max_attempts: int = 3
    hr_team_recipient: str = "rh_team"
    admin_team_recipient: str = "admin_team"

    def validate(self, base: BaseSettings) -> list[str]:
        """Valida configurações de clients externos.

        Args:
            base: BaseSettings para regras dependentes de ambiente.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []

        if not base.is_development and not self.approval_workflow_base_url:
            errors.append("APPROVAL_WORKFLOW_BASE_URL é obrigatório fora de development")

        if not base.is_development and not self.notification_service_base_url:
            errors.append("NOTIFICATION_SERVICE_BASE_URL é obrigatório fora de development")

        if self.http_timeout_seconds <= 0:
            errors.append("INTEGRATION_HTTP_TIMEOUT_SECONDS deve ser > 0")

        if self.notification_queue_maxsize < 1:
            errors.append("NOTIFICATION_QUEUE_MAXSIZE deve ser >= 1")

        if self.notification_max_attempts < 1:
            errors.append("NOTIFICATION_MAX_ATTEMPTS deve ser >= 1")

        return errors


def _load_integration_clients_from_env() -> IntegrationClientSettings:
    """Carrega IntegrationClientSettings de variáveis de ambiente."""
    return IntegrationClientSettings(
        approval_workflow_base_url=os.getenv("APPROVAL_WORKFLOW_BASE_URL", "").rstrip("/"),
        notification_service_base_url=os.getenv("NOTIFICATION_SERVICE_BASE_URL", "").rstrip("/"),
        http_timeout_seconds=float(os.getenv("INTEGRATION_HTTP_TIMEOUT_SECONDS", "5")),
        http_max_retries=int(os.getenv("INTEGRATION_HTTP_MAX_RETRIES", "2")),
        api_token=os.getenv("INTEGRATION_API_TOKEN", ""),
        notification_queue_maxsize=int(os.getenv("NOTIFICATION_QUEUE_MAXSIZE", "1000")),
        notification_max_attempts=int(os.getenv("NOTIFICATION_MAX_ATTEMPTS", "3")),
        hr_team_recipient=os.getenv("HR_TEAM_RECIPIENT", "rh_team"),
        admin_team_recipient=os.getenv("ADMIN_TEAM_RECIPIENT", "admin_team"),
    )


@lru_cache(maxsize=1)
def get_integration_client_settings() -> IntegrationClientSettings:
    """Retorna instância cacheada de IntegrationClientSettings."""
    return _load_integration_clients_from_env()
