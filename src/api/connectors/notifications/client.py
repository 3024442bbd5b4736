"""Cliente do serviço de notificações (email/in-app)."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import httpx

from api.connectors.http_base import HttpClient, HttpError
from app.domain.errors import NotificationDeliveryError

logger = logging.getLogger(__name__)

SEND_PATH = "/api/notifications/send"


class NotificationServiceClient:
    """NotificationService via HTTP.

    Args:
        base_url: Base URL do serviço de notificações
        http_client: HttpClient com timeout/backoff configurados
        api_token: Bearer token de serviço (opcional)
    """

    def __init__(self, base_url: str, http_client: HttpClient, api_token: str = "") -> None:
        self._url = f"{base_url.rstrip('/')}{SEND_PATH}"
        self._http = http_client
        self._headers = {"Authorization": f"Bearer {api_token}"} if api_token else {}

    async def send(
        self,
        template_id: str,
        recipient: str,
        variables: dict[str, Any],
        priority: str,
        channels: Sequence[str],
    ) -> None:
        """Envia notificação.

        Raises:
            NotificationDeliveryError: Falha HTTP (o worker decide se retenta).
        """
        body = {
            "template_id": template_id,
            "recipient_id": recipient,
            "variables": variables,
            "priority": priority,
            "channels": list(channels),
        }
        try:
            await self._http.post(self._url, json=body, headers=self._headers)
        except (HttpError, httpx.HTTPError) as exc:
            raise NotificationDeliveryError(f"notification_failed:{template_id}") from exc


@dataclass
class LoggingNotificationService:
    """Serviço em memória (dev/test): apenas registra e loga."""

    sent: list[dict[str, Any]] = field(default_factory=list)
    failures_remaining: int = 0

    async def send(
        self,
        template_id: str,
        recipient: str,
        variables: dict[str, Any],
        priority: str,
        channels: Sequence[str],
    ) -> None:
        if self.failures_remaining > 0:
            self.failures_remaining -= 1
            raise NotificationDeliveryError(f"notification_failed:{template_id}")
        self.sent.append(
            {
                "template_id": template_id,
                "recipient": recipient,
                "variables": variables,
                "priority": priority,
                "channels": list(channels),
            }
        )
        logger.info(
            "notification_logged",
            extra={"template_id": template_id, "recipient": recipient, "priority": priority},
        )
