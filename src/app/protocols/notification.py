"""Protocolo do serviço de notificações (best-effort)."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol


class NotificationServiceProtocol(Protocol):
    """Entrega uma notificação. Falhas lançam NotificationDeliveryError."""

    async def send(
        self,
        template_id: str,
        recipient: str,
        variables: dict[str, Any],
        priority: str,
        channels: Sequence[str],
    ) -> None: ...
