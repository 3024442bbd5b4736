"""NotificationIntent — pedido de notificação entregue pelo worker da fila."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

NotificationPriority = Literal["low", "normal", "high", "urgent"]

DEFAULT_CHANNELS = ("email", "inapp")


@dataclass(frozen=True, slots=True)
class NotificationIntent:
    """Notificação a ser entregue de forma assíncrona e best-effort."""

    template_id: str
    recipient: str
    variables: dict[str, Any] = field(default_factory=dict)
    priority: NotificationPriority = "high"
    channels: tuple[str, ...] = DEFAULT_CHANNELS
