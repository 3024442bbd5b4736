"""Protocolo do log relacional de integrações."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from app.domain.integration import (
        IntegrationAlert,
        IntegrationEvent,
        IntegrationStatus,
        ReprocessingRequest,
    )


class IntegrationStoreProtocol(ABC):
    """Persistência de eventos, snapshots de status, alertas e reprocessamentos."""

    @abstractmethod
    async def append_event(self, event: IntegrationEvent) -> None:
        """Append imutável de evento."""

    @abstractmethod
    async def get_event(self, event_id: str) -> IntegrationEvent | None: ...

    @abstractmethod
    async def list_events(
        self,
        service_name: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[IntegrationEvent]:
        """Eventos mais recentes primeiro."""

    @abstractmethod
    async def save_statuses(self, statuses: Sequence[IntegrationStatus]) -> None:
        """Upsert de snapshots de status por serviço."""

    @abstractmethod
    async def load_statuses(self) -> list[IntegrationStatus]: ...

    @abstractmethod
    async def save_alert(self, alert: IntegrationAlert) -> None:
        """Insert ou update por id."""

    @abstractmethod
    async def get_alert(self, alert_id: str) -> IntegrationAlert | None: ...

    @abstractmethod
    async def list_active_alerts(self) -> list[IntegrationAlert]: ...

    @abstractmethod
    async def save_reprocessing_request(self, request: ReprocessingRequest) -> None:
        """Insert ou update por id."""

    @abstractmethod
    async def get_reprocessing_request(self, request_id: str) -> ReprocessingRequest | None: ...

    @abstractmethod
    async def claim_reprocessing_request(
        self, request_id: str, claimed_at: datetime
    ) -> ReprocessingRequest | None:
        """Marca o pedido como PROCESSING e incrementa attempts numa única operação.

        Só reivindica pedidos PENDING com tentativas restantes; retorna None
        quando o pedido não existe ou não pode ser reivindicado.
        """
