"""Log de integrações em memória — apenas dev/test."""

from __future__ import annotations

from typing import TYPE_CHECKING

from app.domain.integration import ReprocessingStatus
from app.protocols.integration_store import IntegrationStoreProtocol

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from app.domain.integration import (
        IntegrationAlert,
        IntegrationEvent,
        IntegrationStatus,
        ReprocessingRequest,
    )


class MemoryIntegrationStore(IntegrationStoreProtocol):
    """Eventos, snapshots, alertas e reprocessamentos em memória."""

    def __init__(self, max_events: int = 10000) -> None:
        self._events: list[IntegrationEvent] = []
        self._events_by_id: dict[str, IntegrationEvent] = {}
        self._statuses: dict[str, IntegrationStatus] = {}
        self._alerts: dict[str, IntegrationAlert] = {}
        self._reprocessing: dict[str, ReprocessingRequest] = {}
        self._max_events = max_events

    async def append_event(self, event: IntegrationEvent) -> None:
        self._events.append(event)
        self._events_by_id[event.id] = event
        if len(self._events) > self._max_events:
            dropped = self._events[: -self._max_events]
            self._events = self._events[-self._max_events:]
            for old in dropped:
                self._events_by_id.pop(old.id, None)

    async def get_event(self, event_id: str) -> IntegrationEvent | None:
        return self._events_by_id.get(event_id)

    async def list_events(
        self,
        service_name: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[IntegrationEvent]:
        events = [
            e for e in reversed(self._events)
            if service_name is None or e.service_name == service_name
        ]
        return events[offset : offset + limit]

    async def save_statuses(self, statuses: Sequence[IntegrationStatus]) -> None:
        for status in statuses:
            self._statuses[status.service_name] = status.snapshot()

    async def load_statuses(self) -> list[IntegrationStatus]:
        return [status.snapshot() for status in self._statuses.values()]

    async def save_alert(self, alert: IntegrationAlert) -> None:
        self._alerts[alert.id] = alert

    async def get_alert(self, alert_id: str) -> IntegrationAlert | None:
        return self._alerts.get(alert_id)

    async def list_active_alerts(self) -> list[IntegrationAlert]:
        active = [alert for alert in self._alerts.values() if alert.is_active]
        return sorted(active, key=lambda a: a.created_at, reverse=True)

    async def save_reprocessing_request(self, request: ReprocessingRequest) -> None:
        self._reprocessing[request.id] = request

    async def get_reprocessing_request(self, request_id: str) -> ReprocessingRequest | None:
        return self._reprocessing.get(request_id)

    async def claim_reprocessing_request(
        self, request_id: str, claimed_at: datetime
    ) -> ReprocessingRequest | None:
        # Sem await entre a checagem e a escrita: atômico no event loop
        request = self._reprocessing.get(request_id)
        if request is None or not request.can_attempt:
            return None
        request.status = ReprocessingStatus.PROCESSING
        request.attempts += 1
        request.updated_at = claimed_at
        return request
