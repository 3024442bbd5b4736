"""Testes do monitor de saúde das integrações."""

from __future__ import annotations

import asyncio

import pytest

from api.connectors.notifications import LoggingNotificationService
from app.domain.errors import IntegrationNotFoundError
from app.domain.integration import (
    AlertSeverity,
    AlertType,
    HealthState,
    IntegrationEventStatus,
    IntegrationEventType,
    ReprocessingStatus,
)
from app.infra.stores import MemoryAuditStore, MemoryIntegrationStore
from app.services import IntegrationHealthMonitor, NotificationDispatcher
from config.settings import MonitoringSettings
from tests.fakes.pipeline import FakeClock, no_sleep

SERVICE = "platform_auth"

SUCCESS = (IntegrationEventType.PROCESSED, IntegrationEventStatus.SUCCESS)
FAILURE = (IntegrationEventType.FAILED, IntegrationEventStatus.FAILURE)


def _monitor(store=None, clock=None, **settings):
    settings.setdefault("known_services", (SERVICE,))
    settings.setdefault("sweep_enabled", False)
    store = store or MemoryIntegrationStore()
    notifications = LoggingNotificationService()
    dispatcher = NotificationDispatcher(notifications, sleep=no_sleep)
    audit = MemoryAuditStore()
    monitor = IntegrationHealthMonitor(
        store,
        audit,
        dispatcher,
        MonitoringSettings(**settings),
        clock=clock or FakeClock(),
    )
    return monitor, store, dispatcher, notifications, audit


async def _record(monitor, kind, times=1, response_time_ms=100.0, service=SERVICE):
    for _ in range(times):
        await monitor.record_event(service, kind[0], kind[1], response_time_ms)


@pytest.mark.asyncio
async def test_counters_keep_total_equal_to_success_plus_failure() -> None:
    monitor, *_ = _monitor()

    await _record(monitor, SUCCESS, 4)
    await _record(monitor, FAILURE, 1)
    await monitor.record_event(
        SERVICE, IntegrationEventType.RETRY, IntegrationEventStatus.RETRY, 10
    )

    status = await monitor.get_service_status(SERVICE)
    assert status.total_calls == 6
    assert status.total_calls == status.successful_calls + status.failed_calls
    assert status.failed_calls == 2
    assert status.error_rate == pytest.approx(2 / 6)


@pytest.mark.asyncio
async def test_response_time_is_cumulative_average() -> None:
    monitor, *_ = _monitor()

    for value in (100.0, 200.0, 600.0):
        await _record(monitor, SUCCESS, response_time_ms=value)

    status = await monitor.get_service_status(SERVICE)
    assert status.average_response_time_ms == pytest.approx(300.0)


@pytest.mark.asyncio
async def test_known_service_starts_unknown_and_becomes_healthy() -> None:
    monitor, *_ = _monitor()
    monitor.ensure_services([SERVICE])

    assert (await monitor.get_service_status(SERVICE)).status is HealthState.UNKNOWN

    await _record(monitor, SUCCESS)

    assert (await monitor.get_service_status(SERVICE)).status is HealthState.HEALTHY


@pytest.mark.asyncio
async def test_error_rate_at_threshold_is_still_healthy() -> None:
    monitor, *_ = _monitor()

    await _record(monitor, SUCCESS, 9)
    await _record(monitor, FAILURE, 1)

    assert (await monitor.get_service_status(SERVICE)).status is HealthState.HEALTHY
    assert monitor.get_active_alerts() == []


@pytest.mark.asyncio
async def test_error_rate_above_threshold_degrades_and_alerts() -> None:
    monitor, _, dispatcher, notifications, audit = _monitor()

    await _record(monitor, SUCCESS, 9)
    await _record(monitor, FAILURE, 2)

    status = await monitor.get_service_status(SERVICE)
    assert status.status is HealthState.DEGRADED
    alerts = monitor.get_active_alerts()
    assert [a.alert_type for a in alerts] == [AlertType.HIGH_ERROR_RATE]
    assert alerts[0].severity is AlertSeverity.HIGH
    assert "alert_created" in audit.actions()

    await dispatcher.process_pending()
    assert notifications.sent[0]["template_id"] == "integration_alert"
    assert notifications.sent[0]["recipient"] == "admin_team"


@pytest.mark.asyncio
async def test_slow_average_degrades_with_medium_alert() -> None:
    monitor, *_ = _monitor(response_time_threshold_ms=1000)

    await _record(monitor, SUCCESS, response_time_ms=3000)

    assert (await monitor.get_service_status(SERVICE)).status is HealthState.DEGRADED
    alert = monitor.get_active_alerts()[0]
    assert alert.alert_type is AlertType.SLOW_RESPONSE
    assert alert.severity is AlertSeverity.MEDIUM


@pytest.mark.asyncio
async def test_consecutive_failures_mark_unhealthy_with_single_alert_per_type() -> None:
    monitor, _, dispatcher, _, _ = _monitor(consecutive_failures_threshold=3)

    await _record(monitor, FAILURE, 3)
    types_after_threshold = sorted(a.alert_type for a in monitor.get_active_alerts())
    await _record(monitor, FAILURE, 5)

    assert (await monitor.get_service_status(SERVICE)).status is HealthState.UNHEALTHY
    assert types_after_threshold == [AlertType.HIGH_ERROR_RATE, AlertType.SERVICE_DOWN]
    assert sorted(a.alert_type for a in monitor.get_active_alerts()) == types_after_threshold
    critical = next(a for a in monitor.get_active_alerts() if a.alert_type is AlertType.SERVICE_DOWN)
    assert critical.severity is AlertSeverity.CRITICAL
    assert dispatcher.pending == 2


@pytest.mark.asyncio
async def test_success_resets_consecutive_failures() -> None:
    monitor, *_ = _monitor()

    await _record(monitor, FAILURE, 3)
    await _record(monitor, SUCCESS)

    status = await monitor.get_service_status(SERVICE)
    assert status.consecutive_failures == 0
    assert status.last_successful_call is not None


@pytest.mark.asyncio
async def test_resolved_alert_can_fire_again() -> None:
    monitor, store, *_ = _monitor(response_time_threshold_ms=1000)
    await _record(monitor, SUCCESS, response_time_ms=5000)
    alert = monitor.get_active_alerts()[0]

    resolved = await monitor.resolve_alert(alert.id, "operador-1")

    assert resolved.is_active is False
    assert resolved.resolved_by == "operador-1"
    assert resolved.resolved_at is not None
    assert monitor.get_active_alerts() == []
    assert (await store.get_alert(alert.id)).is_active is False

    await _record(monitor, SUCCESS, response_time_ms=5000)

    again = monitor.get_active_alerts()
    assert len(again) == 1
    assert again[0].id != alert.id


@pytest.mark.asyncio
async def test_resolve_unknown_alert_raises() -> None:
    monitor, *_ = _monitor()

    with pytest.raises(IntegrationNotFoundError):
        await monitor.resolve_alert("alert_inexistente", "operador-1")


@pytest.mark.asyncio
async def test_unknown_service_status_raises() -> None:
    monitor, *_ = _monitor()

    with pytest.raises(IntegrationNotFoundError):
        await monitor.get_service_status("nunca-visto")


@pytest.mark.asyncio
async def test_store_failure_does_not_block_statistics() -> None:
    class BrokenStore(MemoryIntegrationStore):
        async def append_event(self, event) -> None:
            raise ConnectionError("banco fora do ar")

    monitor, *_ = _monitor(store=BrokenStore())

    event_id = await monitor.record_event(
        SERVICE, IntegrationEventType.PROCESSED, IntegrationEventStatus.SUCCESS, 50
    )

    assert event_id
    assert (await monitor.get_service_status(SERVICE)).total_calls == 1


@pytest.mark.asyncio
async def test_stats_aggregate_all_services() -> None:
    monitor, *_ = _monitor()

    await _record(monitor, SUCCESS, 3, response_time_ms=100, service="a")
    await _record(monitor, FAILURE, 1, response_time_ms=500, service="b")

    stats = await monitor.get_integration_stats()
    assert stats.total_services == 2
    assert stats.total_events == 4
    assert stats.successful_events == 3
    assert stats.failed_events == 1
    assert stats.healthy_services == 1
    assert stats.average_response_time_ms == pytest.approx(200.0)


# ──────────────────────────────────────────────────────────────────────────────
# Varredura e snapshots
# ──────────────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_sweep_flags_silent_service_after_window() -> None:
    clock = FakeClock()
    monitor, store, *_ = _monitor(clock=clock, service_down_window_seconds=300)
    monitor.ensure_services([SERVICE])

    clock.advance(120)
    assert await monitor.run_health_sweep() == []

    clock.advance(200)
    assert await monitor.run_health_sweep() == [SERVICE]

    status = await monitor.get_service_status(SERVICE)
    assert status.status is HealthState.UNHEALTHY
    events = await store.list_events(SERVICE)
    assert events[0].status is IntegrationEventStatus.FAILURE
    assert "Nenhuma atividade recente" in events[0].error

    clock.advance(60)
    assert await monitor.run_health_sweep() == []


@pytest.mark.asyncio
async def test_sweep_ignores_service_with_recent_success() -> None:
    clock = FakeClock()
    monitor, *_ = _monitor(clock=clock, service_down_window_seconds=300)
    await _record(monitor, SUCCESS)

    clock.advance(299)

    assert await monitor.run_health_sweep() == []


@pytest.mark.asyncio
async def test_snapshots_survive_restart() -> None:
    store = MemoryIntegrationStore()
    first, *_ = _monitor(store=store, consecutive_failures_threshold=2)
    await _record(first, SUCCESS, 2)
    await _record(first, FAILURE, 2)

    assert await first.flush_snapshots() == 1
    assert await first.flush_snapshots() == 0

    second, *_ = _monitor(store=store, consecutive_failures_threshold=2)
    assert await second.load_snapshots() == 1

    status = await second.get_service_status(SERVICE)
    assert (status.total_calls, status.failed_calls) == (4, 2)
    assert status.status is HealthState.UNHEALTHY
    assert {a.alert_type for a in second.get_active_alerts()} == {
        a.alert_type for a in first.get_active_alerts()
    }


# ──────────────────────────────────────────────────────────────────────────────
# Reprocessamento
# ──────────────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_request_reprocessing_copies_original_payload() -> None:
    monitor, store, _, _, audit = _monitor()
    event_id = await monitor.record_event(
        SERVICE,
        IntegrationEventType.FAILED,
        IntegrationEventStatus.FAILURE,
        10,
        payload={"event_type": "colaborador.admitido", "data": {}},
    )

    request = await monitor.request_reprocessing(event_id, "operador-1", max_attempts=2)

    assert request.status is ReprocessingStatus.PENDING
    assert request.original_event_id == event_id
    assert request.payload == {"event_type": "colaborador.admitido", "data": {}}
    assert request.max_attempts == 2
    assert (await store.get_reprocessing_request(request.id)) is request
    assert "reprocessing_requested" in audit.actions()


@pytest.mark.asyncio
async def test_request_reprocessing_for_unknown_event_raises() -> None:
    monitor, *_ = _monitor()

    with pytest.raises(IntegrationNotFoundError):
        await monitor.request_reprocessing("evento-inexistente", "operador-1")


class _YieldingIntegrationStore(MemoryIntegrationStore):
    """Cede o event loop a cada escrita, como um backend real faria."""

    async def append_event(self, event) -> None:
        await asyncio.sleep(0)
        await super().append_event(event)

    async def save_alert(self, alert) -> None:
        await asyncio.sleep(0)
        await super().save_alert(alert)


@pytest.mark.asyncio
async def test_concurrent_events_keep_counters_and_single_alert_per_type() -> None:
    monitor, store, *_ = _monitor(store=_YieldingIntegrationStore())

    await asyncio.gather(
        *(
            monitor.record_event(
                SERVICE,
                *(FAILURE if i % 4 == 0 else SUCCESS),
                6000.0,
            )
            for i in range(200)
        )
    )

    status = await monitor.get_service_status(SERVICE)
    assert status.total_calls == 200
    assert status.successful_calls + status.failed_calls == 200
    assert status.failed_calls == 50

    active_types = [a.alert_type for a in monitor.get_active_alerts()]
    assert len(active_types) == len(set(active_types))
    assert {AlertType.HIGH_ERROR_RATE, AlertType.SLOW_RESPONSE} <= set(active_types)
    stored_types = [a.alert_type for a in await store.list_active_alerts()]
    assert sorted(stored_types) == sorted(active_types)
    assert len(await store.list_events(SERVICE, limit=500)) == 200
