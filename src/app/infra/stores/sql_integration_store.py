"""Log relacional de integrações (SQLAlchemy).

Eventos são append-only; status, alertas e reprocessamentos usam upsert
por chave primária (session.merge).
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import TYPE_CHECKING, TypeVar

from sqlalchemy import select, update
from sqlalchemy.exc import OperationalError

from app.domain.integration import (
    AlertSeverity,
    AlertType,
    HealthState,
    IntegrationAlert,
    IntegrationEvent,
    IntegrationEventStatus,
    IntegrationEventType,
    IntegrationStatus,
    ReprocessingRequest,
    ReprocessingStatus,
    utcnow,
)
from app.infra.stores.sql_models import (
    IntegrationAlertRow,
    IntegrationEventRow,
    IntegrationStatusRow,
    ReprocessingRequestRow,
)
from app.protocols.integration_store import IntegrationStoreProtocol
from utils.errors import DatabaseUnavailableError

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from sqlalchemy.orm import Session, sessionmaker

T = TypeVar("T")


def _aware(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


# ──────────────────────────────────────────────────────────────────────────────
# Conversões linha <-> domínio
# ──────────────────────────────────────────────────────────────────────────────


def _event_from_row(row: IntegrationEventRow) -> IntegrationEvent:
    return IntegrationEvent(
        id=row.id,
        service_name=row.service_name,
        event_type=IntegrationEventType(row.event_type),
        status=IntegrationEventStatus(row.status),
        response_time_ms=row.response_time_ms or 0.0,
        timestamp=_aware(row.timestamp),  # type: ignore[arg-type]
        payload=row.payload,
        error=row.error_message,
        correlation_id=row.correlation_id,
    )


def _status_from_row(row: IntegrationStatusRow) -> IntegrationStatus:
    return IntegrationStatus(
        service_name=row.service_name,
        status=HealthState(row.status),
        total_calls=row.total_calls,
        successful_calls=row.successful_calls,
        failed_calls=row.failed_calls,
        consecutive_failures=row.consecutive_failures,
        average_response_time_ms=row.average_response_time_ms,
        last_successful_call=_aware(row.last_successful_call),
        last_failed_call=_aware(row.last_failed_call),
        last_health_check=_aware(row.last_health_check),
        error_rate=row.error_rate,
        tracking_since=_aware(row.tracking_since) or utcnow(),
    )


def _status_to_row(status: IntegrationStatus) -> IntegrationStatusRow:
    return IntegrationStatusRow(
        service_name=status.service_name,
        status=status.status.value,
        total_calls=status.total_calls,
        successful_calls=status.successful_calls,
        failed_calls=status.failed_calls,
        consecutive_failures=status.consecutive_failures,
        average_response_time_ms=status.average_response_time_ms,
        error_rate=status.error_rate,
        last_successful_call=status.last_successful_call,
        last_failed_call=status.last_failed_call,
        last_health_check=status.last_health_check,
        tracking_since=status.tracking_since,
        updated_at=status.updated_at,
    )


def _alert_from_row(row: IntegrationAlertRow) -> IntegrationAlert:
    return IntegrationAlert(
        id=row.id,
        service_name=row.service_name,
        alert_type=AlertType(row.alert_type),
        severity=AlertSeverity(row.severity),
        message=row.message,
        threshold=row.threshold,
        current_value=row.current_value,
        created_at=_aware(row.created_at),  # type: ignore[arg-type]
        is_active=bool(row.is_active),
        resolved_at=_aware(row.resolved_at),
        resolved_by=row.resolved_by,
    )


def _alert_to_row(alert: IntegrationAlert) -> IntegrationAlertRow:
    return IntegrationAlertRow(
        id=alert.id,
        service_name=alert.service_name,
        alert_type=alert.alert_type.value,
        severity=alert.severity.value,
        message=alert.message,
        threshold=alert.threshold,
        current_value=alert.current_value,
        is_active=alert.is_active,
        created_at=alert.created_at,
        resolved_at=alert.resolved_at,
        resolved_by=alert.resolved_by,
    )


def _request_from_row(row: ReprocessingRequestRow) -> ReprocessingRequest:
    return ReprocessingRequest(
        id=row.id,
        original_event_id=row.original_event_id,
        service_name=row.service_name,
        payload=row.payload,
        requested_by=row.requested_by,
        max_attempts=row.max_attempts,
        attempts=row.attempts,
        status=ReprocessingStatus(row.status),
        last_error=row.last_error,
        created_at=_aware(row.created_at),  # type: ignore[arg-type]
        updated_at=_aware(row.updated_at),  # type: ignore[arg-type]
    )


def _request_to_row(request: ReprocessingRequest) -> ReprocessingRequestRow:
    return ReprocessingRequestRow(
        id=request.id,
        original_event_id=request.original_event_id,
        service_name=request.service_name,
        payload=request.payload,
        status=request.status.value,
        attempts=request.attempts,
        max_attempts=request.max_attempts,
        requested_by=request.requested_by,
        last_error=request.last_error,
        created_at=request.created_at,
        updated_at=request.updated_at,
    )


# ──────────────────────────────────────────────────────────────────────────────
# Store
# ──────────────────────────────────────────────────────────────────────────────


class SqlIntegrationStore(IntegrationStoreProtocol):
    """Persistência do monitor em banco relacional.

    Args:
        session_factory: sessionmaker ligado ao engine do serviço
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def _execute(self, operation: Callable[[Session], T], write: bool = False) -> T:
        session = self._session_factory()
        try:
            if write:
                with session.begin():
                    return operation(session)
            return operation(session)
        except OperationalError as exc:
            raise DatabaseUnavailableError("Falha ao acessar log de integrações") from exc
        finally:
            session.close()

    async def _run(self, operation: Callable[[Session], T], write: bool = False) -> T:
        return await asyncio.to_thread(self._execute, operation, write)

    async def append_event(self, event: IntegrationEvent) -> None:
        row = IntegrationEventRow(
            id=event.id,
            service_name=event.service_name,
            event_type=event.event_type.value,
            status=event.status.value,
            payload=event.payload,
            response_time_ms=event.response_time_ms,
            error_message=event.error,
            timestamp=event.timestamp,
            correlation_id=event.correlation_id,
        )
        await self._run(lambda session: session.add(row), write=True)

    async def get_event(self, event_id: str) -> IntegrationEvent | None:
        def _get(session: Session) -> IntegrationEvent | None:
            row = session.get(IntegrationEventRow, event_id)
            return _event_from_row(row) if row is not None else None

        return await self._run(_get)

    async def list_events(
        self,
        service_name: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[IntegrationEvent]:
        def _list(session: Session) -> list[IntegrationEvent]:
            stmt = select(IntegrationEventRow)
            if service_name:
                stmt = stmt.where(IntegrationEventRow.service_name == service_name)
            stmt = stmt.order_by(IntegrationEventRow.timestamp.desc()).limit(limit).offset(offset)
            return [_event_from_row(row) for row in session.execute(stmt).scalars()]

        return await self._run(_list)

    async def save_statuses(self, statuses: Sequence[IntegrationStatus]) -> None:
        rows = [_status_to_row(status) for status in statuses]

        def _save(session: Session) -> None:
            for row in rows:
                session.merge(row)

        await self._run(_save, write=True)

    async def load_statuses(self) -> list[IntegrationStatus]:
        def _load(session: Session) -> list[IntegrationStatus]:
            rows = session.execute(select(IntegrationStatusRow)).scalars()
            return [_status_from_row(row) for row in rows]

        return await self._run(_load)

    async def save_alert(self, alert: IntegrationAlert) -> None:
        row = _alert_to_row(alert)
        await self._run(lambda session: session.merge(row), write=True)

    async def get_alert(self, alert_id: str) -> IntegrationAlert | None:
        def _get(session: Session) -> IntegrationAlert | None:
            row = session.get(IntegrationAlertRow, alert_id)
            return _alert_from_row(row) if row is not None else None

        return await self._run(_get)

    async def list_active_alerts(self) -> list[IntegrationAlert]:
        def _list(session: Session) -> list[IntegrationAlert]:
            stmt = (
                select(IntegrationAlertRow)
                .where(IntegrationAlertRow.is_active.is_(True))
                .order_by(IntegrationAlertRow.created_at.desc())
            )
            return [_alert_from_row(row) for row in session.execute(stmt).scalars()]

        return await self._run(_list)

    async def save_reprocessing_request(self, request: ReprocessingRequest) -> None:
        row = _request_to_row(request)
        await self._run(lambda session: session.merge(row), write=True)

    async def get_reprocessing_request(self, request_id: str) -> ReprocessingRequest | None:
        def _get(session: Session) -> ReprocessingRequest | None:
            row = session.get(ReprocessingRequestRow, request_id)
            return _request_from_row(row) if row is not None else None

        return await self._run(_get)

    async def claim_reprocessing_request(
        self, request_id: str, claimed_at: datetime
    ) -> ReprocessingRequest | None:
        def _claim(session: Session) -> ReprocessingRequest | None:
            stmt = (
                update(ReprocessingRequestRow)
                .where(
                    ReprocessingRequestRow.id == request_id,
                    ReprocessingRequestRow.status == ReprocessingStatus.PENDING.value,
                    ReprocessingRequestRow.attempts < ReprocessingRequestRow.max_attempts,
                )
                .values(
                    status=ReprocessingStatus.PROCESSING.value,
                    attempts=ReprocessingRequestRow.attempts + 1,
                    updated_at=claimed_at,
                )
                .execution_options(synchronize_session=False)
            )
            if session.execute(stmt).rowcount != 1:
                return None
            row = session.get(ReprocessingRequestRow, request_id)
            return _request_from_row(row) if row is not None else None

        return await self._run(_claim, write=True)
