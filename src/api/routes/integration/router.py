"""Endpoints do monitor de integrações (dashboard, alertas, reprocessamento).

Identidade do operador vem do header `x-user-id` (autenticação fica no
gateway da plataforma).
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request

from api.routes.integration.schemas import (
    RecordEventRequest,
    ReprocessRequest,
    ResolveAlertRequest,
)
from api.routes.state import get_pipeline
from app.domain.errors import IntegrationNotFoundError, ReprocessingNotAllowedError

logger = logging.getLogger(__name__)

router = APIRouter()

USER_HEADER = "x-user-id"
MAX_EVENTS_PAGE = 200
DASHBOARD_RECENT_EVENTS = 20


def _operator(request: Request) -> str:
    return request.headers.get(USER_HEADER) or "unknown"


@router.get("/dashboard")
async def get_dashboard(request: Request) -> dict[str, Any]:
    monitor = get_pipeline(request).monitor
    statuses, stats, events = await asyncio.gather(
        monitor.get_statuses(),
        monitor.get_integration_stats(),
        monitor.get_recent_events(None, DASHBOARD_RECENT_EVENTS),
    )
    return {
        "statuses": [s.to_dict() for s in statuses],
        "stats": stats.to_dict(),
        "alerts": [a.to_dict() for a in monitor.get_active_alerts()],
        "recent_events": [e.to_dict() for e in events],
        "timestamp": datetime.now(UTC).isoformat(),
    }


@router.get("/services")
async def list_services(request: Request) -> dict[str, Any]:
    statuses = await get_pipeline(request).monitor.get_statuses()
    return {"services": [s.to_dict() for s in statuses]}


@router.get("/services/{service_name}/status")
async def get_service_status(service_name: str, request: Request) -> dict[str, Any]:
    try:
        status = await get_pipeline(request).monitor.get_service_status(service_name)
    except IntegrationNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return status.to_dict()


@router.get("/events")
async def list_events(
    request: Request,
    service: str | None = None,
    limit: int = Query(default=50, ge=1),
    offset: int = Query(default=0, ge=0),
) -> dict[str, Any]:
    """Eventos mais recentes primeiro (limite máximo de 200 por página)."""
    page = min(limit, MAX_EVENTS_PAGE)
    events = await get_pipeline(request).monitor.get_recent_events(service, page, offset)
    return {
        "events": [e.to_dict() for e in events],
        "pagination": {"limit": page, "offset": offset, "total": len(events)},
    }


@router.post("/events")
async def record_event(body: RecordEventRequest, request: Request) -> dict[str, Any]:
    """Registra evento reportado por outro serviço da plataforma."""
    event_id = await get_pipeline(request).monitor.record_event(
        body.service_name,
        body.event_type,
        body.status,
        body.response_time_ms,
        payload=body.payload,
        error=body.error,
        correlation_id=body.correlation_id,
    )
    return {"success": True, "event_id": event_id}


@router.post("/events/{event_id}/reprocess")
async def request_reprocessing(
    event_id: str,
    request: Request,
    body: ReprocessRequest | None = None,
) -> dict[str, Any]:
    """Cria pedido de reprocessamento; execução é um passo separado."""
    max_attempts = body.max_attempts if body else 3
    try:
        reprocessing = await get_pipeline(request).monitor.request_reprocessing(
            event_id, _operator(request), max_attempts
        )
    except IntegrationNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {"success": True, "request_id": reprocessing.id, "request": reprocessing.to_dict()}


@router.post("/reprocessing/{request_id}/execute")
async def execute_reprocessing(request_id: str, request: Request) -> dict[str, Any]:
    try:
        result = await get_pipeline(request).reprocessing.execute(
            request_id, executed_by=_operator(request)
        )
    except IntegrationNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ReprocessingNotAllowedError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return result.to_dict()


@router.get("/alerts")
async def list_alerts(request: Request) -> dict[str, Any]:
    alerts = get_pipeline(request).monitor.get_active_alerts()
    return {"alerts": [a.to_dict() for a in alerts]}


@router.post("/alerts/{alert_id}/resolve")
async def resolve_alert(
    alert_id: str,
    request: Request,
    body: ResolveAlertRequest | None = None,
) -> dict[str, Any]:
    resolved_by = (body.resolved_by if body else None) or _operator(request)
    try:
        alert = await get_pipeline(request).monitor.resolve_alert(alert_id, resolved_by)
    except IntegrationNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {"success": True, "alert": alert.to_dict()}


@router.get("/stats")
async def get_stats(request: Request) -> dict[str, Any]:
    stats = await get_pipeline(request).monitor.get_integration_stats()
    return stats.to_dict()


@router.get("/health")
async def monitoring_health(request: Request) -> dict[str, Any]:
    stats = await get_pipeline(request).monitor.get_integration_stats()
    return {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": "integration-monitoring",
        "version": "1.0.0",
        "stats": {
            "total_services": stats.total_services,
            "healthy_services": stats.healthy_services,
            "active_alerts": stats.active_alerts,
        },
    }
