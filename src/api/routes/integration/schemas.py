"""Schemas de request das rotas do monitor de integrações."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from app.domain.integration import IntegrationEventStatus, IntegrationEventType


class RecordEventRequest(BaseModel):
    """Evento reportado por um serviço externo."""

    service_name: str = Field(min_length=1)
    event_type: IntegrationEventType
    status: IntegrationEventStatus
    response_time_ms: float = Field(ge=0)
    payload: dict[str, Any] | None = None
    error: str | None = None
    correlation_id: str | None = None


class ReprocessRequest(BaseModel):
    max_attempts: int = Field(default=3, ge=1, le=10)


class ResolveAlertRequest(BaseModel):
    resolved_by: str | None = None
