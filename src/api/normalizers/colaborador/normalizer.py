"""Normalizer do envelope de webhook para ColaboradorEvent.

Pressupõe envelope já validado por `api.validators.colaborador`.
Não faz regra de negócio: apenas conversão estrutural.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from api.validators.colaborador import (
    parse_iso_date,
    parse_iso_datetime,
    resolve_event_type,
    validate_webhook_payload,
)
from app.domain.colaborador import (
    ColaboradorEvent,
    ColaboradorEventType,
    EmploymentStatus,
    EventData,
)
from app.domain.errors import EventValidationError, UnsupportedEventTypeError


def _optional_text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def normalize_webhook_payload(payload: dict[str, Any]) -> ColaboradorEvent:
    """Converte envelope validado em ColaboradorEvent.

    Transferência e promoção carregam `event_data` com origem; a data do
    evento cai para o `timestamp` do envelope. Desligamento sem
    `data_desligamento` usa o instante atual.

    Raises:
        UnsupportedEventTypeError: event_type desconhecido.
    """
    event_type = resolve_event_type(payload.get("event_type"))
    if event_type is None:
        raise UnsupportedEventTypeError(str(payload.get("event_type")))

    data: dict[str, Any] = payload["data"]
    envelope_time = parse_iso_datetime(payload.get("timestamp")) or datetime.now(UTC)
    event_date = parse_iso_datetime(data.get("data_evento")) or envelope_time

    event_data: EventData | None = None
    if event_type in (ColaboradorEventType.TRANSFER, ColaboradorEventType.PROMOTION):
        event_data = EventData(
            event_date=event_date,
            previous_cost_center_id=_optional_text(data.get("centro_custo_anterior")),
            previous_job_code_id=_optional_text(data.get("cargo_anterior")),
        )

    termination_date = None
    if event_type is ColaboradorEventType.TERMINATION:
        termination_date = parse_iso_date(data.get("data_desligamento")) or datetime.now(UTC).date()

    hire_date = parse_iso_date(data.get("data_admissao")) or envelope_time.date()

    return ColaboradorEvent(
        employee_id=str(data["colaborador_id"]),
        name=str(data["nome"]),
        national_id=str(data["cpf"]),
        job_code_id=str(data["cargo_id"]),
        cost_center_id=str(data["centro_custo_id"]),
        shift=str(data["turno"]),
        hire_date=hire_date,
        disability_flag=bool(data["pcd"]),
        status=EmploymentStatus(data["status"]),
        event_type=event_type,
        termination_date=termination_date,
        event_data=event_data,
    )


def parse_colaborador_event(
    payload: Any,
    expected_type: ColaboradorEventType | None = None,
) -> ColaboradorEvent:
    """Valida e normaliza em um passo (lote e reprocessamento).

    Raises:
        EventValidationError: Com todas as violações encontradas.
    """
    errors = validate_webhook_payload(payload, expected_type)
    if errors:
        raise EventValidationError(errors)
    return normalize_webhook_payload(payload)
