"""Validação do envelope de webhook de colaborador.

Coleta todas as violações (não para na primeira) antes de qualquer
objeto de domínio ser construído. `event_type` desconhecido é rejeitado.
"""

from __future__ import annotations

from typing import Any

from api.validators.colaborador.dates import parse_iso_datetime
from app.domain.colaborador import WEBHOOK_EVENT_TYPES, ColaboradorEventType, EmploymentStatus

_REQUIRED_TEXT_FIELDS: tuple[tuple[str, str], ...] = (
    ("colaborador_id", "colaborador_id é obrigatório"),
    ("nome", "nome é obrigatório"),
    ("cpf", "cpf é obrigatório"),
    ("cargo_id", "cargo_id é obrigatório"),
    ("centro_custo_id", "centro_custo_id é obrigatório"),
    ("turno", "turno é obrigatório"),
)

_OPTIONAL_DATE_FIELDS = ("data_desligamento", "data_evento")

_VALID_STATUSES = frozenset(status.value for status in EmploymentStatus)


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def _validate_common(data: dict[str, Any]) -> list[str]:
    errors = [message for field, message in _REQUIRED_TEXT_FIELDS if not _present(data.get(field))]

    admission_date = data.get("data_admissao")
    if not _present(admission_date):
        errors.append("data_admissao é obrigatória")
    elif parse_iso_datetime(admission_date) is None:
        errors.append("data_admissao deve ser uma data ISO-8601")

    if not isinstance(data.get("pcd"), bool):
        errors.append("pcd deve ser boolean")
    if data.get("status") not in _VALID_STATUSES:
        errors.append("status deve ser ativo ou inativo")

    for field in _OPTIONAL_DATE_FIELDS:
        value = data.get(field)
        if _present(value) and parse_iso_datetime(value) is None:
            errors.append(f"{field} deve ser uma data ISO-8601")
    return errors


def resolve_event_type(raw_event_type: Any) -> ColaboradorEventType | None:
    """Mapeia `colaborador.*` para o tipo interno (None se desconhecido)."""
    if not isinstance(raw_event_type, str):
        return None
    return WEBHOOK_EVENT_TYPES.get(raw_event_type)


def validate_webhook_payload(
    payload: Any,
    expected_type: ColaboradorEventType | None = None,
) -> list[str]:
    """Valida envelope completo.

    Args:
        payload: JSON decodificado do corpo
        expected_type: Tipo exigido pela rota (None aceita qualquer tipo conhecido)

    Returns:
        Lista de violações; vazia quando válido.
    """
    if not isinstance(payload, dict):
        return ["payload deve ser um objeto"]

    errors: list[str] = []
    event_type = resolve_event_type(payload.get("event_type"))
    if event_type is None or (expected_type is not None and event_type is not expected_type):
        errors.append("event_type inválido")

    timestamp = payload.get("timestamp")
    if not _present(timestamp):
        errors.append("timestamp é obrigatório")
    elif parse_iso_datetime(timestamp) is None:
        errors.append("timestamp deve ser uma data ISO-8601")

    data = payload.get("data")
    if not isinstance(data, dict):
        errors.append("data deve ser um objeto")
        return errors

    errors.extend(_validate_common(data))

    effective_type = expected_type or event_type
    if effective_type is ColaboradorEventType.TRANSFER and not _present(
        data.get("centro_custo_anterior")
    ):
        errors.append("centro_custo_anterior é obrigatório para transferência")
    if effective_type is ColaboradorEventType.PROMOTION and not _present(
        data.get("cargo_anterior")
    ):
        errors.append("cargo_anterior é obrigatório para promoção")
    return errors
