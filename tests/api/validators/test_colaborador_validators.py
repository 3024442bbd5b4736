"""Testes da validação do envelope de colaborador."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from api.validators.colaborador import parse_iso_datetime, validate_webhook_payload
from app.domain.colaborador import ColaboradorEventType
from tests.fakes.pipeline import make_envelope


def test_valid_envelope_has_no_errors() -> None:
    assert validate_webhook_payload(make_envelope(), ColaboradorEventType.ADMISSION) == []


def test_non_object_payload() -> None:
    assert validate_webhook_payload([1, 2]) == ["payload deve ser um objeto"]


def test_all_violations_are_collected() -> None:
    envelope = make_envelope(
        colaborador_id="",
        cargo_id=None,
        turno="  ",
        data_admissao="ontem",
        pcd="sim",
        status="afastado",
    )

    errors = validate_webhook_payload(envelope)

    assert errors == [
        "colaborador_id é obrigatório",
        "cargo_id é obrigatório",
        "turno é obrigatório",
        "data_admissao deve ser uma data ISO-8601",
        "pcd deve ser boolean",
        "status deve ser ativo ou inativo",
    ]


def test_envelope_level_errors() -> None:
    errors = validate_webhook_payload(
        {"event_type": "colaborador.readmitido", "timestamp": "x", "data": "texto"}
    )

    assert errors == [
        "event_type inválido",
        "timestamp deve ser uma data ISO-8601",
        "data deve ser um objeto",
    ]


@pytest.mark.parametrize(
    ("event_type", "removed", "message"),
    [
        ("transferencia", "centro_custo_anterior", "centro_custo_anterior é obrigatório para transferência"),
        ("promocao", "cargo_anterior", "cargo_anterior é obrigatório para promoção"),
    ],
)
def test_origin_required_for_moves(event_type, removed, message) -> None:
    envelope = make_envelope(event_type)
    del envelope["data"][removed]

    assert validate_webhook_payload(envelope) == [message]


def test_optional_dates_are_checked_when_present() -> None:
    envelope = make_envelope("desligamento", data_desligamento="01/04/2025")

    assert validate_webhook_payload(envelope) == ["data_desligamento deve ser uma data ISO-8601"]


def test_parse_iso_datetime_defaults_to_utc() -> None:
    assert parse_iso_datetime("2025-03-10T12:00:00Z") == datetime(2025, 3, 10, 12, tzinfo=UTC)
    assert parse_iso_datetime("2025-03-10") == datetime(2025, 3, 10, tzinfo=UTC)
    assert parse_iso_datetime("") is None
    assert parse_iso_datetime(20250310) is None
