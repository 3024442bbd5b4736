"""Testes do use case do webhook de colaborador (gateway completo)."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from app.domain.colaborador import ColaboradorEventType
from app.domain.integration import IntegrationEventStatus, IntegrationEventType
from tests.fakes.pipeline import (
    build_memory_pipeline,
    encode,
    make_envelope,
    make_record,
    signed_headers,
)
from utils.errors import TransientStoreError

SERVICE = "rh_legado_webhook"


async def _events(pipeline, event_type=None):
    events = await pipeline.integration_store.list_events(SERVICE, limit=100)
    if event_type is None:
        return events
    return [e for e in events if e.event_type is event_type]


@pytest.mark.asyncio
async def test_invalid_signature_returns_401_without_touching_ledger() -> None:
    pipeline = build_memory_pipeline([make_record("q1")])
    spy = AsyncMock()
    pipeline.container.normalizer.process_event = spy
    body = encode(make_envelope())

    outcome = await pipeline.container.webhook.execute(
        body, signed_headers(body, "outro-segredo"), ColaboradorEventType.ADMISSION
    )

    assert outcome.status_code == 401
    assert outcome.body == {"error": "Invalid webhook signature", "acknowledged": False}
    spy.assert_not_called()
    failed = await _events(pipeline, IntegrationEventType.FAILED)
    assert len(failed) == 1
    assert failed[0].payload is None


@pytest.mark.asyncio
async def test_missing_signature_returns_401() -> None:
    pipeline = build_memory_pipeline([make_record("q1")])
    body = encode(make_envelope())

    outcome = await pipeline.container.webhook.execute(
        body, {"content-type": "application/json"}, ColaboradorEventType.ADMISSION
    )

    assert outcome.status_code == 401
    assert pipeline.ledger.get("q1").actual_count == 0


@pytest.mark.asyncio
async def test_invalid_json_returns_400() -> None:
    pipeline = build_memory_pipeline([make_record("q1")])
    body = b"{nao-e-json"

    outcome = await pipeline.container.webhook.execute(
        body, signed_headers(body), ColaboradorEventType.ADMISSION
    )

    assert outcome.status_code == 400
    assert outcome.body["details"] == ["JSON inválido"]


@pytest.mark.asyncio
async def test_validation_errors_are_all_reported() -> None:
    pipeline = build_memory_pipeline([make_record("q1")])
    envelope = make_envelope(nome="", cpf=None, pcd="nao")
    body = encode(envelope)

    outcome = await pipeline.container.webhook.execute(
        body, signed_headers(body), ColaboradorEventType.ADMISSION
    )

    assert outcome.status_code == 400
    assert outcome.body["error"] == "Invalid payload"
    assert outcome.body["acknowledged"] is False
    assert "nome é obrigatório" in outcome.body["details"]
    assert "cpf é obrigatório" in outcome.body["details"]
    assert "pcd deve ser boolean" in outcome.body["details"]
    failed = await _events(pipeline, IntegrationEventType.FAILED)
    assert failed[0].payload == envelope


@pytest.mark.asyncio
async def test_route_type_mismatch_is_validation_error() -> None:
    pipeline = build_memory_pipeline([make_record("q1")])
    body = encode(make_envelope("desligamento"))

    outcome = await pipeline.container.webhook.execute(
        body, signed_headers(body), ColaboradorEventType.ADMISSION
    )

    assert outcome.status_code == 400
    assert "event_type inválido" in outcome.body["details"]


@pytest.mark.asyncio
async def test_admission_success_increments_and_acknowledges() -> None:
    pipeline = build_memory_pipeline([make_record("q1", actual=2)])
    body = encode(make_envelope())

    outcome = await pipeline.container.webhook.execute(
        body, signed_headers(body), ColaboradorEventType.ADMISSION
    )

    assert outcome.status_code == 200
    assert outcome.body["acknowledged"] is True
    assert outcome.body["message"] == "Admission processed successfully"
    assert outcome.body["colaborador_id"] == "colab-1"
    assert pipeline.ledger.get("q1").actual_count == 3

    received = await _events(pipeline, IntegrationEventType.RECEIVED)
    processed = await _events(pipeline, IntegrationEventType.PROCESSED)
    assert len(received) == 1
    assert received[0].response_time_ms == 0
    assert processed[0].status is IntegrationEventStatus.SUCCESS
    assert "webhook_admissao_processado" in pipeline.audit.actions()


@pytest.mark.asyncio
async def test_blocked_discrepancy_returns_409_and_keeps_ledger() -> None:
    records = [make_record("q1", job_code_id="cargo-analista", slot_job_code="cargo-gerente")]
    pipeline = build_memory_pipeline(records, company_action="bloquear")
    body = encode(make_envelope())

    outcome = await pipeline.container.webhook.execute(
        body, signed_headers(body), ColaboradorEventType.ADMISSION
    )

    assert outcome.status_code == 409
    assert outcome.body["error"] == "Cargo discrepancy detected"
    assert outcome.body["action"] == "bloquear"
    assert outcome.body["proposta_id"] is None
    assert pipeline.ledger.get("q1").actual_count == 0


@pytest.mark.asyncio
async def test_approval_required_returns_409_with_proposal() -> None:
    records = [make_record("q1", job_code_id="cargo-analista", slot_job_code="cargo-gerente")]
    pipeline = build_memory_pipeline(records, company_action="exigir_aprovacao")
    body = encode(make_envelope())

    outcome = await pipeline.container.webhook.execute(
        body, signed_headers(body), ColaboradorEventType.ADMISSION
    )

    assert outcome.status_code == 409
    assert outcome.body["action"] == "exigir_aprovacao"
    assert outcome.body["proposta_id"] == pipeline.escalation.cases[0]["id"]
    assert pipeline.ledger.get("q1").actual_count == 0


@pytest.mark.asyncio
async def test_escalation_failure_returns_500() -> None:
    records = [make_record("q1", job_code_id="cargo-analista", slot_job_code="cargo-gerente")]
    pipeline = build_memory_pipeline(records, company_action="exigir_aprovacao")
    pipeline.escalation.fail_with = RuntimeError("workflow fora do ar")
    body = encode(make_envelope())

    outcome = await pipeline.container.webhook.execute(
        body, signed_headers(body), ColaboradorEventType.ADMISSION
    )

    assert outcome.status_code == 500
    assert outcome.body["error"] == "Internal server error"
    assert pipeline.ledger.get("q1").actual_count == 0
    assert "webhook_admissao_erro" in pipeline.audit.actions()


@pytest.mark.asyncio
async def test_transient_failures_are_retried_then_succeed() -> None:
    pipeline = build_memory_pipeline([make_record("q1")])
    normalizer = pipeline.container.normalizer
    real_process = normalizer.process_event
    calls = {"count": 0}

    async def flaky(event, actor=None):
        calls["count"] += 1
        if calls["count"] <= 2:
            raise TransientStoreError("lock timeout")
        return await real_process(event, actor)

    normalizer.process_event = flaky
    body = encode(make_envelope())

    outcome = await pipeline.container.webhook.execute(
        body, signed_headers(body), ColaboradorEventType.ADMISSION
    )

    assert outcome.status_code == 200
    assert calls["count"] == 3
    assert pipeline.ledger.get("q1").actual_count == 1
    retries = await _events(pipeline, IntegrationEventType.RETRY)
    processed = await _events(pipeline, IntegrationEventType.PROCESSED)
    assert len(retries) == 2
    assert len(processed) == 1
    assert processed[0].status is IntegrationEventStatus.SUCCESS
    assert "webhook_retry_success" in pipeline.audit.actions()


@pytest.mark.asyncio
async def test_missing_destination_exhausts_retries_and_returns_500() -> None:
    pipeline = build_memory_pipeline([make_record("q1", job_code_id="cargo-outro")])
    body = encode(make_envelope("transferencia"))

    outcome = await pipeline.container.webhook.execute(
        body, signed_headers(body), ColaboradorEventType.TRANSFER
    )

    assert outcome.status_code == 500
    assert "Nenhum quadro encontrado" in outcome.body["message"]
    assert len(await _events(pipeline, IntegrationEventType.RETRY)) == 2
    assert "webhook_retry_exhausted" in pipeline.audit.actions()
    assert "webhook_transferencia_erro" in pipeline.audit.actions()


@pytest.mark.asyncio
async def test_dedupe_enforce_acknowledges_duplicate_without_ledger_change() -> None:
    pipeline = build_memory_pipeline([make_record("q1")], dedupe_mode="enforce")
    body = encode(make_envelope())
    webhook = pipeline.container.webhook

    first = await webhook.execute(body, signed_headers(body), ColaboradorEventType.ADMISSION)
    second = await webhook.execute(body, signed_headers(body), ColaboradorEventType.ADMISSION)

    assert first.status_code == 200
    assert second.status_code == 200
    assert second.body["message"] == "Duplicate delivery ignored"
    assert pipeline.ledger.get("q1").actual_count == 1
    received = await _events(pipeline, IntegrationEventType.RECEIVED)
    assert [e.payload.get("duplicate", False) for e in received] == [True, False]


@pytest.mark.asyncio
async def test_dedupe_detect_still_processes_duplicate() -> None:
    pipeline = build_memory_pipeline([make_record("q1")], dedupe_mode="detect")
    body = encode(make_envelope())
    webhook = pipeline.container.webhook

    await webhook.execute(body, signed_headers(body), ColaboradorEventType.ADMISSION)
    await webhook.execute(body, signed_headers(body), ColaboradorEventType.ADMISSION)

    assert pipeline.ledger.get("q1").actual_count == 2


@pytest.mark.asyncio
async def test_rejected_delivery_releases_dedupe_key() -> None:
    records = [make_record("q1", job_code_id="cargo-analista", slot_job_code="cargo-gerente")]
    pipeline = build_memory_pipeline(records, company_action="bloquear", dedupe_mode="enforce")
    body = encode(make_envelope())
    webhook = pipeline.container.webhook

    first = await webhook.execute(body, signed_headers(body), ColaboradorEventType.ADMISSION)
    pipeline.policy.set_action("empresa-1", "permitir")
    second = await webhook.execute(body, signed_headers(body), ColaboradorEventType.ADMISSION)

    assert first.status_code == 409
    assert second.status_code == 200
    assert pipeline.ledger.get("q1").actual_count == 1
