"""Testes do replay de pedidos de reprocessamento."""

from __future__ import annotations

import asyncio

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.domain.colaborador import ColaboradorEventType
from app.domain.errors import IntegrationNotFoundError, ReprocessingNotAllowedError
from app.domain.integration import (
    IntegrationEventStatus,
    IntegrationEventType,
    ReprocessingStatus,
)
from app.infra.stores import SqlIntegrationStore
from app.infra.stores.sql_models import Base
from tests.fakes.pipeline import (
    build_memory_pipeline,
    encode,
    make_envelope,
    make_record,
    signed_headers,
)

SERVICE = "rh_legado_webhook"


async def _failed_admission(pipeline):
    body = encode(make_envelope())
    outcome = await pipeline.container.webhook.execute(
        body, signed_headers(body), ColaboradorEventType.ADMISSION
    )
    assert outcome.status_code == 500
    events = await pipeline.integration_store.list_events(SERVICE, limit=100)
    return next(
        e
        for e in events
        if e.event_type is IntegrationEventType.PROCESSED
        and e.status is IntegrationEventStatus.FAILURE
    )


@pytest.mark.asyncio
async def test_replay_completes_after_ledger_is_fixed() -> None:
    pipeline = build_memory_pipeline([])
    failed = await _failed_admission(pipeline)
    request = await pipeline.container.monitor.request_reprocessing(failed.id, "operador-1")

    pipeline.ledger.add(make_record("q1"))
    result = await pipeline.container.reprocessing.execute(request.id, "operador-1")

    assert result.request.status is ReprocessingStatus.COMPLETED
    assert result.request.attempts == 1
    assert result.request.last_error is None
    assert result.outcome.status_code == 200
    assert pipeline.ledger.get("q1").actual_count == 1
    assert "reprocessing_completed" in pipeline.audit.actions()

    latest = await pipeline.integration_store.list_events(SERVICE, limit=1)
    assert latest[0].event_type is IntegrationEventType.PROCESSED
    replays = [
        e
        for e in await pipeline.integration_store.list_events(SERVICE, limit=100)
        if e.event_type is IntegrationEventType.RECEIVED and e.payload.get("replay")
    ]
    assert len(replays) == 1


@pytest.mark.asyncio
async def test_failed_replay_stays_pending_until_attempts_run_out() -> None:
    pipeline = build_memory_pipeline([], retry_attempts=1)
    failed = await _failed_admission(pipeline)
    request = await pipeline.container.monitor.request_reprocessing(
        failed.id, "operador-1", max_attempts=2
    )
    reprocessing = pipeline.container.reprocessing

    first = await reprocessing.execute(request.id)
    assert first.request.status is ReprocessingStatus.PENDING
    assert "Nenhum quadro encontrado" in first.request.last_error

    second = await reprocessing.execute(request.id)
    assert second.request.status is ReprocessingStatus.FAILED
    assert second.request.attempts == 2

    with pytest.raises(ReprocessingNotAllowedError):
        await reprocessing.execute(request.id)


@pytest.mark.asyncio
async def test_replay_without_stored_envelope_fails() -> None:
    pipeline = build_memory_pipeline([make_record("q1")])
    body = encode(make_envelope())
    await pipeline.container.webhook.execute(
        body, signed_headers(body, "segredo-errado"), ColaboradorEventType.ADMISSION
    )
    rejected = (await pipeline.integration_store.list_events(SERVICE))[0]
    request = await pipeline.container.monitor.request_reprocessing(rejected.id, "operador-1")

    result = await pipeline.container.reprocessing.execute(request.id)

    assert result.request.status is ReprocessingStatus.FAILED
    assert result.outcome is None
    assert result.to_dict()["result"] is None
    assert pipeline.ledger.get("q1").actual_count == 0


@pytest.mark.asyncio
async def test_unknown_request_raises_not_found() -> None:
    pipeline = build_memory_pipeline([])

    with pytest.raises(IntegrationNotFoundError):
        await pipeline.container.reprocessing.execute("reprocess_inexistente")


async def _replay_twice_concurrently(pipeline):
    failed = await _failed_admission(pipeline)
    request = await pipeline.container.monitor.request_reprocessing(failed.id, "operador-1")
    pipeline.ledger.add(make_record("q1"))

    results = await asyncio.gather(
        pipeline.container.reprocessing.execute(request.id, "operador-1"),
        pipeline.container.reprocessing.execute(request.id, "operador-2"),
        return_exceptions=True,
    )
    return request, results


@pytest.mark.asyncio
async def test_concurrent_executions_replay_only_once() -> None:
    pipeline = build_memory_pipeline([])

    _, results = await _replay_twice_concurrently(pipeline)

    rejected = [r for r in results if isinstance(r, ReprocessingNotAllowedError)]
    completed = [r for r in results if not isinstance(r, Exception)]
    assert len(rejected) == 1
    assert len(completed) == 1
    assert completed[0].request.status is ReprocessingStatus.COMPLETED
    assert pipeline.ledger.get("q1").actual_count == 1


@pytest.mark.asyncio
async def test_concurrent_executions_replay_only_once_with_sql_store(tmp_path) -> None:
    engine = create_engine(f"sqlite:///{tmp_path / 'integracoes.db'}")
    Base.metadata.create_all(engine)
    store = SqlIntegrationStore(sessionmaker(bind=engine, expire_on_commit=False))
    pipeline = build_memory_pipeline([], integration_store=store)

    try:
        request, results = await _replay_twice_concurrently(pipeline)
        stored = await store.get_reprocessing_request(request.id)
    finally:
        engine.dispose()

    assert sum(isinstance(r, ReprocessingNotAllowedError) for r in results) == 1
    assert pipeline.ledger.get("q1").actual_count == 1
    assert stored is not None
    assert stored.attempts == 1
    assert stored.status is ReprocessingStatus.COMPLETED
