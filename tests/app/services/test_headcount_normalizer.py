"""Testes do normalizador do quadro de lotação."""

from __future__ import annotations

import asyncio
from dataclasses import replace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from api.normalizers.colaborador import parse_colaborador_event
from app.domain.errors import EventValidationError, SlotNotFoundError
from app.infra.stores import (
    MemoryActiveRoster,
    MemoryAuditStore,
    MemoryLedgerStore,
    SqlLedgerStore,
)
from app.infra.stores.sql_models import Base, HeadcountRow
from app.services import HeadcountNormalizer
from tests.fakes.pipeline import make_envelope, make_record


def _normalizer(records, roster=None):
    ledger = MemoryLedgerStore(records)
    audit = MemoryAuditStore()
    normalizer = HeadcountNormalizer(ledger, audit, roster or MemoryActiveRoster())
    return normalizer, ledger, audit


def _event(event_type="admissao", **overrides):
    return parse_colaborador_event(make_envelope(event_type, **overrides))


@pytest.mark.asyncio
async def test_admission_increments_first_active_record() -> None:
    normalizer, ledger, audit = _normalizer(
        [
            make_record("inativo", active=False, actual=1),
            make_record("ativo", actual=1),
        ]
    )

    result = await normalizer.process_event(_event())

    assert ledger.get("ativo").actual_count == 2
    assert ledger.get("inativo").actual_count == 1
    assert result.warnings == []
    assert "normalizacao_admissao" in audit.actions()


@pytest.mark.asyncio
async def test_admission_without_capacity_records_deficit_warning() -> None:
    normalizer, ledger, audit = _normalizer([make_record("q1", planned=2, actual=2)])

    result = await normalizer.process_event(_event())

    record = ledger.get("q1")
    assert record.actual_count == 3
    assert record.available_count == -1
    assert result.warnings == ["admissao_sem_vagas"]
    assert audit.get_records("admissao_sem_vagas")[0]["entity_id"] == "q1"


@pytest.mark.asyncio
async def test_admission_without_record_raises_with_sibling_codes() -> None:
    normalizer, ledger, audit = _normalizer([make_record("q1", job_code_id="cargo-gerente")])

    with pytest.raises(SlotNotFoundError) as exc_info:
        await normalizer.process_event(_event())

    assert exc_info.value.sibling_job_codes == ["cargo-gerente"]
    assert "cargo-gerente" in str(exc_info.value)
    assert ledger.get("q1").actual_count == 0
    assert "normalizacao_erro_admissao" in audit.actions()


@pytest.mark.asyncio
async def test_transfer_moves_headcount_between_slots() -> None:
    normalizer, ledger, _ = _normalizer(
        [
            make_record("origem", job_slot_id="cc-200", actual=3),
            make_record("destino", job_slot_id="cc-100", actual=1),
        ]
    )

    await normalizer.process_event(_event("transferencia"))

    assert ledger.get("origem").actual_count == 2
    assert ledger.get("destino").actual_count == 2


@pytest.mark.asyncio
async def test_transfer_rolls_back_source_when_destination_missing() -> None:
    normalizer, ledger, _ = _normalizer(
        [make_record("origem", job_slot_id="cc-200", actual=3)]
    )

    with pytest.raises(SlotNotFoundError):
        await normalizer.process_event(_event("transferencia"))

    assert ledger.get("origem").actual_count == 3
    assert ledger.rollbacks == 1


@pytest.mark.asyncio
async def test_transfer_uses_previous_job_code_for_source() -> None:
    normalizer, ledger, _ = _normalizer(
        [
            make_record("origem", job_slot_id="cc-200", job_code_id="cargo-assistente", actual=1),
            make_record("destino", job_slot_id="cc-100", actual=0),
        ]
    )

    await normalizer.process_event(_event("transferencia", cargo_anterior="cargo-assistente"))

    assert ledger.get("origem").actual_count == 0
    assert ledger.get("destino").actual_count == 1


@pytest.mark.asyncio
async def test_termination_on_empty_slot_warns_and_keeps_counts() -> None:
    normalizer, ledger, audit = _normalizer([make_record("q1", actual=0)])

    result = await normalizer.process_event(_event("desligamento"))

    assert ledger.get("q1").actual_count == 0
    assert result.warnings == ["desligamento_sem_efetivo"]
    assert audit.get_records("desligamento_sem_efetivo")


@pytest.mark.asyncio
async def test_termination_decrements_first_record_with_headcount() -> None:
    normalizer, ledger, _ = _normalizer(
        [make_record("vazio", actual=0), make_record("ocupado", actual=2)]
    )

    await normalizer.process_event(_event("desligamento"))

    assert ledger.get("vazio").actual_count == 0
    assert ledger.get("ocupado").actual_count == 1


@pytest.mark.asyncio
async def test_promotion_moves_between_job_codes() -> None:
    normalizer, ledger, _ = _normalizer(
        [
            make_record("anterior", job_code_id="cargo-assistente", actual=1),
            make_record("novo", job_code_id="cargo-analista", actual=0),
        ]
    )

    await normalizer.process_event(_event("promocao"))

    assert ledger.get("anterior").actual_count == 0
    assert ledger.get("novo").actual_count == 1


@pytest.mark.asyncio
async def test_invalid_event_is_rejected_before_transaction() -> None:
    normalizer, ledger, _ = _normalizer([make_record("q1")])
    invalid = replace(_event(), name="")

    with pytest.raises(EventValidationError) as exc_info:
        await normalizer.process_event(invalid)

    assert "nome é obrigatório" in exc_info.value.details
    assert ledger.commits == 0


@pytest.mark.asyncio
async def test_batch_collects_failures_without_stopping() -> None:
    normalizer, ledger, audit = _normalizer([make_record("q1")])
    events = [
        _event(colaborador_id="c1"),
        _event(colaborador_id="c2", cargo_id="cargo-inexistente"),
        _event(colaborador_id="c3"),
    ]

    result = await normalizer.process_batch(events)

    assert result.processed == 2
    assert result.failed == 1
    assert result.errors[0]["colaborador_id"] == "c2"
    assert ledger.get("q1").actual_count == 2
    assert audit.get_records("batch_processing_completed")


@pytest.mark.asyncio
async def test_reconcile_updates_only_changed_records() -> None:
    roster = MemoryActiveRoster()
    roster.set_count("cc-100", "cargo-analista", 4)
    roster.set_count("cc-100", "cargo-gerente", 1)
    normalizer, ledger, audit = _normalizer(
        [
            make_record("analista", actual=2),
            make_record("gerente", job_code_id="cargo-gerente", actual=1),
        ],
        roster,
    )

    result = await normalizer.reconcile_plan("plano-1")

    assert (result.updated, result.unchanged) == (1, 1)
    assert ledger.get("analista").actual_count == 4
    assert audit.get_records("normalizacao_completa")


@pytest.mark.asyncio
async def test_reconcile_force_rewrites_every_record() -> None:
    roster = MemoryActiveRoster({("cc-100", "cargo-analista"): 2})
    normalizer, _, _ = _normalizer([make_record("analista", actual=2)], roster)

    result = await normalizer.reconcile_plan("plano-1", force=True)

    assert result.updated == 1
    assert result.unchanged == 0


@pytest.mark.asyncio
async def test_concurrent_admissions_do_not_lose_updates() -> None:
    normalizer, ledger, _ = _normalizer([make_record("q1", planned=20, actual=0)])

    await asyncio.gather(
        *(normalizer.process_event(_event(colaborador_id=f"c{i}")) for i in range(10))
    )

    assert ledger.get("q1").actual_count == 10
    assert ledger.commits == 10


@pytest.mark.asyncio
async def test_concurrent_admissions_on_sql_ledger_do_not_lose_updates(tmp_path) -> None:
    engine = create_engine(f"sqlite:///{tmp_path / 'quadro.db'}")
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, expire_on_commit=False)
    with factory.begin() as session:
        session.add(
            HeadcountRow(
                id="q1",
                plano_vagas_id="plano-1",
                posto_trabalho_id="cc-100",
                cargo_id="cargo-analista",
                vagas_previstas=20,
                vagas_efetivas=0,
            )
        )
    normalizer = HeadcountNormalizer(
        SqlLedgerStore(factory), MemoryAuditStore(), MemoryActiveRoster()
    )

    try:
        await asyncio.gather(
            *(normalizer.process_event(_event(colaborador_id=f"c{i}")) for i in range(10))
        )
        with factory() as session:
            actual = session.get(HeadcountRow, "q1").vagas_efetivas
    finally:
        engine.dispose()

    assert actual == 10
