"""Testes do FirestoreAuditStore com mock do client."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from app.domain.audit import AuditActor
from app.infra.stores.firestore_audit_store import FirestoreAuditStore


def _client():
    client = MagicMock()
    document = client.collection.return_value.document.return_value
    return client, document


@pytest.mark.asyncio
async def test_log_action_writes_enriched_document() -> None:
    client, document = _client()
    store = FirestoreAuditStore(client, collection_name="audit_quadro")

    await store.log_action(
        entity_id="q1",
        entity_type="quadro_lotacao",
        action="normalizacao_admissao",
        actor=AuditActor(correlation_id="corr-1"),
        before={"vagas_efetivas": 1},
        after={"vagas_efetivas": 2},
    )

    client.collection.assert_called_once_with("audit_quadro")
    doc_id = client.collection.return_value.document.call_args[0][0]
    assert doc_id.startswith("quadro_lotacao_")
    assert "_q1_" in doc_id

    written = document.set.call_args[0][0]
    assert written["action"] == "normalizacao_admissao"
    assert written["actor"]["correlation_id"] == "corr-1"
    assert written["before"] == {"vagas_efetivas": 1}
    assert written["after"] == {"vagas_efetivas": 2}
    assert "timestamp" in written
    assert "created_at" in written


@pytest.mark.asyncio
async def test_log_action_swallows_write_errors() -> None:
    client, document = _client()
    document.set.side_effect = RuntimeError("firestore indisponível")
    store = FirestoreAuditStore(client)

    await store.log_action(
        entity_id="colab-1",
        entity_type="webhook",
        action="webhook_admissao_erro",
        actor=AuditActor(),
    )

    client.collection.assert_called_once_with("audit_logs")
    document.set.assert_called_once()
