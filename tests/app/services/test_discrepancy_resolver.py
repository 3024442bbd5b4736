"""Testes do resolvedor de discrepância de cargo."""

from __future__ import annotations

import pytest

from api.connectors.approval_workflow import InMemoryEscalationGateway
from api.connectors.notifications import LoggingNotificationService
from api.normalizers.colaborador import parse_colaborador_event
from app.domain.discrepancy import DiscrepancyAction
from app.domain.errors import EscalationError
from app.infra.stores import MemoryAuditStore, MemoryCompanyPolicyStore, MemoryLedgerStore
from app.services import DiscrepancyResolver, NotificationDispatcher
from tests.fakes.pipeline import make_envelope, make_record, no_sleep


def _resolver(records, action: str | None = "permitir", link_plan: bool = True):
    policy = MemoryCompanyPolicyStore()
    if link_plan:
        policy.link_plan("plano-1", "empresa-1")
    if action is not None:
        policy.set_action("empresa-1", action)
    escalation = InMemoryEscalationGateway()
    notifications = LoggingNotificationService()
    dispatcher = NotificationDispatcher(notifications, sleep=no_sleep)
    audit = MemoryAuditStore()
    resolver = DiscrepancyResolver(
        MemoryLedgerStore(records), policy, escalation, dispatcher, audit
    )
    return resolver, policy, escalation, dispatcher, notifications, audit


def _divergent_slot():
    return [make_record("q1", job_code_id="cargo-analista", slot_job_code="cargo-gerente")]


def _admission():
    return parse_colaborador_event(make_envelope())


@pytest.mark.asyncio
async def test_matching_job_code_has_no_discrepancy() -> None:
    resolver, *_rest, audit = _resolver([make_record("q1")])

    result = await resolver.resolve(_admission())

    assert result.allowed is True
    assert result.discrepancy_detected is False
    assert result.action is None
    assert audit.actions() == []


@pytest.mark.asyncio
async def test_empty_cost_center_has_no_discrepancy() -> None:
    resolver, *_ = _resolver([make_record("q1", job_slot_id="cc-999")])

    result = await resolver.resolve(_admission())

    assert result.allowed is True
    assert result.discrepancy_detected is False


@pytest.mark.asyncio
async def test_allow_policy_lets_admission_continue() -> None:
    resolver, _, _, dispatcher, _, audit = _resolver(_divergent_slot(), "permitir")

    result = await resolver.resolve(_admission())

    assert result.allowed is True
    assert result.discrepancy_detected is True
    assert result.action is DiscrepancyAction.ALLOW
    assert result.expected_job_code == "cargo-gerente"
    assert result.actual_job_code == "cargo-analista"
    assert dispatcher.pending == 0
    assert "cargo_discrepancy_detected" in audit.actions()


@pytest.mark.asyncio
async def test_alert_policy_enqueues_hr_notification() -> None:
    resolver, _, _, dispatcher, notifications, _ = _resolver(_divergent_slot(), "alertar")

    result = await resolver.resolve(_admission())

    assert result.allowed is True
    assert result.action is DiscrepancyAction.ALERT
    assert dispatcher.pending == 1

    await dispatcher.process_pending()

    sent = notifications.sent[0]
    assert sent["template_id"] == "cargo_discrepancy_alert"
    assert sent["recipient"] == "rh_team"
    assert sent["variables"]["cargo_esperado"] == "cargo-gerente"


@pytest.mark.asyncio
async def test_notification_failure_does_not_change_decision() -> None:
    resolver, _, _, dispatcher, notifications, _ = _resolver(_divergent_slot(), "alertar")
    notifications.failures_remaining = 10

    result = await resolver.resolve(_admission())
    await dispatcher.process_pending()

    assert result.allowed is True
    assert notifications.sent == []
    assert dispatcher.dropped == 1


@pytest.mark.asyncio
async def test_block_policy_stops_admission_without_case() -> None:
    resolver, _, escalation, _, _, _ = _resolver(_divergent_slot(), "bloquear")

    result = await resolver.resolve(_admission())

    assert result.allowed is False
    assert result.action is DiscrepancyAction.BLOCK
    assert result.case_id is None
    assert escalation.cases == []


@pytest.mark.asyncio
async def test_approval_policy_creates_case_and_notifies() -> None:
    resolver, _, escalation, dispatcher, _, _ = _resolver(_divergent_slot(), "exigir_aprovacao")

    result = await resolver.resolve(_admission())

    assert result.allowed is False
    assert result.requires_approval
    assert result.case_id == escalation.cases[0]["id"]
    assert escalation.cases[0]["source_slot_id"] == "q1"
    assert escalation.cases[0]["expected_job_code"] == "cargo-gerente"
    assert result.case_id in result.message
    assert dispatcher.pending == 1


@pytest.mark.asyncio
async def test_escalation_failure_propagates() -> None:
    resolver, _, escalation, _, _, _ = _resolver(_divergent_slot(), "exigir_aprovacao")
    escalation.fail_with = RuntimeError("indisponível")

    with pytest.raises(EscalationError):
        await resolver.resolve(_admission())


@pytest.mark.asyncio
async def test_sibling_record_defines_expected_job_code() -> None:
    resolver, *_ = _resolver([make_record("q1", job_code_id="cargo-gerente")], "bloquear")

    result = await resolver.resolve(_admission())

    assert result.allowed is False
    assert result.expected_job_code == "cargo-gerente"


@pytest.mark.parametrize(
    ("action", "link_plan"),
    [
        (None, True),
        ("acao-desconhecida", True),
        ("permitir", False),
    ],
)
@pytest.mark.asyncio
async def test_unresolvable_policy_fails_closed(action, link_plan) -> None:
    resolver, *_rest, audit = _resolver(_divergent_slot(), action, link_plan=link_plan)

    result = await resolver.resolve(_admission())

    assert result.allowed is False
    assert result.action is DiscrepancyAction.BLOCK
    assert "bloqueada por segurança" in result.message
    assert "cargo_discrepancy_error" in audit.actions()


@pytest.mark.asyncio
async def test_policy_read_error_fails_closed() -> None:
    resolver, policy, *_ = _resolver(_divergent_slot(), "permitir")
    policy.fail_with = ConnectionError("banco fora do ar")

    result = await resolver.resolve(_admission())

    assert result.allowed is False
    assert result.action is DiscrepancyAction.BLOCK
