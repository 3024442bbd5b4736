"""Testes da validação de settings no startup."""

from __future__ import annotations

import pytest

from app.bootstrap import collect_settings_errors, validate_runtime_settings
from config.settings import (
    get_base_settings,
    get_dedupe_settings,
    get_firestore_settings,
    get_integration_client_settings,
    get_monitoring_settings,
    get_store_settings,
    get_webhook_settings,
)

_GETTERS = (
    get_base_settings,
    get_dedupe_settings,
    get_firestore_settings,
    get_integration_client_settings,
    get_monitoring_settings,
    get_store_settings,
    get_webhook_settings,
)

_ENV_VARS = (
    "ENVIRONMENT",
    "WEBHOOK_SECRET_KEY",
    "DATABASE_URL",
    "REDIS_URL",
    "GCP_PROJECT",
    "GOOGLE_CLOUD_PROJECT",
    "LEDGER_STORE_BACKEND",
    "INTEGRATION_STORE_BACKEND",
    "AUDIT_STORE_BACKEND",
    "COMPANY_POLICY_BACKEND",
    "DEDUPE_MODE",
    "DEDUPE_BACKEND",
    "APPROVAL_WORKFLOW_BASE_URL",
    "NOTIFICATION_SERVICE_BASE_URL",
    "FIRESTORE_PROJECT_ID",
)


@pytest.fixture(autouse=True)
def _clean_settings(monkeypatch: pytest.MonkeyPatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    for getter in _GETTERS:
        getter.cache_clear()
    yield
    for getter in _GETTERS:
        getter.cache_clear()


def _production_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.setenv("WEBHOOK_SECRET_KEY", "segredo")
    monkeypatch.setenv("DATABASE_URL", "postgresql://db/quadro")
    monkeypatch.setenv("GCP_PROJECT", "projeto-rh")
    for name in ("LEDGER_STORE_BACKEND", "INTEGRATION_STORE_BACKEND", "COMPANY_POLICY_BACKEND"):
        monkeypatch.setenv(name, "sql")
    monkeypatch.setenv("AUDIT_STORE_BACKEND", "firestore")
    monkeypatch.setenv("APPROVAL_WORKFLOW_BASE_URL", "https://workflow.internal/")
    monkeypatch.setenv("NOTIFICATION_SERVICE_BASE_URL", "https://notify.internal")


def test_development_defaults_are_valid() -> None:
    assert collect_settings_errors() == []
    validate_runtime_settings()


def test_complete_production_setup_is_valid(monkeypatch: pytest.MonkeyPatch) -> None:
    _production_env(monkeypatch)

    assert collect_settings_errors() == []
    assert get_integration_client_settings().approval_workflow_base_url == (
        "https://workflow.internal"
    )


def test_production_fails_fast_with_prefixed_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    _production_env(monkeypatch)
    monkeypatch.delenv("WEBHOOK_SECRET_KEY")
    monkeypatch.setenv("DEDUPE_MODE", "enforce")

    with pytest.raises(RuntimeError) as exc_info:
        validate_runtime_settings()

    message = str(exc_info.value)
    assert message.startswith("Configuração inválida para production:")
    assert "- webhook: WEBHOOK_SECRET_KEY é obrigatório" in message
    assert "- dedupe: DEDUPE_BACKEND=memory proibido" in message


def test_firestore_checked_only_when_audit_uses_it(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AUDIT_STORE_BACKEND", "firestore")

    assert collect_settings_errors() == [
        "firestore: FIRESTORE_PROJECT_ID ou GCP_PROJECT deve estar configurado"
    ]
