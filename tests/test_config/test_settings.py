"""Testes de validação das settings."""

from __future__ import annotations

import pytest

from config.settings import (
    BaseSettings,
    DedupeSettings,
    FirestoreSettings,
    IntegrationClientSettings,
    MonitoringSettings,
    StoreSettings,
    WebhookSettings,
)
from config.settings.base.core import _parse_environment
from config.settings.monitoring import _load_monitoring_from_env

DEV = BaseSettings(environment="development")
PROD = BaseSettings(environment="production", database_url="postgresql://db/quadro")


class TestBaseSettings:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("prod", "production"), ("STAGE", "staging"), ("qualquer", "development")],
    )
    def test_parse_environment(self, raw: str, expected: str) -> None:
        assert _parse_environment(raw) == expected

    def test_empty_service_name_is_invalid(self) -> None:
        assert BaseSettings(service_name="").validate() == ["SERVICE_NAME não pode ser vazio"]


class TestWebhookSettings:
    def test_secret_optional_only_in_development(self) -> None:
        assert WebhookSettings().validate(DEV) == []
        assert WebhookSettings().validate(PROD) == ["WEBHOOK_SECRET_KEY é obrigatório"]

    def test_retry_bounds(self) -> None:
        errors = WebhookSettings(
            secret_key="s", retry_attempts=0, retry_delay_ms=500, max_retry_delay_ms=100
        ).validate(PROD)

        assert "WEBHOOK_RETRY_ATTEMPTS deve ser >= 1" in errors
        assert "WEBHOOK_MAX_RETRY_DELAY_MS deve ser >= WEBHOOK_RETRY_DELAY_MS" in errors


class TestMonitoringSettings:
    def test_defaults_are_valid(self) -> None:
        assert MonitoringSettings().validate() == []

    def test_error_rate_must_be_fraction(self) -> None:
        errors = MonitoringSettings(error_rate_threshold=10).validate()
        assert errors == ["MONITOR_ERROR_RATE_THRESHOLD deve estar entre 0 e 1"]

    def test_known_services_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MONITOR_KNOWN_SERVICES", "rh_legado_webhook, folha ,")
        monkeypatch.setenv("MONITOR_SWEEP_ENABLED", "false")

        settings = _load_monitoring_from_env()

        assert settings.known_services == ("rh_legado_webhook", "folha")
        assert settings.sweep_enabled is False


class TestStoreSettings:
    def test_memory_backends_forbidden_outside_development(self) -> None:
        errors = StoreSettings().validate(PROD)

        assert "LEDGER_STORE_BACKEND=memory proibido em staging/production" in errors
        assert "AUDIT_STORE_BACKEND=memory proibido em staging/production" in errors

    def test_sql_requires_database_url(self) -> None:
        errors = StoreSettings(ledger_backend="sql").validate(DEV)
        assert errors == ["Backends sql requerem DATABASE_URL configurado"]

    def test_unknown_backend_is_reported(self) -> None:
        errors = StoreSettings(audit_backend="mongo").validate(DEV)  # type: ignore[arg-type]
        assert errors == ["AUDIT_STORE_BACKEND inválido: mongo"]

    def test_production_setup_is_valid(self) -> None:
        settings = StoreSettings(
            ledger_backend="sql",
            integration_backend="sql",
            audit_backend="firestore",
            company_policy_backend="sql",
        )
        assert settings.validate(PROD) == []


class TestDedupeSettings:
    def test_off_skips_backend_checks(self) -> None:
        assert DedupeSettings(mode="off").validate(PROD) == []

    def test_memory_backend_forbidden_when_enabled_in_production(self) -> None:
        errors = DedupeSettings(mode="enforce").validate(PROD)
        assert errors == ["DEDUPE_BACKEND=memory proibido em staging/production. Use Redis."]

    def test_redis_requires_url(self) -> None:
        errors = DedupeSettings(mode="detect", backend="redis").validate(DEV)
        assert errors == ["DEDUPE_BACKEND=redis requer REDIS_URL configurado"]


def test_integration_urls_required_outside_development() -> None:
    assert IntegrationClientSettings().validate(DEV) == []
    assert len(IntegrationClientSettings().validate(PROD)) == 2


def test_firestore_falls_back_to_gcp_project() -> None:
    assert FirestoreSettings().validate("meu-projeto") == []
    assert FirestoreSettings().validate("") == [
        "FIRESTORE_PROJECT_ID ou GCP_PROJECT deve estar configurado"
    ]
