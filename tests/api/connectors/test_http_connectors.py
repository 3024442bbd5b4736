"""Testes dos clientes HTTP de saída (workflow de aprovação e notificações)."""

from __future__ import annotations

import json

import httpx
import pytest

from api.connectors.approval_workflow import ApprovalWorkflowClient
from api.connectors.http_base import HttpClient, HttpClientConfig, HttpError
from api.connectors.notifications import NotificationServiceClient
from app.domain.errors import EscalationError, NotificationDeliveryError


def _client(handler, max_retries: int = 2) -> HttpClient:
    config = HttpClientConfig(max_retries=max_retries, backoff_base_seconds=0.0)
    return HttpClient(config, transport=httpx.MockTransport(handler))


class TestHttpClient:
    @pytest.mark.asyncio
    async def test_retries_server_errors_then_succeeds(self) -> None:
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            if len(calls) < 3:
                return httpx.Response(503)
            return httpx.Response(200, json={"ok": True})

        response = await _client(handler).post("https://svc.test/x", json={})

        assert response.status_code == 200
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self) -> None:
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(422)

        with pytest.raises(HttpError) as exc_info:
            await _client(handler).post("https://svc.test/x", json={})

        assert exc_info.value.status_code == 422
        assert exc_info.value.is_retryable is False
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_connection_errors_exhaust_retries(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("recusado", request=request)

        with pytest.raises(HttpError, match="http_connection_error"):
            await _client(handler, max_retries=1).post("https://svc.test/x", json={})


class TestApprovalWorkflowClient:
    @pytest.mark.asyncio
    async def test_create_case_posts_proposal_and_returns_id(self) -> None:
        seen: dict[str, object] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"id": 42})

        client = ApprovalWorkflowClient("https://workflow.test/", _client(handler), api_token="tk")

        case_id = await client.create_case(
            "Aprovação de discrepância",
            "detalhe",
            "q1",
            "cargo-gerente",
            "cargo-analista",
        )

        assert case_id == "42"
        assert seen["url"] == "https://workflow.test/api/propostas"
        assert seen["auth"] == "Bearer tk"
        body = seen["body"]
        assert body["tipo"] == "correcao_cargo"
        assert body["cargo_esperado"] == "cargo-gerente"
        assert body["cargo_atual"] == "cargo-analista"

    @pytest.mark.asyncio
    async def test_missing_id_raises_escalation_error(self) -> None:
        client = ApprovalWorkflowClient(
            "https://workflow.test",
            _client(lambda request: httpx.Response(200, json={"status": "ok"})),
        )

        with pytest.raises(EscalationError, match="não retornou id"):
            await client.create_case("d", "det", "q1", "a", "b")

    @pytest.mark.asyncio
    async def test_http_failure_raises_escalation_error(self) -> None:
        client = ApprovalWorkflowClient(
            "https://workflow.test",
            _client(lambda request: httpx.Response(500), max_retries=0),
        )

        with pytest.raises(EscalationError) as exc_info:
            await client.create_case("d", "det", "q1", "a", "b")

        assert isinstance(exc_info.value.__cause__, HttpError)


class TestNotificationServiceClient:
    @pytest.mark.asyncio
    async def test_send_posts_template_payload(self) -> None:
        seen: dict[str, object] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(202)

        client = NotificationServiceClient("https://notify.test", _client(handler))

        await client.send(
            "integration_alert",
            "admin_team",
            {"service_name": "rh_legado_webhook"},
            "high",
            ("email", "in_app"),
        )

        assert seen["url"] == "https://notify.test/api/notifications/send"
        assert seen["body"] == {
            "template_id": "integration_alert",
            "recipient_id": "admin_team",
            "variables": {"service_name": "rh_legado_webhook"},
            "priority": "high",
            "channels": ["email", "in_app"],
        }

    @pytest.mark.asyncio
    async def test_send_failure_raises_delivery_error(self) -> None:
        client = NotificationServiceClient(
            "https://notify.test",
            _client(lambda request: httpx.Response(400)),
        )

        with pytest.raises(NotificationDeliveryError, match="integration_alert"):
            await client.send("integration_alert", "admin_team", {}, "high", ["email"])
