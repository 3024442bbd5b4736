"""Helpers internos do webhook de colaborador.

Módulo interno (prefixo _): respostas do gateway e chave de dedupe.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import Any

from app.domain.colaborador import ColaboradorEventType

SUCCESS_MESSAGES: dict[ColaboradorEventType, str] = {
    ColaboradorEventType.ADMISSION: "Admission processed successfully",
    ColaboradorEventType.TRANSFER: "Transfer processed successfully",
    ColaboradorEventType.TERMINATION: "Termination processed successfully",
    ColaboradorEventType.PROMOTION: "Promotion processed successfully",
}


@dataclass(frozen=True, slots=True)
class WebhookOutcome:
    """Resposta do gateway (status HTTP + corpo)."""

    status_code: int
    body: dict[str, Any] = field(default_factory=dict)

    @property
    def acknowledged(self) -> bool:
        return bool(self.body.get("acknowledged"))

    @property
    def error_message(self) -> str:
        details = self.body.get("details")
        if details:
            return "; ".join(str(d) for d in details)
        return str(self.body.get("message") or self.body.get("error") or "")


def unauthorized() -> WebhookOutcome:
    return WebhookOutcome(401, {"error": "Invalid webhook signature", "acknowledged": False})


def invalid_payload(details: list[str]) -> WebhookOutcome:
    return WebhookOutcome(
        400, {"error": "Invalid payload", "details": details, "acknowledged": False}
    )


def discrepancy_conflict(
    employee_id: str, message: str, action: str | None, case_id: str | None
) -> WebhookOutcome:
    return WebhookOutcome(
        409,
        {
            "error": "Cargo discrepancy detected",
            "message": message,
            "action": action,
            "acknowledged": False,
            "colaborador_id": employee_id,
            "proposta_id": case_id,
        },
    )


def internal_error(employee_id: str | None, message: str) -> WebhookOutcome:
    return WebhookOutcome(
        500,
        {
            "error": "Internal server error",
            "message": message,
            "acknowledged": False,
            "colaborador_id": employee_id,
        },
    )


def acknowledged(employee_id: str, message: str, correlation_id: str) -> WebhookOutcome:
    return WebhookOutcome(
        200,
        {
            "acknowledged": True,
            "message": message,
            "colaborador_id": employee_id,
            "correlation_id": correlation_id,
        },
    )


def build_dedupe_key(employee_id: str, event_type: str, timestamp: str) -> str:
    """Chave opaca (hash) de `colaborador_id:event_type:timestamp`."""
    raw = f"{employee_id}:{event_type}:{timestamp}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def employee_id_of(payload: Any) -> str | None:
    if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
        value = payload["data"].get("colaborador_id")
        return str(value) if value else None
    return None
