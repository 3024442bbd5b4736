"""Contexto de auditoria compartilhado entre normalizador, resolvedor e monitor."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

SYSTEM_USER_ID = "system"


@dataclass(frozen=True, slots=True)
class AuditActor:
    """Quem executou a ação auditada."""

    user_id: str = SYSTEM_USER_ID
    user_name: str = "RH Legado Webhook"
    reason: str | None = None
    correlation_id: str | None = None

    def with_reason(self, reason: str) -> AuditActor:
        return AuditActor(self.user_id, self.user_name, reason, self.correlation_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "user_name": self.user_name,
            "reason": self.reason,
            "correlation_id": self.correlation_id,
        }


@dataclass(frozen=True, slots=True)
class AuditEntry:
    """Entrada de auditoria pendente (emitida após o commit do ledger)."""

    entity_id: str
    entity_type: str
    action: str
    reason: str
    before: dict[str, Any] | None = None
    after: dict[str, Any] | None = None
    extra: dict[str, Any] = field(default_factory=dict)
