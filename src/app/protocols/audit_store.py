"""Protocolo da trilha de auditoria."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from app.domain.audit import AuditActor


class AuditServiceProtocol(ABC):
    """Contrato de auditoria, chamado em toda transição relevante.

    Implementações não devem propagar falhas de escrita: auditoria nunca
    interrompe o fluxo principal.
    """

    @abstractmethod
    async def log_action(
        self,
        entity_id: str,
        entity_type: str,
        action: str,
        actor: AuditActor,
        before: dict[str, Any] | None = None,
        after: dict[str, Any] | None = None,
    ) -> None:
        """Registra uma ação auditável."""
