"""Emissão de auditoria tolerante a falhas.

Auditoria nunca interrompe o fluxo principal: falhas do backend são
logadas e engolidas aqui, na borda.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.domain.audit import AuditActor, AuditEntry
    from app.protocols.audit_store import AuditServiceProtocol

logger = logging.getLogger(__name__)


async def emit_audit(
    audit: AuditServiceProtocol,
    entry: AuditEntry,
    actor: AuditActor,
) -> None:
    """Registra `entry` com o motivo embutido no ator."""
    after = entry.after
    if entry.extra:
        after = {**(after or {}), **entry.extra}
    try:
        await audit.log_action(
            entry.entity_id,
            entry.entity_type,
            entry.action,
            actor.with_reason(entry.reason),
            entry.before,
            after,
        )
    except Exception as exc:
        logger.warning(
            "audit_emit_failed",
            extra={
                "action": entry.action,
                "entity_type": entry.entity_type,
                "error_type": type(exc).__name__,
            },
        )


async def emit_audits(
    audit: AuditServiceProtocol,
    entries: list[AuditEntry],
    actor: AuditActor,
) -> None:
    for entry in entries:
        await emit_audit(audit, entry, actor)
