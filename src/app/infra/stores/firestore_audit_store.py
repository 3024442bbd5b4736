"""Firestore Audit Store — trilha de auditoria do quadro de lotação.

Append-only: cada ação vira um documento com ator, estado anterior e
posterior. Falhas de escrita são logadas e nunca interrompem o pipeline.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from app.protocols.audit_store import AuditServiceProtocol

if TYPE_CHECKING:
    from google.cloud.firestore import Client as FirestoreClient

    from app.domain.audit import AuditActor

logger = logging.getLogger(__name__)

AUDIT_COLLECTION = "audit_logs"


class FirestoreAuditStore(AuditServiceProtocol):
    """Store de auditoria usando Firestore.

    Características:
        - Append-only (sem updates)
        - Document ID prefixado por entidade/dia para leitura ordenada
        - Sem PII: chamadores passam apenas IDs e contagens

    Args:
        firestore_client: Cliente Firestore
        collection_name: Nome da collection (default: audit_logs)
    """

    def __init__(
        self,
        firestore_client: FirestoreClient,
        collection_name: str = AUDIT_COLLECTION,
    ) -> None:
        self._db = firestore_client
        self._collection = collection_name

    def _append(self, record: dict[str, Any]) -> None:
        now = datetime.now(UTC)
        enriched = {**record, "timestamp": now.isoformat(), "created_at": now}
        doc_id = (
            f"{record['entity_type']}_{now.strftime('%Y%m%d')}_"
            f"{record['entity_id']}_{uuid.uuid4().hex[:12]}"
        )

        try:
            self._db.collection(self._collection).document(doc_id).set(enriched)
            logger.debug(
                "audit_record_appended",
                extra={"doc_id": doc_id, "action": record.get("action", "unknown")},
            )
        except Exception as e:
            # Não falhar o fluxo principal por erro de auditoria
            logger.error(
                "audit_append_error",
                extra={"error_type": type(e).__name__, "doc_id": doc_id},
            )

    async def log_action(
        self,
        entity_id: str,
        entity_type: str,
        action: str,
        actor: AuditActor,
        before: dict[str, Any] | None = None,
        after: dict[str, Any] | None = None,
    ) -> None:
        """Registra ação sem bloquear o event loop (SDK Firestore é síncrono)."""
        record = {
            "entity_id": entity_id,
            "entity_type": entity_type,
            "action": action,
            "actor": actor.to_dict(),
            "before": before,
            "after": after,
        }
        await asyncio.to_thread(self._append, record)
