"""Endpoints de normalização em lote e recálculo do quadro.

- POST /api/normalizacao/lote: aplica envelopes já recebidos por outro meio
  (reprocessamento de arquivo, carga inicial), sem assinatura
- POST /api/normalizacao/planos/{plano_id}/recalcular: recalcula efetivo
  a partir do cadastro de colaboradores ativos
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from api.normalizers.colaborador import parse_colaborador_event
from api.routes.state import get_pipeline
from app.domain.errors import EventValidationError
from app.services import BatchResult
from app.use_cases.colaborador import employee_id_of

logger = logging.getLogger(__name__)

router = APIRouter()


class BatchRequest(BaseModel):
    eventos: list[dict[str, Any]] = Field(min_length=1)


class ReconcileRequest(BaseModel):
    force: bool = False


@router.post("/lote")
async def process_batch(body: BatchRequest, request: Request) -> dict[str, Any]:
    """Processa envelopes em lote; inválidos entram como falha do lote."""
    result = BatchResult()
    events = []
    for envelope in body.eventos:
        try:
            events.append(parse_colaborador_event(envelope))
        except EventValidationError as exc:
            result.add_failure(
                employee_id_of(envelope) or "desconhecido",
                str(envelope.get("event_type", "")),
                str(exc),
            )

    if result.failed:
        logger.warning("batch_invalid_envelopes", extra={"invalid": result.failed})

    result = await get_pipeline(request).normalizer.process_batch(events, result)
    return result.to_dict()


@router.post("/planos/{plano_id}/recalcular")
async def reconcile_plan(
    plano_id: str,
    request: Request,
    body: ReconcileRequest | None = None,
) -> dict[str, Any]:
    force = body.force if body else False
    result = await get_pipeline(request).normalizer.reconcile_plan(plano_id, force=force)
    return result.to_dict()
