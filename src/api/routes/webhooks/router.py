"""Endpoints de webhook do sistema de RH legado.

Endpoints:
- POST /api/webhooks/colaborador/admitido
- POST /api/webhooks/colaborador/transferido
- POST /api/webhooks/colaborador/desligado
- POST /api/webhooks/colaborador/promovido
- GET  /api/webhooks/health

Fluxo:
1. Corpo bruto lido antes de qualquer parse (HMAC sobre os bytes recebidos)
2. Use case valida assinatura, envelope, cargo e aplica no quadro
3. Resposta síncrona: o RH legado decide retry pelo status HTTP
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from api.routes.state import get_pipeline
from app.domain.colaborador import ColaboradorEventType
from app.observability import correlation_scope

logger = logging.getLogger(__name__)

router = APIRouter()

CORRELATION_HEADER = "x-correlation-id"


async def _handle(request: Request, event_type: ColaboradorEventType) -> JSONResponse:
    raw_body = await request.body()
    with correlation_scope(request.headers.get(CORRELATION_HEADER)) as correlation_id:
        pipeline = get_pipeline(request)
        try:
            outcome = await pipeline.webhook.execute(raw_body, request.headers, event_type)
        except Exception:
            logger.exception(
                "webhook_unhandled_error",
                extra={"event_type": event_type.value, "correlation_id": correlation_id},
            )
            return JSONResponse(
                status_code=500,
                content={
                    "error": "Internal server error",
                    "message": "Erro inesperado ao processar webhook",
                    "acknowledged": False,
                },
            )
    return JSONResponse(status_code=outcome.status_code, content=outcome.body)


@router.post("/colaborador/admitido")
async def colaborador_admitido(request: Request) -> JSONResponse:
    """Admissão: valida cargo contra o quadro e incrementa efetivo."""
    return await _handle(request, ColaboradorEventType.ADMISSION)


@router.post("/colaborador/transferido")
async def colaborador_transferido(request: Request) -> JSONResponse:
    """Transferência: decrementa origem e incrementa destino."""
    return await _handle(request, ColaboradorEventType.TRANSFER)


@router.post("/colaborador/desligado")
async def colaborador_desligado(request: Request) -> JSONResponse:
    return await _handle(request, ColaboradorEventType.TERMINATION)


@router.post("/colaborador/promovido")
async def colaborador_promovido(request: Request) -> JSONResponse:
    return await _handle(request, ColaboradorEventType.PROMOTION)


@router.get("/health")
async def webhook_health(request: Request) -> dict[str, object]:
    """Estado do gateway conforme o monitor de integrações."""
    pipeline = get_pipeline(request)
    service_name = pipeline.webhook_settings.service_name
    statuses = {s.service_name: s for s in await pipeline.monitor.get_statuses()}
    status = statuses.get(service_name)
    return {
        "status": status.status.value if status else "unknown",
        "service": service_name,
        "timestamp": datetime.now(UTC).isoformat(),
    }
