"""Rotas HTTP da API — adapters de entrada.

Responsabilidades:
- Definir endpoints HTTP (webhooks, monitor, normalização, health)
- Validação inicial de request (headers, path params)
- Delegação para use_cases/services do pipeline
- Respostas HTTP apropriadas

Estrutura:
- routes/webhooks/: eventos de colaborador do RH legado
- routes/integration/: dashboard, alertas e reprocessamento
- routes/normalizacao/: lote e recálculo de plano
- routes/health/: health checks e readiness

Agregação:
- router.py: registra todos os routers no app principal
"""

from __future__ import annotations

from api.routes.router import create_api_router

__all__ = ["create_api_router"]
