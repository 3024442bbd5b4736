"""Cliente do workflow de aprovação (criação de casos de correção).

O pipeline faz uma única chamada ao workflow: criar o caso quando a
política da empresa exige aprovação para cargo divergente. O estado do
caso depois disso pertence ao workflow.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field

import httpx

from api.connectors.http_base import HttpClient, HttpError
from app.domain.errors import EscalationError

logger = logging.getLogger(__name__)

CASES_PATH = "/api/propostas"
CASE_TYPE = "correcao_cargo"


class ApprovalWorkflowClient:
    """EscalationGateway via HTTP.

    Args:
        base_url: Base URL do workflow de aprovação
        http_client: HttpClient com timeout/backoff configurados
        api_token: Bearer token de serviço (opcional)
    """

    def __init__(self, base_url: str, http_client: HttpClient, api_token: str = "") -> None:
        self._url = f"{base_url.rstrip('/')}{CASES_PATH}"
        self._http = http_client
        self._headers = {"Authorization": f"Bearer {api_token}"} if api_token else {}

    async def create_case(
        self,
        description: str,
        detail: str,
        source_slot_id: str,
        expected_job_code: str,
        actual_job_code: str,
    ) -> str:
        """Cria caso de correção e retorna seu id.

        Raises:
            EscalationError: Falha HTTP ou resposta sem id.
        """
        body = {
            "tipo": CASE_TYPE,
            "descricao": description,
            "detalhamento": detail,
            "posto_trabalho_id": source_slot_id,
            "cargo_esperado": expected_job_code,
            "cargo_atual": actual_job_code,
            "solicitante_id": "system",
        }
        try:
            response = await self._http.post(self._url, json=body, headers=self._headers)
            data = response.json()
        except (HttpError, httpx.HTTPError, ValueError) as exc:
            logger.warning(
                "escalation_case_failed",
                extra={"error_type": type(exc).__name__, "posto_trabalho_id": source_slot_id},
            )
            raise EscalationError("Falha ao criar caso de correção no workflow") from exc

        case_id = data.get("id") if isinstance(data, dict) else None
        if not case_id:
            raise EscalationError("Workflow de aprovação não retornou id do caso")

        logger.info(
            "escalation_case_created",
            extra={"case_id": case_id, "posto_trabalho_id": source_slot_id},
        )
        return str(case_id)


@dataclass
class InMemoryEscalationGateway:
    """Gateway em memória (dev/test): registra casos e devolve ids locais."""

    cases: list[dict[str, str]] = field(default_factory=list)
    fail_with: Exception | None = None

    async def create_case(
        self,
        description: str,
        detail: str,
        source_slot_id: str,
        expected_job_code: str,
        actual_job_code: str,
    ) -> str:
        if self.fail_with is not None:
            raise EscalationError(str(self.fail_with)) from self.fail_with
        case_id = f"proposta-{uuid.uuid4().hex[:12]}"
        self.cases.append(
            {
                "id": case_id,
                "description": description,
                "detail": detail,
                "source_slot_id": source_slot_id,
                "expected_job_code": expected_job_code,
                "actual_job_code": actual_job_code,
            }
        )
        logger.info("escalation_case_created_in_memory", extra={"case_id": case_id})
        return case_id
