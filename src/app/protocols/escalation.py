"""Protocolo do gateway de escalonamento (workflow de aprovação)."""

from __future__ import annotations

from typing import Protocol


class EscalationGatewayProtocol(Protocol):
    """Cria caso de correção quando a política exige aprovação.

    Síncrono do ponto de vista do resolvedor: falha lança EscalationError.
    """

    async def create_case(
        self,
        description: str,
        detail: str,
        source_slot_id: str,
        expected_job_code: str,
        actual_job_code: str,
    ) -> str: ...
