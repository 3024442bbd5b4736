"""Protocolo de contagem de colaboradores ativos (recálculo do quadro)."""

from __future__ import annotations

from typing import Protocol


class ActiveRosterProtocol(Protocol):
    """Fonte de verdade do cadastro de colaboradores ativos."""

    async def count_active(self, job_slot_id: str, job_code_id: str) -> int: ...
