"""Protocolo de leitura da configuração de empresa."""

from __future__ import annotations

from abc import ABC, abstractmethod


class CompanyPolicyProtocol(ABC):
    """Resolve empresa e política de cargo divergente.

    Falhas de leitura devem ser lançadas como PolicyResolutionError.
    """

    @abstractmethod
    async def get_company_id(self, staffing_plan_id: str) -> str | None:
        """Empresa dona do plano de vagas (None se inexistente)."""

    @abstractmethod
    async def get_discrepancy_action(self, company_id: str) -> str | None:
        """Valor bruto de `acao_cargo_discrepante` (None se não configurado)."""
