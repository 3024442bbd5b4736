"""Leitura relacional de empresa/política e do cadastro de colaboradores ativos."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from app.domain.errors import PolicyResolutionError
from app.infra.stores.sql_models import ColaboradorRow, CompanyRow, StaffingPlanRow
from app.protocols.company_policy import CompanyPolicyProtocol
from utils.errors import DatabaseUnavailableError

if TYPE_CHECKING:
    from sqlalchemy.orm import sessionmaker


class SqlCompanyPolicyStore(CompanyPolicyProtocol):
    """Resolve empresa do plano e `acao_cargo_discrepante`.

    Qualquer falha de banco vira PolicyResolutionError.
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def _get_company_id(self, staffing_plan_id: str) -> str | None:
        with self._session_factory() as session:
            plan = session.get(StaffingPlanRow, staffing_plan_id)
            return plan.empresa_id if plan is not None else None

    def _get_action(self, company_id: str) -> str | None:
        with self._session_factory() as session:
            company = session.get(CompanyRow, company_id)
            return company.acao_cargo_discrepante if company is not None else None

    async def get_company_id(self, staffing_plan_id: str) -> str | None:
        try:
            return await asyncio.to_thread(self._get_company_id, staffing_plan_id)
        except SQLAlchemyError as exc:
            raise PolicyResolutionError("Falha ao ler plano de vagas") from exc

    async def get_discrepancy_action(self, company_id: str) -> str | None:
        try:
            return await asyncio.to_thread(self._get_action, company_id)
        except SQLAlchemyError as exc:
            raise PolicyResolutionError("Falha ao ler configuração da empresa") from exc


class SqlActiveRoster:
    """Conta colaboradores ativos por (centro de custo, cargo)."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def _count(self, job_slot_id: str, job_code_id: str) -> int:
        stmt = select(func.count(ColaboradorRow.id)).where(
            ColaboradorRow.centro_custo_id == job_slot_id,
            ColaboradorRow.cargo_id == job_code_id,
            ColaboradorRow.status == "ativo",
        )
        with self._session_factory() as session:
            return int(session.execute(stmt).scalar_one())

    async def count_active(self, job_slot_id: str, job_code_id: str) -> int:
        try:
            return await asyncio.to_thread(self._count, job_slot_id, job_code_id)
        except SQLAlchemyError as exc:
            raise DatabaseUnavailableError("Falha ao contar colaboradores ativos") from exc
