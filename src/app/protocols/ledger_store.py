"""Protocolos do ledger (quadro de lotação).

O ledger é a única fonte de verdade das vagas efetivas. Toda mutação
acontece dentro de `run_in_transaction`: a função recebida executa de
forma síncrona sobre um LedgerTransaction e ou tudo é confirmado ou
nada é. Leituras de LedgerTransaction bloqueiam as linhas lidas até o
fim da transação (SELECT ... FOR UPDATE no backend SQL).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable

    from app.domain.audit import AuditActor
    from app.domain.headcount import HeadcountRecord

T = TypeVar("T")


class LedgerTransaction(ABC):
    """Unidade de trabalho sobre o quadro (síncrona, dentro da transação)."""

    @abstractmethod
    def find_by_cost_center_and_job_code(
        self, job_slot_id: str, job_code_id: str
    ) -> list[HeadcountRecord]:
        """Registros do posto para o cargo, com lock de linha."""

    @abstractmethod
    def find_by_cost_center(self, job_slot_id: str) -> list[HeadcountRecord]:
        """Todos os registros do posto (diagnóstico de cargos irmãos)."""

    @abstractmethod
    def find_by_staffing_plan(self, staffing_plan_id: str) -> list[HeadcountRecord]:
        """Registros ativos de um plano de vagas, com lock de linha."""

    @abstractmethod
    def update(self, record: HeadcountRecord, audit_context: AuditActor) -> HeadcountRecord:
        """Persiste o registro na transação corrente.

        Raises:
            ValueError: Se vagas efetivas ficarem negativas.
        """


class LedgerStoreProtocol(ABC):
    """Contrato do repositório do quadro de lotação."""

    @abstractmethod
    async def run_in_transaction(self, work: Callable[[LedgerTransaction], T]) -> T:
        """Executa `work` em uma transação; rollback total se lançar.

        Raises:
            TransientStoreError: Contenção de lock ou queda de conexão.
        """

    @abstractmethod
    async def find_by_cost_center_and_job_code(
        self, job_slot_id: str, job_code_id: str
    ) -> list[HeadcountRecord]:
        """Leitura sem lock (resolvedor de discrepância)."""

    @abstractmethod
    async def find_by_cost_center(self, job_slot_id: str) -> list[HeadcountRecord]:
        """Leitura sem lock de todos os registros do posto."""

    @abstractmethod
    async def find_by_staffing_plan(self, staffing_plan_id: str) -> list[HeadcountRecord]:
        """Leitura sem lock dos registros ativos de um plano."""
