"""HeadcountRecord — registro do quadro de lotação.

Um registro por (plano de vagas, posto de trabalho, cargo) com vagas
previstas, efetivas e reservadas. Mutado apenas pelo normalizador,
sempre dentro de uma transação do ledger; nunca removido, só desativado.

Disponibilidade = previstas - efetivas - reservadas. Pode ficar negativa
(déficit), que é um estado válido e reportável.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, date, datetime
from enum import StrEnum
from typing import Any


class ControlMode(StrEnum):
    """Modo de controle do quadro."""

    DAILY = "diario"
    ACCRUAL_PERIOD = "competencia"


@dataclass(frozen=True, slots=True)
class HeadcountRecord:
    """Linha do quadro de lotação.

    Attributes:
        id: Identificador do registro
        staffing_plan_id: Plano de vagas dono do registro (define a empresa)
        job_slot_id: Posto de trabalho (chaveado pelo centro de custo)
        job_code_id: Cargo controlado por este registro
        planned_count: Vagas previstas
        actual_count: Vagas efetivas (colaboradores ativos)
        reserved_count: Vagas reservadas
        control_start_date: Início do controle
        control_mode: diario ou competencia
        active: Registro ativo
        slot_job_code: Cargo esperado da vaga, quando difere do cargo do registro
    """

    id: str
    staffing_plan_id: str
    job_slot_id: str
    job_code_id: str
    planned_count: int = 0
    actual_count: int = 0
    reserved_count: int = 0
    control_start_date: date | None = None
    control_mode: ControlMode = ControlMode.DAILY
    active: bool = True
    slot_job_code: str | None = None
    updated_at: datetime | None = None

    @property
    def available_count(self) -> int:
        """Vagas disponíveis (negativo indica déficit)."""
        return self.planned_count - self.actual_count - self.reserved_count

    def has_capacity(self) -> bool:
        return self.available_count > 0

    def expected_job_code(self) -> str:
        """Cargo que a vaga espera receber."""
        return self.slot_job_code or self.job_code_id

    def with_actual_delta(self, delta: int) -> HeadcountRecord:
        """Retorna cópia com vagas efetivas ajustadas.

        Raises:
            ValueError: Se o ajuste deixaria vagas efetivas negativas.
        """
        new_count = self.actual_count + delta
        if new_count < 0:
            msg = f"vagas_efetivas negativas no registro {self.id}: {new_count}"
            raise ValueError(msg)
        return replace(self, actual_count=new_count, updated_at=datetime.now(UTC))

    def with_actual_count(self, count: int) -> HeadcountRecord:
        return self.with_actual_delta(count - self.actual_count)

    def to_dict(self) -> dict[str, Any]:
        """Converte para dicionário (auditoria/API)."""
        return {
            "id": self.id,
            "plano_vagas_id": self.staffing_plan_id,
            "posto_trabalho_id": self.job_slot_id,
            "cargo_id": self.job_code_id,
            "cargo_vaga": self.slot_job_code,
            "vagas_previstas": self.planned_count,
            "vagas_efetivas": self.actual_count,
            "vagas_reservadas": self.reserved_count,
            "vagas_disponiveis": self.available_count,
            "data_inicio_controle": (
                self.control_start_date.isoformat() if self.control_start_date else None
            ),
            "tipo_controle": self.control_mode.value,
            "ativo": self.active,
        }


def pick_record(records: list[HeadcountRecord]) -> HeadcountRecord | None:
    """Escolhe o primeiro registro ativo (ou o primeiro, se nenhum ativo)."""
    if not records:
        return None
    return next((record for record in records if record.active), records[0])
