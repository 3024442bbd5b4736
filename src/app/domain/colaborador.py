"""ColaboradorEvent — evento de ciclo de vida de colaborador.

Transiente: construído a partir do payload validado do webhook e
consumido pelo resolvedor de discrepância e pelo normalizador.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import StrEnum
from typing import Any


class ColaboradorEventType(StrEnum):
    """Tipos de evento aceitos pelo normalizador."""

    ADMISSION = "admissao"
    TRANSFER = "transferencia"
    TERMINATION = "desligamento"
    PROMOTION = "promocao"


class EmploymentStatus(StrEnum):
    ACTIVE = "ativo"
    INACTIVE = "inativo"


# event_type do envelope do webhook -> tipo de evento interno
WEBHOOK_EVENT_TYPES: dict[str, ColaboradorEventType] = {
    "colaborador.admitido": ColaboradorEventType.ADMISSION,
    "colaborador.transferido": ColaboradorEventType.TRANSFER,
    "colaborador.desligado": ColaboradorEventType.TERMINATION,
    "colaborador.promovido": ColaboradorEventType.PROMOTION,
}


@dataclass(frozen=True, slots=True)
class EventData:
    """Dados específicos do evento (origem de transferência/promoção)."""

    event_date: datetime
    previous_cost_center_id: str | None = None
    previous_job_code_id: str | None = None


@dataclass(frozen=True, slots=True)
class ColaboradorEvent:
    """Evento de colaborador normalizado.

    O centro de custo é usado como chave do posto de trabalho.
    """

    employee_id: str
    name: str
    national_id: str
    job_code_id: str
    cost_center_id: str
    shift: str
    hire_date: date
    disability_flag: bool
    status: EmploymentStatus
    event_type: ColaboradorEventType
    termination_date: date | None = None
    event_data: EventData | None = None

    @property
    def job_slot_id(self) -> str:
        return self.cost_center_id

    @property
    def previous_cost_center_id(self) -> str | None:
        return self.event_data.previous_cost_center_id if self.event_data else None

    @property
    def previous_job_code_id(self) -> str | None:
        return self.event_data.previous_job_code_id if self.event_data else None

    def to_log_dict(self) -> dict[str, Any]:
        """Campos rastreáveis sem PII (sem nome e CPF)."""
        return {
            "colaborador_id": self.employee_id,
            "event_type": self.event_type.value,
            "cargo_id": self.job_code_id,
            "centro_custo_id": self.cost_center_id,
            "centro_custo_anterior": self.previous_cost_center_id,
            "cargo_anterior": self.previous_job_code_id,
        }
