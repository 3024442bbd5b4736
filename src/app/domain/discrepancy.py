"""Decisão de discrepância de cargo em admissões."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class DiscrepancyAction(StrEnum):
    """Política configurada pela empresa para cargo divergente."""

    ALLOW = "permitir"
    ALERT = "alertar"
    BLOCK = "bloquear"
    REQUIRE_APPROVAL = "exigir_aprovacao"

    @classmethod
    def parse(cls, value: str | None) -> DiscrepancyAction | None:
        if value is None:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass(frozen=True, slots=True)
class DiscrepancyResult:
    """Resultado do resolvedor.

    `allowed=False` não é erro: é uma decisão que interrompe a admissão
    antes do normalizador.
    """

    allowed: bool
    action: DiscrepancyAction | None = None
    discrepancy_detected: bool = False
    expected_job_code: str | None = None
    actual_job_code: str | None = None
    company_id: str | None = None
    case_id: str | None = None
    message: str = ""

    @classmethod
    def no_discrepancy(cls, job_code: str) -> DiscrepancyResult:
        return cls(allowed=True, actual_job_code=job_code)

    @property
    def requires_approval(self) -> bool:
        return self.action is DiscrepancyAction.REQUIRE_APPROVAL

    def to_dict(self) -> dict[str, Any]:
        return {
            "allowed": self.allowed,
            "action": self.action.value if self.action else None,
            "discrepancy_detected": self.discrepancy_detected,
            "expected_job_code": self.expected_job_code,
            "actual_job_code": self.actual_job_code,
            "case_id": self.case_id,
            "message": self.message,
        }
