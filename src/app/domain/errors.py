"""Erros de negócio do pipeline de colaborador.

Decisões de discrepância (bloquear/exigir aprovação) não são erros:
são retornadas como DiscrepancyResult com allowed=False.
"""

from __future__ import annotations

from collections.abc import Sequence


class LedgerError(Exception):
    """Base para erros de negócio do quadro de lotação."""


class EventValidationError(LedgerError, ValueError):
    """Payload/evento inválido. Nunca é retentado.

    Attributes:
        details: Todas as violações encontradas (não apenas a primeira).
    """

    def __init__(self, details: Sequence[str]) -> None:
        self.details = list(details)
        super().__init__(f"Dados do evento inválidos: {', '.join(self.details)}")


class UnsupportedEventTypeError(EventValidationError):
    def __init__(self, event_type: str) -> None:
        super().__init__([f"Tipo de evento não suportado: {event_type}"])
        self.event_type = event_type


class SlotNotFoundError(LedgerError):
    """Nenhum registro do quadro para (posto, cargo). Retentável.

    Attributes:
        job_slot_id: Posto de trabalho procurado
        job_code_id: Cargo procurado
        sibling_job_codes: Cargos existentes no posto (diagnóstico)
    """

    def __init__(
        self,
        job_slot_id: str,
        job_code_id: str,
        sibling_job_codes: Sequence[str] = (),
        context: str = "",
    ) -> None:
        self.job_slot_id = job_slot_id
        self.job_code_id = job_code_id
        self.sibling_job_codes = list(sibling_job_codes)
        available = ", ".join(self.sibling_job_codes) or "nenhum"
        prefix = f"{context}: " if context else ""
        super().__init__(
            f"{prefix}Nenhum quadro encontrado para centro de custo {job_slot_id} "
            f"e cargo {job_code_id}. Cargos disponíveis neste posto: {available}"
        )


class PolicyResolutionError(LedgerError):
    """Configuração da empresa ilegível. Convertido em `bloquear`."""


class EscalationError(LedgerError):
    """Falha ao criar caso de correção no workflow de aprovação. Propaga."""


class NotificationDeliveryError(LedgerError):
    """Falha de entrega de notificação (tratada apenas pelo worker)."""


class IntegrationNotFoundError(LedgerError):
    """Evento, alerta ou pedido de reprocessamento inexistente."""


class ReprocessingNotAllowedError(LedgerError):
    """Pedido de reprocessamento fora do estado `pending` ou sem tentativas."""
