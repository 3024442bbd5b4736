"""Filters de logging para injeção de contexto e mascaramento de PII.

Campos injetados:
- correlation_id: ID de rastreamento do evento de webhook
- service: Nome do serviço (ex: quadro-lotacao-sync)

Payloads de colaborador carregam CPF e nome; o CpfMaskingFilter garante
que um CPF passado por engano em `extra` ou na mensagem nunca chegue ao log.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

# 000.000.000-00 ou 11 dígitos corridos
CPF_PATTERN = re.compile(r"\b\d{3}\.?\d{3}\.?\d{3}-?\d{2}\b")
CPF_MASK = "***.***.***-**"

# Atributos padrão do LogRecord que não devem ser reescritos
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None)).keys()
) | {"message", "asctime"}


class CorrelationIdFilter(logging.Filter):
    """Injeta correlation_id e service em cada record de log.

    Args:
        service_name: Nome do serviço para identificação nos logs.
        correlation_id_getter: Função que retorna o correlation_id atual.
            Se não fornecida, usa string vazia como fallback.
    """

    def __init__(
        self,
        service_name: str,
        correlation_id_getter: Callable[[], str] | None = None,
    ) -> None:
        super().__init__()
        self._service_name = service_name
        self._get_correlation_id = correlation_id_getter or (lambda: "")

    def filter(self, record: logging.LogRecord) -> bool:
        """Adiciona correlation_id e service ao record.

        Se correlation_id já foi passado via `extra`, preserva o valor.
        """
        existing = getattr(record, "correlation_id", None)
        record.correlation_id = existing if existing else self._get_correlation_id()
        record.service = self._service_name
        return True


def mask_cpf(value: Any) -> Any:
    """Mascara CPFs em strings; outros tipos passam intactos."""
    if isinstance(value, str):
        return CPF_PATTERN.sub(CPF_MASK, value)
    return value


class CpfMaskingFilter(logging.Filter):
    """Mascara CPFs na mensagem e em campos string de `extra`."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = mask_cpf(record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(mask_cpf(arg) for arg in record.args)
        for key, value in list(vars(record).items()):
            if key not in _RESERVED_ATTRS and isinstance(value, str):
                setattr(record, key, mask_cpf(value))
        return True
