"""Normalizers por origem — conversão de payloads externos para modelos internos.

Estrutura:
- colaborador/: envelope de webhook do RH legado -> ColaboradorEvent

Cada origem tem seu próprio normalizer, mantendo SRP.
"""

from .colaborador import normalize_webhook_payload, parse_colaborador_event

__all__ = [
    "normalize_webhook_payload",
    "parse_colaborador_event",
]
