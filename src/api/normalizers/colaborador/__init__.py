"""Normalizer de eventos de colaborador do RH legado."""

from api.normalizers.colaborador.normalizer import (
    normalize_webhook_payload,
    parse_colaborador_event,
)

__all__ = ["normalize_webhook_payload", "parse_colaborador_event"]
