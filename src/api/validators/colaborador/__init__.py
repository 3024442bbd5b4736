"""Validadores do webhook de colaborador (RH legado).

Uso:
    from api.validators.colaborador import validate_webhook_payload

    errors = validate_webhook_payload(payload, ColaboradorEventType.ADMISSION)
"""

from api.validators.colaborador.dates import parse_iso_date, parse_iso_datetime
from api.validators.colaborador.payload import resolve_event_type, validate_webhook_payload

__all__ = [
    "parse_iso_date",
    "parse_iso_datetime",
    "resolve_event_type",
    "validate_webhook_payload",
]
