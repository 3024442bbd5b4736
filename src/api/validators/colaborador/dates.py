"""Parsing de datas ISO-8601 do envelope do RH legado."""

from __future__ import annotations

from datetime import UTC, date, datetime


def parse_iso_datetime(value: object) -> datetime | None:
    """Converte string ISO-8601 em datetime com timezone (UTC se ausente).

    Returns:
        datetime ou None se o valor não for uma data ISO válida.
    """
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = f"{text[:-1]}+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def parse_iso_date(value: object) -> date | None:
    parsed = parse_iso_datetime(value)
    return parsed.date() if parsed else None
