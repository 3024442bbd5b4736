"""Validação de assinatura HMAC-SHA256 do webhook do RH legado.

Header: `X-Webhook-Signature: sha256=<hex>` calculado sobre o corpo bruto.
"""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

SIGNATURE_HEADER = "x-webhook-signature"
SIGNATURE_PREFIX = "sha256="


@dataclass(frozen=True, slots=True)
class SignatureResult:
    """Resultado da verificação de assinatura."""

    valid: bool
    skipped: bool = False
    error: str | None = None


def compute_signature(raw_body: bytes, secret: str) -> str:
    """Retorna o valor esperado do header para o corpo."""
    digest = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def verify_webhook_signature(
    raw_body: bytes,
    headers: Mapping[str, str],
    secret: str | None,
    allow_unsigned: bool = False,
) -> SignatureResult:
    """Verifica a assinatura em tempo constante.

    Args:
        raw_body: Corpo bruto exatamente como recebido
        headers: Headers da requisição (case-insensitive esperado em lower)
        secret: Segredo compartilhado
        allow_unsigned: Permite pular a verificação sem segredo (apenas dev)

    Returns:
        SignatureResult com valid/skipped/error.
    """
    if not secret:
        if allow_unsigned:
            return SignatureResult(valid=True, skipped=True)
        return SignatureResult(valid=False, error="secret_not_configured")

    provided = headers.get(SIGNATURE_HEADER) or headers.get("X-Webhook-Signature")
    if not provided:
        return SignatureResult(valid=False, error="missing_signature")

    if not provided.startswith(SIGNATURE_PREFIX):
        return SignatureResult(valid=False, error="malformed_signature")

    expected = compute_signature(raw_body, secret)
    if not hmac.compare_digest(expected.encode("utf-8"), provided.encode("utf-8")):
        return SignatureResult(valid=False, error="signature_mismatch")

    return SignatureResult(valid=True)
