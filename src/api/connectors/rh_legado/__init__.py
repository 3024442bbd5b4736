"""Webhook do RH legado: assinatura HMAC e parsing seguro."""

from .receive import (
    InvalidJsonError,
    InvalidSignatureError,
    WebhookRequestError,
    parse_webhook_request,
)
from .signature import (
    SIGNATURE_HEADER,
    SignatureResult,
    compute_signature,
    verify_webhook_signature,
)

__all__ = [
    "SIGNATURE_HEADER",
    "InvalidJsonError",
    "InvalidSignatureError",
    "SignatureResult",
    "WebhookRequestError",
    "compute_signature",
    "parse_webhook_request",
    "verify_webhook_signature",
]
