"""Protocolos e contratos do core da aplicação."""

from .audit_store import AuditServiceProtocol
from .company_policy import CompanyPolicyProtocol
from .dedupe import AsyncDedupeProtocol
from .escalation import EscalationGatewayProtocol
from .integration_store import IntegrationStoreProtocol
from .ledger_store import LedgerStoreProtocol, LedgerTransaction
from .notification import NotificationServiceProtocol
from .roster import ActiveRosterProtocol

__all__ = [
    "ActiveRosterProtocol",
    "AsyncDedupeProtocol",
    "AuditServiceProtocol",
    "CompanyPolicyProtocol",
    "EscalationGatewayProtocol",
    "IntegrationStoreProtocol",
    "LedgerStoreProtocol",
    "LedgerTransaction",
    "NotificationServiceProtocol",
]
