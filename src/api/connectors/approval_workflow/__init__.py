"""Conector do workflow de aprovação (escalonamento de discrepâncias)."""

from .client import ApprovalWorkflowClient, InMemoryEscalationGateway

__all__ = ["ApprovalWorkflowClient", "InMemoryEscalationGateway"]
