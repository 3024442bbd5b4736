"""Connectors — adapters de borda para sistemas externos.

Estrutura:
- rh_legado/: webhook inbound do sistema de RH legado (assinatura, parsing)
- approval_workflow/: criação de casos de correção (escalonamento)
- notifications/: envio de notificações email/in-app
- http_base.py: cliente HTTP com timeout e backoff compartilhado
"""

__all__: list[str] = []
