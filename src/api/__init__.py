"""API — camada de borda com o RH legado e serviços externos.

Responsabilidades:
- Receber webhooks de colaborador
- Validar assinatura HMAC e payloads
- Normalizar envelopes para eventos de domínio
- Chamar serviços externos (workflow de aprovação, notificações)
- Expor rotas de monitoramento e reprocessamento

Subpastas:
- connectors/: adapters HTTP por sistema externo
- normalizers/: conversão de payloads externos → modelos internos
- validators/: validação de payloads
- routes/: endpoints HTTP (webhooks, health, integração, normalização)

NÃO PODE conter: regras do quadro de lotação, política de discrepância, IO de stores.
"""
