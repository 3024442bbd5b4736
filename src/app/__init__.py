"""App — coração do sistema: casos de uso, serviços e infraestrutura.

Subpastas:
- bootstrap/: composition root (factories, inicialização, wiring)
- domain/: modelos do quadro de lotação, colaborador e integrações
- use_cases/: casos de uso (webhook de colaborador, reprocessamento)
- services/: normalizador, resolvedor de discrepância, retry e monitor
- infra/: implementações concretas de IO (SQL, Redis, Firestore)
- protocols/: contratos/interfaces
- observability/: correlation id e métricas

Padrão: app executa; api adapta; config configura; utils apoia.
"""
