"""Validators por origem — validação de payloads recebidos de sistemas externos.

Estrutura:
- colaborador/: envelope de webhook do RH legado (admissão, transferência,
  desligamento, promoção)

Validators retornam todas as violações de uma vez, sem construir objetos de domínio.
"""

__all__: list[str] = []
