"""Política de retry com backoff exponencial e jitter.

Independente da regra de negócio: `execute_with_policy` recebe qualquer
operação assíncrona sem argumentos.

Atraso da tentativa n (n >= 1, antes da tentativa n + 1):
    min(base * 2^(n-1) * (1 + random * jitter_ratio), max)
"""

from __future__ import annotations

import asyncio
import random
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from app.domain.errors import EventValidationError

T = TypeVar("T")

SleepFn = Callable[[float], Awaitable[None]]
OnRetryFn = Callable[[int, float, BaseException], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Configuração do retry.

    Attributes:
        max_attempts: Total de tentativas (inclui a primeira)
        base_delay_ms: Atraso base
        max_delay_ms: Teto do atraso (aplicado depois do jitter)
        jitter_ratio: Fração máxima de jitter (0.1 = até 10%)
        non_retryable: Exceções propagadas sem retry
    """

    max_attempts: int = 3
    base_delay_ms: float = 1000.0
    max_delay_ms: float = 10000.0
    jitter_ratio: float = 0.1
    non_retryable: tuple[type[BaseException], ...] = (EventValidationError,)

    def compute_delay(self, attempt: int, rand: Callable[[], float] = random.random) -> float:
        """Atraso em ms após a falha da tentativa `attempt`."""
        raw = self.base_delay_ms * (2 ** (attempt - 1)) * (1 + rand() * self.jitter_ratio)
        return min(raw, self.max_delay_ms)

    def is_retryable(self, exc: BaseException) -> bool:
        return not isinstance(exc, self.non_retryable)


@dataclass(frozen=True, slots=True)
class RetryOutcome(Generic[T]):
    value: T
    attempts: int
    elapsed_ms: float


class RetryExhaustedError(Exception):
    """Todas as tentativas falharam. `__cause__` é o último erro."""

    def __init__(self, attempts: int, elapsed_ms: float, last_error: BaseException) -> None:
        self.attempts = attempts
        self.elapsed_ms = elapsed_ms
        self.last_error = last_error
        super().__init__(str(last_error))


async def execute_with_policy(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    on_retry: OnRetryFn | None = None,
    sleep: SleepFn = asyncio.sleep,
    rand: Callable[[], float] = random.random,
) -> RetryOutcome[T]:
    """Executa `operation` aplicando a política.

    `on_retry(attempt, delay_ms, error)` é chamado antes de cada espera.
    A espera é assíncrona e não bloqueia outros eventos em processamento.

    Raises:
        RetryExhaustedError: Última tentativa também falhou.
        Exception: Erros não retentáveis propagam na primeira ocorrência.
    """
    started = time.monotonic()
    attempts = max(1, policy.max_attempts)
    for attempt in range(1, attempts + 1):
        try:
            value = await operation()
        except Exception as exc:
            if not policy.is_retryable(exc):
                raise
            if attempt >= attempts:
                elapsed_ms = (time.monotonic() - started) * 1000
                raise RetryExhaustedError(attempt, elapsed_ms, exc) from exc
            delay_ms = policy.compute_delay(attempt, rand)
            if on_retry is not None:
                await on_retry(attempt, delay_ms, exc)
            await sleep(delay_ms / 1000)
            continue
        return RetryOutcome(value, attempt, (time.monotonic() - started) * 1000)
    raise AssertionError("unreachable")
