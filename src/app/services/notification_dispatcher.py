"""Dispatcher de notificações — fila assíncrona com worker dedicado.

O resolvedor e o monitor apenas enfileiram NotificationIntent e seguem;
a entrega (com retries próprios) acontece no worker, fora do caminho
crítico da admissão. Falha de entrega nunca propaga para quem enfileirou.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from app.domain.errors import NotificationDeliveryError

if TYPE_CHECKING:
    from app.domain.notifications import NotificationIntent
    from app.protocols.notification import NotificationServiceProtocol

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


class NotificationDispatcher:
    """Fila de notificações best-effort.

    Args:
        service: Serviço de notificações
        queue_maxsize: Capacidade da fila (cheia -> intent descartado e logado)
        max_attempts: Tentativas de entrega por intent
        retry_delay_seconds: Atraso base entre tentativas (dobra a cada falha)
        sleep: Função de espera (injetável em testes)
    """

    def __init__(
        self,
        service: NotificationServiceProtocol,
        queue_maxsize: int = 1000,
        max_attempts: int = 3,
        retry_delay_seconds: float = 1.0,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._service = service
        self._queue: asyncio.Queue[NotificationIntent] = asyncio.Queue(maxsize=queue_maxsize)
        self._max_attempts = max(1, max_attempts)
        self._retry_delay_seconds = retry_delay_seconds
        self._sleep = sleep
        self._worker: asyncio.Task[None] | None = None
        self.delivered = 0
        self.dropped = 0

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def enqueue(self, intent: NotificationIntent) -> bool:
        """Enfileira sem bloquear.

        Returns:
            False se a fila estiver cheia (intent descartado).
        """
        try:
            self._queue.put_nowait(intent)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning(
                "notification_queue_full",
                extra={"template_id": intent.template_id, "recipient": intent.recipient},
            )
            return False
        return True

    def start(self) -> None:
        if self.running:
            return
        self._worker = asyncio.create_task(self._run(), name="notification-dispatcher")
        logger.info("notification_dispatcher_started")

    async def stop(self, drain_timeout_seconds: float = 5.0) -> None:
        """Drena a fila (com limite de tempo) e encerra o worker."""
        worker = self._worker
        if worker is not None and not worker.done():
            try:
                await asyncio.wait_for(self._queue.join(), timeout=drain_timeout_seconds)
            except TimeoutError:
                logger.warning("notification_drain_timeout", extra={"pending": self.pending})
            worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await worker
            self._worker = None
        else:
            await self.process_pending()
        logger.info(
            "notification_dispatcher_stopped",
            extra={"delivered": self.delivered, "dropped": self.dropped},
        )

    async def process_pending(self) -> int:
        """Entrega tudo que está na fila no task corrente (shutdown/testes)."""
        processed = 0
        while not self._queue.empty():
            intent = self._queue.get_nowait()
            try:
                await self._deliver(intent)
            except Exception:
                logger.exception(
                    "notification_worker_error",
                    extra={"template_id": intent.template_id},
                )
            finally:
                self._queue.task_done()
            processed += 1
        return processed

    async def _run(self) -> None:
        while True:
            intent = await self._queue.get()
            try:
                await self._deliver(intent)
            except Exception:
                logger.exception(
                    "notification_worker_error",
                    extra={"template_id": intent.template_id},
                )
            finally:
                self._queue.task_done()

    async def _deliver(self, intent: NotificationIntent) -> None:
        for attempt in range(1, self._max_attempts + 1):
            try:
                await self._service.send(
                    intent.template_id,
                    intent.recipient,
                    intent.variables,
                    intent.priority,
                    intent.channels,
                )
            except NotificationDeliveryError as exc:
                logger.warning(
                    "notification_delivery_failed",
                    extra={
                        "template_id": intent.template_id,
                        "attempt": attempt,
                        "max_attempts": self._max_attempts,
                        "error_type": type(exc).__name__,
                    },
                )
                if attempt < self._max_attempts:
                    await self._sleep(self._retry_delay_seconds * (2 ** (attempt - 1)))
                continue
            self.delivered += 1
            logger.info(
                "notification_delivered",
                extra={"template_id": intent.template_id, "attempt": attempt},
            )
            return

        self.dropped += 1
        logger.error(
            "notification_dropped",
            extra={"template_id": intent.template_id, "attempts": self._max_attempts},
        )
