"""
Background consumer for the order queue.

The consumer is process-scoped: it is started once at startup and stopped at
shutdown, independently of any checkout request.

Loop, per message:
1. Receive the next message (waits)
2. Call the processed handler
3. Success -> complete the message, then call the completion hook
   Failure (of the handler or of the completion) -> dead-letter it and
   call the error handler once

Transport problems while receiving are degraded mode: logged, then retried
after `reconnect_delay`. They never stop the loop and never reach callers.
"""

import asyncio
import contextlib
import logging
from typing import Callable, Optional

from checkout.errors import ProcessingFailedError
from messaging.handlers import MessageProcessedHandler, ProcessingErrorHandler
from messaging.queue import QueueMessage, QueueTransport

logger = logging.getLogger("order_consumer")


class OrderQueueConsumer:
    """
    Long-lived receiver for one queue.

    Example:
        consumer = OrderQueueConsumer(transport, "orders", AcknowledgeHandler(), error_handler)
        await consumer.start()
        ...
        await consumer.stop()   # finishes the message in hand, then exits
    """

    def __init__(
        self,
        transport: QueueTransport,
        queue_name: str,
        on_processed: MessageProcessedHandler,
        on_error: ProcessingErrorHandler,
        reconnect_delay: float = 5.0,
        on_completed: Optional[Callable[[QueueMessage], None]] = None,
    ):
        self.transport = transport
        self.queue_name = queue_name
        self.on_processed = on_processed
        self.on_error = on_error
        self.on_completed = on_completed
        self.reconnect_delay = reconnect_delay

        self._task: Optional[asyncio.Task] = None
        self._stopping: Optional[asyncio.Event] = None

        self.processed_count = 0
        self.failed_count = 0
        self.transport_errors = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the receive loop in the background. Calling it twice is a no-op."""
        if self.is_running:
            logger.warning(f"Consumer for '{self.queue_name}' already started")
            return

        self._stopping = asyncio.Event()
        self._task = asyncio.create_task(self._run(), name=f"order-consumer:{self.queue_name}")
        logger.info(f"Consumer started on queue '{self.queue_name}'")

    async def stop(self) -> None:
        """Stop accepting messages and wait for in-flight processing to finish."""
        if not self.is_running:
            return

        self._stopping.set()
        await self._task
        logger.info(
            f"Consumer stopped on queue '{self.queue_name}' "
            f"(processed={self.processed_count}, failed={self.failed_count})"
        )

    # =========================================================================
    # Receive loop
    # =========================================================================

    async def _run(self) -> None:
        while not self._stopping.is_set():
            message = await self._next_message()
            if message is None:
                continue
            await self._process(message)

    async def _next_message(self) -> Optional[QueueMessage]:
        """Wait for a message or for stop(); None means nothing to process."""
        receive = asyncio.ensure_future(self.transport.receive(self.queue_name))
        stopping = asyncio.ensure_future(self._stopping.wait())
        try:
            done, _ = await asyncio.wait({receive, stopping}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stopping.cancel()
            if not receive.done():
                receive.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await receive

        if receive not in done:
            return None

        try:
            return receive.result()
        except Exception as e:
            self.transport_errors += 1
            logger.warning(
                f"Queue '{self.queue_name}' unavailable, retrying in {self.reconnect_delay}s: {e}"
            )
            await self._pause(self.reconnect_delay)
            return None

    async def _pause(self, delay: float) -> None:
        """Sleep for `delay` seconds, waking early on stop()."""
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(self._stopping.wait(), timeout=delay)

    async def _process(self, message: QueueMessage) -> None:
        try:
            await self.on_processed.handle(message)
        except Exception as e:
            await self._fail(message, e)
            return

        try:
            await self.transport.complete(message)
        except Exception as e:
            logger.warning(f"Could not complete {message}: {e}")
            await self._fail(message, e)
            return

        self.processed_count += 1
        if self.on_completed is not None:
            self.on_completed(message)

    async def _fail(self, message: QueueMessage, cause: Exception) -> None:
        failure = ProcessingFailedError(message, cause)
        self.failed_count += 1
        logger.error(str(failure))

        try:
            await self.transport.dead_letter(message, str(cause))
        except Exception as e:
            logger.warning(f"Could not dead-letter {message}: {e}")

        try:
            await self.on_error.handle(failure)
        except Exception as e:
            logger.error(f"Error handler raised for {message}: {e}")
