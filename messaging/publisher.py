"""
Order publisher: the delivery side of checkout.

Responsibilities:
- Serialize an order and send it to the processing queue as one message,
  with bounded retry and exponential backoff
- Own the process-scoped queue consumer and its two handlers
- Track each order's DeliveryAttempt until it reaches a terminal state
- Alert operators when delivery is exhausted or processing fails

The queue is a best-effort downstream notification. The order store is the
system of record, so nothing here ever undoes a saved order.
"""

import asyncio
import logging
from typing import Optional

from checkout.config import PublisherSettings, validate_publisher_settings
from checkout.errors import DeliveryExhaustedError, ProcessingFailedError
from checkout.models import Order
from messaging.consumer import OrderQueueConsumer
from messaging.delivery import DeliveryAttempt, DeliveryStatus
from messaging.handlers import (
    AcknowledgeHandler,
    MessageProcessedHandler,
    NotifyOnErrorHandler,
    ProcessingErrorHandler,
)
from messaging.notifier import HttpErrorNotifier
from messaging.queue import QueueMessage, QueueTransport, connect_transport

logger = logging.getLogger("order_publisher")

# Upper bound on attempts waiting for a consumer outcome
MAX_OPEN_ATTEMPTS = 10_000


class _TrackingErrorHandler(ProcessingErrorHandler):
    """Marks the matching attempt failed, then runs the injected handler."""

    def __init__(self, publisher: "OrderPublisher", inner: ProcessingErrorHandler):
        self.publisher = publisher
        self.inner = inner

    async def handle(self, failure: ProcessingFailedError) -> None:
        attempt = self.publisher._settle(failure.message.message_id)
        if attempt:
            attempt.mark_processing_failed(str(failure.cause))
        await self.inner.handle(failure)


class OrderPublisher:
    """
    Publishes orders to the processing queue.

    Example:
        settings = load_publisher_settings()
        publisher = OrderPublisher.from_settings(settings)
        async with publisher:                # starts / stops the consumer
            attempt = await publisher.publish(order)
    """

    def __init__(
        self,
        settings: PublisherSettings,
        transport: QueueTransport,
        on_processed: Optional[MessageProcessedHandler] = None,
        on_error: Optional[ProcessingErrorHandler] = None,
        notifier: Optional[HttpErrorNotifier] = None,
    ):
        """
        Args:
            settings: Validated publisher settings
            transport: Queue transport to send and receive on
            on_processed: Handler for received messages (defaults to plain acknowledgement)
            on_error: Handler for processing failures (defaults to alerting via `notifier`)
            notifier: Alert sender; built from settings if omitted

        Raises:
            ConfigurationError: If settings are missing or incomplete.
        """
        self.settings = validate_publisher_settings(settings)
        self.transport = transport
        self.queue_name = settings.QUEUE_NAME
        self.notifier = notifier or HttpErrorNotifier(
            settings.ERROR_NOTIFICATION_URL,
            timeout=settings.NOTIFICATION_TIMEOUT,
        )

        self.on_processed = on_processed or AcknowledgeHandler()
        self.on_error = on_error or NotifyOnErrorHandler(self.notifier)

        # message_id -> attempt still waiting for a consumer outcome, oldest first
        self._open_attempts: dict[str, DeliveryAttempt] = {}
        self.max_open_attempts = MAX_OPEN_ATTEMPTS

        self.consumer = OrderQueueConsumer(
            transport,
            self.queue_name,
            on_processed=self.on_processed,
            on_error=_TrackingErrorHandler(self, self.on_error),
            on_completed=self._acknowledge,
            reconnect_delay=settings.RECONNECT_DELAY,
        )

    @classmethod
    def from_settings(cls, settings: PublisherSettings, **kwargs) -> "OrderPublisher":
        """Build a publisher whose transport comes from SERVICE_BUS."""
        validate_publisher_settings(settings)
        return cls(settings, connect_transport(settings.SERVICE_BUS), **kwargs)

    # =========================================================================
    # Consumer lifecycle
    # =========================================================================

    async def start(self) -> None:
        """Start the background consumer (once per process)."""
        await self.consumer.start()

    async def stop(self) -> None:
        await self.consumer.stop()

    async def __aenter__(self) -> "OrderPublisher":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    # =========================================================================
    # Publishing
    # =========================================================================

    async def publish(self, order: Order) -> DeliveryAttempt:
        """
        Send the serialized order as one message.

        Up to MAX_SEND_ATTEMPTS tries, each bounded by SEND_TIMEOUT, with
        RETRY_DELAY doubling between tries (capped at MAX_RETRY_DELAY).

        Returns:
            The attempt, in SENT state

        Raises:
            DeliveryExhaustedError: If every try failed. An operator alert is
                sent before raising.
        """
        attempt = DeliveryAttempt(
            order_id=order.id,
            queue_name=self.queue_name,
            payload=order.to_payload(),
        )
        self._track(attempt)

        max_attempts = self.settings.MAX_SEND_ATTEMPTS
        delay = self.settings.RETRY_DELAY
        last_error: Optional[Exception] = None

        for number in range(1, max_attempts + 1):
            attempt.attempts = number
            try:
                await asyncio.wait_for(
                    self.transport.send(self.queue_name, attempt.payload, message_id=attempt.message_id),
                    timeout=self.settings.SEND_TIMEOUT,
                )
            except Exception as e:
                last_error = e
                logger.warning(
                    f"Send attempt {number}/{max_attempts} for order {order.id} "
                    f"failed: {type(e).__name__}: {e}"
                )
                if number < max_attempts:
                    await asyncio.sleep(min(delay, self.settings.MAX_RETRY_DELAY))
                    delay *= 2
                continue

            # The consumer may already have settled the message
            if attempt.status == DeliveryStatus.PENDING:
                attempt.mark_sent()
            if not self.consumer.is_running:
                # Nothing in this process will report an outcome for it
                self._open_attempts.pop(attempt.message_id, None)
            logger.info(f"Order {order.id} sent to queue '{self.queue_name}' on attempt {number}")
            return attempt

        self._open_attempts.pop(attempt.message_id, None)
        attempt.mark_exhausted(f"{type(last_error).__name__}: {last_error}")
        error = DeliveryExhaustedError(attempt, last_error)
        logger.error(str(error))
        await self.notifier.notify(attempt.payload, reason=str(error))
        raise error

    def _track(self, attempt: DeliveryAttempt) -> None:
        while len(self._open_attempts) >= self.max_open_attempts:
            oldest = next(iter(self._open_attempts))
            dropped = self._open_attempts.pop(oldest)
            logger.warning(f"No consumer outcome yet for order {dropped.order_id}; no longer tracking it")
        self._open_attempts[attempt.message_id] = attempt

    def _acknowledge(self, message: QueueMessage) -> None:
        """Called by the consumer once the message has been completed on the queue."""
        attempt = self._settle(message.message_id)
        if attempt:
            attempt.mark_acknowledged()

    def _settle(self, message_id: str) -> Optional[DeliveryAttempt]:
        """Remove and return the open attempt for a message, moving it to SENT first if needed."""
        attempt = self._open_attempts.pop(message_id, None)
        if attempt and attempt.status == DeliveryStatus.PENDING:
            attempt.mark_sent()
        return attempt

    def open_attempts(self) -> list[DeliveryAttempt]:
        """Attempts sent but not yet acknowledged or failed."""
        return list(self._open_attempts.values())
