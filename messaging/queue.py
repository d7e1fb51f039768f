"""
Queue transport for order messages.

`QueueTransport` is the contract the publisher and consumer use. The only
adapter shipped here is `InMemoryQueueTransport`, an asyncio-based stand-in
for a durable broker (Azure Service Bus, RabbitMQ, SQS...).

Design decisions:
- Messages stay tracked until the consumer completes them; nothing is
  dropped when a consumer stops while waiting
- A message whose processing failed is dead-lettered, not redelivered, so a
  poison message cannot trigger a stream of failure alerts
- Failures can be injected (`fail_next_sends`, `set_reachable`) so retry
  and degraded-mode behaviour can be exercised without a real broker
- Transports are shared per connection string, like a broker namespace
"""

import abc
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from checkout.errors import ConfigurationError, TransportError

logger = logging.getLogger("queue_transport")

MEMORY_SCHEME = "memory://"


@dataclass
class QueueMessage:
    """
    A message as seen by a consumer.

    Attributes:
        body: The serialized payload
        queue_name: Queue the message was sent to
        message_id: Unique id, chosen by the sender or generated on send
        enqueued_at: When the transport accepted the message
        delivery_count: How many times the message has been handed to a consumer
    """
    body: str
    queue_name: str
    message_id: str = field(default_factory=lambda: str(uuid4()))
    enqueued_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    delivery_count: int = 0
    dead_letter_reason: Optional[str] = None

    def __str__(self) -> str:
        return f"QueueMessage({self.queue_name}, id={self.message_id[:8]}, deliveries={self.delivery_count})"


class QueueTransport(abc.ABC):
    """Send / receive / settle operations on named queues."""

    @abc.abstractmethod
    async def send(self, queue_name: str, body: str, message_id: Optional[str] = None) -> str:
        """
        Send one message and return its id.

        Raises:
            TransportError: If the message was not accepted.
        """

    @abc.abstractmethod
    async def receive(self, queue_name: str) -> QueueMessage:
        """Wait for the next message on the queue."""

    @abc.abstractmethod
    async def complete(self, message: QueueMessage) -> None:
        """Acknowledge a successfully processed message."""

    @abc.abstractmethod
    async def dead_letter(self, message: QueueMessage, reason: str) -> None:
        """Move a message that could not be processed out of the queue."""

    async def close(self) -> None:
        """Release transport resources."""


class InMemoryQueueTransport(QueueTransport):
    """
    In-process queue transport backed by asyncio queues.

    Example usage:
        transport = InMemoryQueueTransport()
        await transport.send("orders", payload)
        message = await transport.receive("orders")
        await transport.complete(message)
    """

    def __init__(self, namespace: str = "local"):
        self.namespace = namespace

        # queue_name -> pending messages
        self._queues: dict[str, asyncio.Queue] = {}
        # message_id -> message handed out but not yet settled
        self._in_flight: dict[str, QueueMessage] = {}

        # Tracking for tests and demos
        self.sent_messages: list[QueueMessage] = []
        self.completed_messages: list[QueueMessage] = []
        self.dead_letters: list[QueueMessage] = []
        self.send_calls = 0

        self._failures_remaining = 0
        self._reachable = True
        self._closed = False

    def _queue(self, queue_name: str) -> asyncio.Queue:
        if queue_name not in self._queues:
            self._queues[queue_name] = asyncio.Queue()
        return self._queues[queue_name]

    def _check_available(self, operation: str) -> None:
        if self._closed:
            raise TransportError(f"Transport '{self.namespace}' is closed ({operation})")
        if not self._reachable:
            raise TransportError(f"Transport '{self.namespace}' is unreachable ({operation})")

    # =========================================================================
    # QueueTransport
    # =========================================================================

    async def send(self, queue_name: str, body: str, message_id: Optional[str] = None) -> str:
        self.send_calls += 1
        self._check_available("send")
        if self._failures_remaining > 0:
            self._failures_remaining -= 1
            raise TransportError(f"Simulated send failure on queue '{queue_name}'")

        message = QueueMessage(body=body, queue_name=queue_name)
        if message_id:
            message.message_id = message_id

        self._queue(queue_name).put_nowait(message)
        self.sent_messages.append(message)
        logger.info(f"Sent {message}")
        return message.message_id

    async def receive(self, queue_name: str) -> QueueMessage:
        self._check_available("receive")
        message = await self._queue(queue_name).get()
        message.delivery_count += 1
        self._in_flight[message.message_id] = message
        return message

    async def complete(self, message: QueueMessage) -> None:
        self._check_available("complete")
        if self._in_flight.pop(message.message_id, None) is None:
            raise TransportError(f"Message {message.message_id} is not locked by a consumer")
        self.completed_messages.append(message)
        logger.debug(f"Completed {message}")

    async def dead_letter(self, message: QueueMessage, reason: str) -> None:
        self._check_available("dead_letter")
        if self._in_flight.pop(message.message_id, None) is None:
            raise TransportError(f"Message {message.message_id} is not locked by a consumer")
        message.dead_letter_reason = reason
        self.dead_letters.append(message)
        logger.warning(f"Dead-lettered {message}: {reason}")

    async def close(self) -> None:
        self._closed = True

    # =========================================================================
    # Inspection and failure injection
    # =========================================================================

    def pending_count(self, queue_name: str) -> int:
        """Messages waiting to be received."""
        queue = self._queues.get(queue_name)
        return queue.qsize() if queue else 0

    def in_flight_count(self) -> int:
        return len(self._in_flight)

    def fail_next_sends(self, count: int) -> None:
        """Make the next `count` send calls raise TransportError."""
        self._failures_remaining = count

    def set_reachable(self, reachable: bool) -> None:
        """Simulate losing or regaining the broker connection."""
        self._reachable = reachable


# Module-level registry: one transport per connection string
# In tests, call reset_transports() to start clean
_transports: dict[str, InMemoryQueueTransport] = {}


def connect_transport(connection_string: str) -> QueueTransport:
    """
    Build (or reuse) a transport for a connection string.

    Supported form: ``memory://<namespace>``.

    Raises:
        ConfigurationError: If the connection string is blank or its scheme
            is not supported.
    """
    if not connection_string or not connection_string.strip():
        raise ConfigurationError("Queue connection string is empty")

    connection_string = connection_string.strip()
    if not connection_string.startswith(MEMORY_SCHEME):
        scheme = connection_string.split("://", 1)[0] if "://" in connection_string else connection_string
        raise ConfigurationError(f"Unsupported queue connection scheme: {scheme!r}")

    namespace = connection_string[len(MEMORY_SCHEME):] or "local"
    if connection_string not in _transports:
        _transports[connection_string] = InMemoryQueueTransport(namespace)
        logger.info(f"Connected to in-memory queue namespace '{namespace}'")
    return _transports[connection_string]


def reset_transports() -> None:
    """Forget all shared transports (useful for testing)."""
    _transports.clear()
