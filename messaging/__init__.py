"""
Order delivery to the processing queue.

- Queue transport contract and the in-memory adapter
- OrderPublisher: send with bounded retry, owns the background consumer
- OrderQueueConsumer: acknowledges or reports each message
- Handlers and the HTTP error notifier used on failures
"""

from messaging.delivery import DeliveryAttempt, DeliveryStatus
from messaging.queue import (
    InMemoryQueueTransport,
    QueueMessage,
    QueueTransport,
    connect_transport,
    reset_transports,
)
from messaging.notifier import HttpErrorNotifier, NotificationResult
from messaging.handlers import (
    AcknowledgeHandler,
    MessageProcessedHandler,
    NotifyOnErrorHandler,
    ProcessingErrorHandler,
)
from messaging.consumer import OrderQueueConsumer
from messaging.publisher import OrderPublisher

__all__ = [
    "DeliveryAttempt",
    "DeliveryStatus",
    "InMemoryQueueTransport",
    "QueueMessage",
    "QueueTransport",
    "connect_transport",
    "reset_transports",
    "HttpErrorNotifier",
    "NotificationResult",
    "AcknowledgeHandler",
    "MessageProcessedHandler",
    "NotifyOnErrorHandler",
    "ProcessingErrorHandler",
    "OrderQueueConsumer",
    "OrderPublisher",
]
