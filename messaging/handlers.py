"""
Consumer handler capabilities.

The queue consumer reports each message outcome to two injected handlers:
- MessageProcessedHandler: called for every received message; returning
  normally means the message is acknowledged
- ProcessingErrorHandler: called when the processed handler raised

Keeping them as separate objects lets each be tested without a transport.
"""

import abc
import logging

from checkout.errors import ProcessingFailedError
from messaging.notifier import HttpErrorNotifier
from messaging.queue import QueueMessage

logger = logging.getLogger("order_handlers")


class MessageProcessedHandler(abc.ABC):
    """Handles a received order message."""

    @abc.abstractmethod
    async def handle(self, message: QueueMessage) -> None:
        """Process the message. Raising marks the processing as failed."""


class ProcessingErrorHandler(abc.ABC):
    """Reacts to a message whose processing failed."""

    @abc.abstractmethod
    async def handle(self, failure: ProcessingFailedError) -> None:
        """Report the failure."""


class AcknowledgeHandler(MessageProcessedHandler):
    """
    Completes messages without further work.

    Actual order fulfilment happens in a downstream system; this side only
    confirms receipt.
    """

    async def handle(self, message: QueueMessage) -> None:
        logger.info(f"Acknowledged {message}")


class NotifyOnErrorHandler(ProcessingErrorHandler):
    """Forwards the failed order payload to the operator alert endpoint."""

    def __init__(self, notifier: HttpErrorNotifier):
        self.notifier = notifier

    async def handle(self, failure: ProcessingFailedError) -> None:
        await self.notifier.notify(failure.message.body, reason=str(failure))
