"""
Error taxonomy for the checkout workflow.

Errors fall into three groups:
- Caller input problems (InvalidBasketError, EmptyBasketError) and data
  integrity problems (NotFoundError) abort order creation before anything
  is written or published.
- Infrastructure problems that are fatal to a request (PersistenceError)
  or to startup (ConfigurationError).
- Downstream delivery problems (DeliveryExhaustedError, ProcessingFailedError,
  TransportError) that are reported but never undo a saved order.
"""

from typing import Any, Iterable, Optional


class CheckoutError(Exception):
    """Base class for all checkout errors."""


class InvalidBasketError(CheckoutError):
    """The requested basket does not exist."""

    def __init__(self, basket_id: Any):
        self.basket_id = basket_id
        super().__init__(f"No basket found with id {basket_id}")


class EmptyBasketError(CheckoutError):
    """The basket has no items and cannot be checked out."""

    def __init__(self, basket_id: Any = None):
        self.basket_id = basket_id
        super().__init__(f"Basket {basket_id} must have at least one item to check out")


class NotFoundError(CheckoutError):
    """One or more catalog items referenced by a basket do not exist."""

    def __init__(self, missing_ids: Iterable[int]):
        self.missing_ids = sorted(set(missing_ids))
        ids = ", ".join(str(i) for i in self.missing_ids)
        super().__init__(f"Catalog items not found: {ids}")


class ConfigurationError(CheckoutError):
    """Publisher configuration is missing or malformed."""


class PersistenceError(CheckoutError):
    """The order could not be saved."""


class TransportError(CheckoutError):
    """The queue transport could not complete an operation."""


class DeliveryExhaustedError(CheckoutError):
    """Every send attempt to the queue failed."""

    def __init__(self, attempt: Any, last_error: Optional[BaseException] = None):
        self.attempt = attempt
        self.last_error = last_error
        super().__init__(
            f"Delivery of order {attempt.order_id} to queue '{attempt.queue_name}' "
            f"failed after {attempt.attempts} attempts: {last_error}"
        )


class ProcessingFailedError(CheckoutError):
    """A queued order message could not be processed by the consumer."""

    def __init__(self, message: Any, cause: BaseException):
        self.message = message
        self.cause = cause
        super().__init__(f"Processing of message {message.message_id} failed: {cause}")
