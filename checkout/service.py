"""
Order service: turns a basket into a saved, published order.

Sequence for one checkout (all steps awaited in order):
1. Load the basket; reject unknown or empty baskets
2. Resolve catalog facts for every basket line
3. Assemble the immutable order
4. Save it (the order store is the system of record)
5. Publish it to the processing queue

Failures in steps 1-4 abort the checkout with nothing published. A publish
failure in step 5 is logged and recorded on the result, but the checkout
still succeeds because the order is already saved.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from checkout.assembler import (
    OrderAssembler,
    guard_against_empty_basket,
    guard_against_null_basket,
)
from checkout.catalog import CatalogSnapshotResolver
from checkout.errors import DeliveryExhaustedError, PersistenceError
from checkout.interfaces import BasketQuery, OrderRepository
from checkout.models import Address, Order
from messaging.delivery import DeliveryAttempt, DeliveryStatus
from messaging.publisher import OrderPublisher

logger = logging.getLogger("order_service")


@dataclass
class CheckoutResult:
    """Outcome of a successful checkout."""
    order: Order
    delivery: DeliveryAttempt
    delivery_error: Optional[DeliveryExhaustedError] = None

    @property
    def order_id(self) -> int:
        return self.order.id

    @property
    def delivered(self) -> bool:
        """True if the order reached the queue."""
        return self.delivery.status != DeliveryStatus.DELIVERY_EXHAUSTED


class OrderService:
    """
    Checkout orchestration.

    Example:
        service = OrderService(
            baskets=data_store,
            catalog_resolver=CatalogSnapshotResolver(data_store),
            orders=data_store,
            publisher=publisher,
        )
        result = await service.create_order(basket_id=1, shipping_address=address)
    """

    def __init__(
        self,
        baskets: BasketQuery,
        catalog_resolver: CatalogSnapshotResolver,
        orders: OrderRepository,
        publisher: OrderPublisher,
        assembler: Optional[OrderAssembler] = None,
    ):
        self.baskets = baskets
        self.catalog_resolver = catalog_resolver
        self.orders = orders
        self.publisher = publisher
        self.assembler = assembler or OrderAssembler()

    async def create_order(self, basket_id: int, shipping_address: Address) -> CheckoutResult:
        """
        Check out a basket.

        Returns:
            CheckoutResult with the saved order and its delivery attempt

        Raises:
            InvalidBasketError: Unknown basket id
            EmptyBasketError: Basket has no items
            NotFoundError: A basket item is missing from the catalog
            PersistenceError: The order could not be saved
        """
        basket = await self.baskets.get_basket(basket_id)
        guard_against_null_basket(basket_id, basket)
        guard_against_empty_basket(basket)

        facts = await self.catalog_resolver.resolve(basket.catalog_item_ids())
        order = self.assembler.assemble(basket, facts, shipping_address, basket_id=basket_id)

        try:
            order_id = await self.orders.add_order(order)
        except PersistenceError:
            logger.error(f"Order for basket {basket_id} was not saved")
            raise
        except Exception as e:
            logger.error(f"Order for basket {basket_id} was not saved: {e}")
            raise PersistenceError(f"Could not save order for basket {basket_id}: {e}") from e

        order = order.with_id(order_id)
        logger.info(f"Order {order_id} created from basket {basket_id} for buyer {order.buyer_id}")

        try:
            delivery = await self.publisher.publish(order)
        except DeliveryExhaustedError as e:
            # Order is saved; downstream delivery is best-effort
            logger.error(f"Order {order_id} saved but not delivered: {e}")
            return CheckoutResult(order=order, delivery=e.attempt, delivery_error=e)

        return CheckoutResult(order=order, delivery=delivery)
