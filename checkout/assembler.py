"""
Order assembly: basket + catalog snapshot -> immutable Order.

Price integrity is the key rule here. Each order line carries the unit price
and quantity from the basket, captured when the buyer checked out, never the
catalog's current price.
"""

import logging
from typing import Mapping, Optional

from checkout.errors import EmptyBasketError, InvalidBasketError, NotFoundError
from checkout.models import (
    Address,
    Basket,
    CatalogFact,
    CatalogItemOrdered,
    Order,
    OrderItem,
)
from checkout.uris import CatalogUriComposer

logger = logging.getLogger("order_assembler")


def guard_against_null_basket(basket_id: int, basket: Optional[Basket]) -> None:
    """Raise InvalidBasketError when the basket lookup found nothing."""
    if basket is None:
        raise InvalidBasketError(basket_id)


def guard_against_empty_basket(basket: Basket) -> None:
    """Raise EmptyBasketError when the basket has no items."""
    if not basket.items:
        raise EmptyBasketError(basket.id)


class OrderAssembler:
    """Builds frozen orders from baskets and their resolved catalog facts."""

    def __init__(self, uri_composer: Optional[CatalogUriComposer] = None):
        self.uri_composer = uri_composer or CatalogUriComposer()

    def assemble(
        self,
        basket: Optional[Basket],
        catalog_facts: Mapping[int, CatalogFact],
        shipping_address: Address,
        basket_id: Optional[int] = None,
    ) -> Order:
        """
        Build an Order with one line per basket line, in basket order.

        Args:
            basket: The basket being checked out
            catalog_facts: Facts keyed by catalog item id, covering every basket line
            shipping_address: Where the order ships
            basket_id: Id used in the error message when `basket` is None

        Raises:
            InvalidBasketError: If basket is None
            EmptyBasketError: If the basket has no items
            NotFoundError: If a basket line has no matching catalog fact
        """
        guard_against_null_basket(basket_id, basket)
        guard_against_empty_basket(basket)

        missing = [
            item.catalog_item_id for item in basket.items
            if item.catalog_item_id not in catalog_facts
        ]
        if missing:
            raise NotFoundError(missing)

        order_items = []
        for basket_item in basket.items:
            fact = catalog_facts[basket_item.catalog_item_id]
            item_ordered = CatalogItemOrdered(
                catalog_item_id=fact.id,
                product_name=fact.name,
                picture_uri=self.uri_composer.compose_pic_uri(fact.picture_uri),
            )
            order_items.append(OrderItem(
                item_ordered=item_ordered,
                unit_price=basket_item.unit_price,
                units=basket_item.quantity,
            ))

        order = Order(
            buyer_id=basket.buyer_id,
            ship_to_address=shipping_address,
            order_items=tuple(order_items),
        )
        logger.info(
            f"Assembled order for buyer {order.buyer_id} from basket {basket.id}: "
            f"{len(order.order_items)} lines, total {order.total():.2f}"
        )
        return order
