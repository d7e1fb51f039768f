"""
Query and persistence interfaces the checkout core depends on.

The basket store, the catalog and the order store are owned by other parts
of the system. The core only needs these narrow contracts; `DataStore`
implements all three against JSON fixtures.
"""

import abc
from typing import Iterable, Optional

from checkout.models import Basket, CatalogFact, Order


class BasketQuery(abc.ABC):
    """Read access to baskets."""

    @abc.abstractmethod
    async def get_basket(self, basket_id: int) -> Optional[Basket]:
        """Return the basket with its items, or None if it does not exist."""


class CatalogQuery(abc.ABC):
    """Read access to catalog items."""

    @abc.abstractmethod
    async def list_catalog_items(self, ids: Iterable[int]) -> list[CatalogFact]:
        """
        Return the catalog facts matching `ids`.

        Ids with no catalog record are omitted from the result.
        """


class OrderRepository(abc.ABC):
    """Append-only order persistence."""

    @abc.abstractmethod
    async def add_order(self, order: Order) -> int:
        """
        Persist `order` and return its assigned identifier.

        Raises:
            PersistenceError: If the order could not be saved.
        """
