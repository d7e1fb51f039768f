"""
JSON-backed data store for baskets, catalog items and orders.

This module provides a simple data access layer that reads from JSON fixture files.
In a real system, baskets, the catalog and orders would each live in their
own database behind the same interfaces.

Design decisions:
- Baskets and catalog items are read-only (fixtures are source of truth)
- Orders are appended in memory; ids are assigned sequentially on add
- Lazy loading on first access
- Writes are serialized with an asyncio lock so concurrent checkouts
  never receive the same order id
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Iterable, Optional

from checkout.errors import PersistenceError
from checkout.interfaces import BasketQuery, CatalogQuery, OrderRepository
from checkout.models import Basket, CatalogFact, Order

logger = logging.getLogger("data_store")


class DataStore(BasketQuery, CatalogQuery, OrderRepository):
    """
    Central data store that loads JSON fixtures and keeps orders in memory.

    Implements the three collaborator interfaces the checkout core needs:
    basket lookup, catalog lookup, and order persistence.
    """

    def __init__(self, data_dir: Optional[Path] = None):
        """
        Initialize the data store.

        Args:
            data_dir: Path to the directory containing baskets.json and
                     catalog_items.json. Defaults to ./data relative to project root.
        """
        if data_dir is None:
            data_dir = Path(__file__).parent.parent / "data"

        self.data_dir = Path(data_dir)

        self._baskets: Optional[dict[int, Basket]] = None
        self._catalog: Optional[dict[int, CatalogFact]] = None
        self._orders: dict[int, Order] = {}
        self._next_order_id = 1
        self._write_lock = asyncio.Lock()
        self._write_failures_remaining = 0

    # =========================================================================
    # Data Loading (lazy)
    # =========================================================================

    def _load_json(self, filename: str) -> list[dict]:
        """Load a JSON fixture file."""
        filepath = self.data_dir / filename
        if not filepath.exists():
            return []
        with open(filepath, "r") as f:
            return json.load(f)

    def _ensure_baskets_loaded(self):
        if self._baskets is None:
            data = self._load_json("baskets.json")
            self._baskets = {b["id"]: Basket(**b) for b in data}

    def _ensure_catalog_loaded(self):
        if self._catalog is None:
            data = self._load_json("catalog_items.json")
            self._catalog = {c["id"]: CatalogFact(**c) for c in data}

    # =========================================================================
    # Basket Operations
    # =========================================================================

    async def get_basket(self, basket_id: int) -> Optional[Basket]:
        self._ensure_baskets_loaded()
        return self._baskets.get(basket_id)

    def put_basket(self, basket: Basket) -> None:
        """Add or replace a basket (used by demos and tests)."""
        self._ensure_baskets_loaded()
        self._baskets[basket.id] = basket

    # =========================================================================
    # Catalog Operations
    # =========================================================================

    async def list_catalog_items(self, ids: Iterable[int]) -> list[CatalogFact]:
        self._ensure_catalog_loaded()
        return [self._catalog[i] for i in dict.fromkeys(ids) if i in self._catalog]

    def update_catalog_item(self, fact: CatalogFact) -> None:
        """
        Replace a catalog item (in-memory only).

        Used to show that later catalog edits do not alter existing orders.
        """
        self._ensure_catalog_loaded()
        self._catalog[fact.id] = fact

    # =========================================================================
    # Order Operations
    # =========================================================================

    async def add_order(self, order: Order) -> int:
        async with self._write_lock:
            if self._write_failures_remaining > 0:
                self._write_failures_remaining -= 1
                logger.warning(f"Write for buyer {order.buyer_id} failed (injected)")
                raise PersistenceError(f"Could not store order for buyer {order.buyer_id}: store unavailable")

            order_id = self._next_order_id
            self._orders[order_id] = order.with_id(order_id)
            self._next_order_id += 1

        logger.info(f"Stored order {order_id} for buyer {order.buyer_id}")
        return order_id

    def get_order(self, order_id: int) -> Optional[Order]:
        """Get a stored order by ID."""
        return self._orders.get(order_id)

    def get_orders(self) -> list[Order]:
        """Get all stored orders, oldest first."""
        return list(self._orders.values())

    def fail_next_writes(self, count: int) -> None:
        """Make the next `count` add_order calls raise PersistenceError."""
        self._write_failures_remaining = count

    # =========================================================================
    # Utility Methods
    # =========================================================================

    def reload(self):
        """Force reload of basket and catalog fixtures on next access."""
        self._baskets = None
        self._catalog = None
