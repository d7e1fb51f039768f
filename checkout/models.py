"""
Domain models for the checkout workflow.

Design decisions:
- Using Pydantic for validation and serialization
- Every model is frozen: once built, no field can be reassigned
- Sequences are tuples so nested collections cannot be mutated either
- Order lines copy price and quantity from the basket, and name and picture
  from the catalog, at checkout time. Later catalog edits never reach a
  historical order.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Basket (read-only input owned by the checkout flow)
# =============================================================================

class BasketItem(BaseModel):
    """A single line in a buyer's basket."""
    catalog_item_id: int = Field(..., description="Reference to catalog item")
    unit_price: float = Field(..., ge=0, description="Price when added to the basket")
    quantity: int = Field(..., ge=1, description="Units of this item")

    model_config = ConfigDict(frozen=True)


class Basket(BaseModel):
    """
    A buyer's in-progress selection of catalog items.

    The checkout core only reads baskets; it never changes them.
    """
    id: int = Field(..., description="Unique basket identifier")
    buyer_id: str = Field(..., description="Buyer who owns this basket")
    items: tuple[BasketItem, ...] = Field(default_factory=tuple)

    model_config = ConfigDict(frozen=True)

    def catalog_item_ids(self) -> list[int]:
        """Distinct catalog item ids, in the order they first appear."""
        return list(dict.fromkeys(item.catalog_item_id for item in self.items))

    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)


# =============================================================================
# Catalog
# =============================================================================

class CatalogFact(BaseModel):
    """Point-in-time product data needed to freeze an order line."""
    id: int = Field(..., description="Catalog item identifier")
    name: str = Field(..., description="Display name")
    picture_uri: str = Field(default="", description="Raw picture reference")

    model_config = ConfigDict(frozen=True)


# =============================================================================
# Order aggregate
# =============================================================================

class Address(BaseModel):
    """Shipping address captured at checkout."""
    street: str
    city: str
    state: str
    country: str
    zip_code: str

    model_config = ConfigDict(frozen=True)


class CatalogItemOrdered(BaseModel):
    """
    Snapshot of the catalog item as it was when the order was placed.

    Holds the composed picture URI, not the raw catalog reference.
    """
    catalog_item_id: int
    product_name: str
    picture_uri: str

    model_config = ConfigDict(frozen=True)


class OrderItem(BaseModel):
    """One frozen order line."""
    item_ordered: CatalogItemOrdered
    unit_price: float = Field(..., ge=0, description="Price at time of order")
    units: int = Field(..., ge=1)

    model_config = ConfigDict(frozen=True)

    def line_total(self) -> float:
        return self.unit_price * self.units


class Order(BaseModel):
    """
    Immutable order record.

    The id is None until the order store assigns one; `with_id` returns the
    persisted copy.
    """
    id: Optional[int] = Field(default=None, description="Assigned on persistence")
    buyer_id: str = Field(..., description="Buyer who placed the order")
    order_date: datetime = Field(default_factory=_utcnow)
    ship_to_address: Address
    order_items: tuple[OrderItem, ...] = Field(..., min_length=1)

    model_config = ConfigDict(frozen=True)

    def total(self) -> float:
        """Sum of unit price times units across all lines."""
        return sum(item.line_total() for item in self.order_items)

    def with_id(self, order_id: int) -> "Order":
        return self.model_copy(update={"id": order_id})

    def to_payload(self) -> str:
        """Serialize to the indented JSON text sent to the queue."""
        return self.model_dump_json(indent=2)

    @classmethod
    def from_payload(cls, payload: str | bytes) -> "Order":
        """Rebuild an order from `to_payload` output."""
        return cls.model_validate_json(payload)
