"""
Basket checkout core.

This package turns a shopping basket into an immutable order:
- Domain models (Basket, CatalogFact, Order, ...)
- Catalog snapshot resolution and order assembly
- JSON-backed data store for baskets, catalog items and orders
- Publisher configuration and the error taxonomy

The order service (checkout.service) ties these together with the
publisher from the messaging package.
"""

from checkout.models import (
    Address,
    Basket,
    BasketItem,
    CatalogFact,
    CatalogItemOrdered,
    Order,
    OrderItem,
)
from checkout.errors import (
    CheckoutError,
    ConfigurationError,
    DeliveryExhaustedError,
    EmptyBasketError,
    InvalidBasketError,
    NotFoundError,
    PersistenceError,
    ProcessingFailedError,
    TransportError,
)
from checkout.data_store import DataStore

__all__ = [
    "Address",
    "Basket",
    "BasketItem",
    "CatalogFact",
    "CatalogItemOrdered",
    "Order",
    "OrderItem",
    "CheckoutError",
    "ConfigurationError",
    "DeliveryExhaustedError",
    "EmptyBasketError",
    "InvalidBasketError",
    "NotFoundError",
    "PersistenceError",
    "ProcessingFailedError",
    "TransportError",
    "DataStore",
]
