"""
Shared pytest fixtures for the checkout tests.

These fixtures provide consistent test data and fresh infrastructure per test.
Async code is driven with asyncio.run() inside plain test functions.
"""

import httpx
import pytest
from pathlib import Path

from checkout.catalog import CatalogSnapshotResolver
from checkout.config import PublisherSettings
from checkout.data_store import DataStore
from checkout.models import Address, Basket, BasketItem, CatalogFact
from checkout.service import OrderService
from messaging.notifier import HttpErrorNotifier
from messaging.publisher import OrderPublisher
from messaging.queue import InMemoryQueueTransport, reset_transports

ALERT_URL = "https://alerts.example.com/orders"


@pytest.fixture(autouse=True)
def clean_transports():
    """Start every test without shared in-memory transports."""
    reset_transports()
    yield
    reset_transports()


@pytest.fixture
def data_dir() -> Path:
    """Path to the fixture data directory."""
    return Path(__file__).parent.parent / "data"


@pytest.fixture
def data_store(data_dir: Path) -> DataStore:
    """Fresh DataStore instance for each test."""
    return DataStore(data_dir=data_dir)


@pytest.fixture
def address() -> Address:
    return Address(
        street="123 Main St.",
        city="Kent",
        state="OH",
        country="United States",
        zip_code="44240",
    )


@pytest.fixture
def widget_basket() -> Basket:
    """Basket 1 from the fixtures: buyer 7, two Widgets at 19.99."""
    return Basket(
        id=1,
        buyer_id="7",
        items=(BasketItem(catalog_item_id=42, unit_price=19.99, quantity=2),),
    )


@pytest.fixture
def widget_fact() -> CatalogFact:
    return CatalogFact(id=42, name="Widget", picture_uri="widget.png")


# =============================================================================
# Messaging Fixtures
# =============================================================================

@pytest.fixture
def settings() -> PublisherSettings:
    """Publisher settings with near-zero delays so retries are fast."""
    return PublisherSettings(
        SERVICE_BUS="memory://tests",
        QUEUE_NAME="orders",
        ERROR_NOTIFICATION_URL=ALERT_URL,
        RETRY_DELAY=0.0,
        RECONNECT_DELAY=0.01,
        SEND_TIMEOUT=1.0,
        NOTIFICATION_TIMEOUT=1.0,
        _env_file=None,
    )


@pytest.fixture
def transport() -> InMemoryQueueTransport:
    return InMemoryQueueTransport("tests")


@pytest.fixture
def alert_requests() -> list[httpx.Request]:
    """Requests received by the mocked alert endpoint."""
    return []


@pytest.fixture
def alert_client(alert_requests: list[httpx.Request]) -> httpx.AsyncClient:
    """AsyncClient whose requests go to an in-process mock alert endpoint."""
    def endpoint(request: httpx.Request) -> httpx.Response:
        alert_requests.append(request)
        return httpx.Response(202)

    return httpx.AsyncClient(transport=httpx.MockTransport(endpoint))


@pytest.fixture
def notifier(alert_client: httpx.AsyncClient) -> HttpErrorNotifier:
    return HttpErrorNotifier(ALERT_URL, timeout=1.0, client=alert_client)


@pytest.fixture
def publisher(settings, transport, notifier) -> OrderPublisher:
    """Publisher with the in-memory transport; the consumer is not started."""
    return OrderPublisher(settings, transport, notifier=notifier)


@pytest.fixture
def order_service(data_store, publisher) -> OrderService:
    return OrderService(
        baskets=data_store,
        catalog_resolver=CatalogSnapshotResolver(data_store),
        orders=data_store,
        publisher=publisher,
    )
