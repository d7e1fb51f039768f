"""
Demonstration scripts for the checkout workflow.

These functions run a checkout end to end in one process: JSON fixtures for
baskets and catalog, the in-memory queue, and a mocked alert endpoint.
Run them to see orders being saved, published, acknowledged or reported.
"""

import asyncio
from typing import Optional

import httpx

from checkout.assembler import OrderAssembler
from checkout.catalog import CatalogSnapshotResolver
from checkout.config import PublisherSettings
from checkout.data_store import DataStore
from checkout.models import Address
from checkout.service import OrderService
from checkout.uris import CatalogUriComposer
from messaging.handlers import MessageProcessedHandler
from messaging.notifier import HttpErrorNotifier
from messaging.publisher import OrderPublisher
from messaging.queue import InMemoryQueueTransport, QueueMessage

DEMO_ADDRESS = Address(
    street="123 Main St.",
    city="Kent",
    state="OH",
    country="United States",
    zip_code="44240",
)


class RejectingHandler(MessageProcessedHandler):
    """Fails every message, to show the error notification path."""

    async def handle(self, message: QueueMessage) -> None:
        raise ValueError("Downstream fulfilment rejected the order")


def _demo_settings() -> PublisherSettings:
    return PublisherSettings(
        SERVICE_BUS="memory://demo",
        QUEUE_NAME="orders",
        ERROR_NOTIFICATION_URL="https://alerts.example.com/orders",
        RETRY_DELAY=0.05,
        RECONNECT_DELAY=0.05,
        CATALOG_BASE_URL="https://cdn.example.com",
        _env_file=None,
    )


def _alert_endpoint(request: httpx.Request) -> httpx.Response:
    print(f"  >> alert endpoint received {len(request.content)} bytes")
    return httpx.Response(202)


async def _run_checkout(
    basket_id: int,
    transport: InMemoryQueueTransport,
    on_processed: Optional[MessageProcessedHandler] = None,
) -> None:
    settings = _demo_settings()
    data_store = DataStore()

    async with httpx.AsyncClient(transport=httpx.MockTransport(_alert_endpoint)) as client:
        notifier = HttpErrorNotifier(settings.ERROR_NOTIFICATION_URL, timeout=1.0, client=client)
        publisher = OrderPublisher(
            settings,
            transport,
            on_processed=on_processed,
            notifier=notifier,
        )
        service = OrderService(
            baskets=data_store,
            catalog_resolver=CatalogSnapshotResolver(data_store),
            orders=data_store,
            publisher=publisher,
            assembler=OrderAssembler(CatalogUriComposer(settings.CATALOG_BASE_URL)),
        )

        async with publisher:
            result = await service.create_order(basket_id, DEMO_ADDRESS)
            # Give the background consumer a moment to settle the message
            await asyncio.sleep(0.1)

        print("\n" + "-" * 70)
        print(f"Order {result.order_id} saved for buyer {result.order.buyer_id}")
        for item in result.order.order_items:
            print(
                f"  {item.units} x {item.item_ordered.product_name} @ {item.unit_price:.2f}"
                f"  [{item.item_ordered.picture_uri}]"
            )
        print(f"  total: {result.order.total():.2f}")
        print(f"Delivery: {result.delivery}")
        print(f"Alerts sent: {notifier.get_sent_count()}")
        print("-" * 70)


def _banner(title: str) -> None:
    print("\n" + "=" * 70)
    print(f"CHECKOUT DEMO: {title}")
    print("=" * 70 + "\n")


def run_checkout_demo():
    """Happy path: basket 4 is saved, sent, and acknowledged."""
    _banner("Basket -> Order -> Queue")
    asyncio.run(_run_checkout(4, InMemoryQueueTransport("demo")))


def run_flaky_queue_demo():
    """The first two sends fail; the third succeeds."""
    _banner("Flaky queue (2 failed sends, then success)")
    transport = InMemoryQueueTransport("demo")
    transport.fail_next_sends(2)
    asyncio.run(_run_checkout(1, transport))


def run_queue_down_demo():
    """Every send fails: the order is still saved and an alert goes out."""
    _banner("Queue down (delivery exhausted)")
    transport = InMemoryQueueTransport("demo")
    transport.fail_next_sends(10)
    asyncio.run(_run_checkout(1, transport))


def run_processing_failure_demo():
    """The consumer cannot process the order: it is dead-lettered and reported."""
    _banner("Processing failure (dead-letter + alert)")
    asyncio.run(_run_checkout(4, InMemoryQueueTransport("demo"), on_processed=RejectingHandler()))


DEMOS = {
    "checkout": run_checkout_demo,
    "flaky-queue": run_flaky_queue_demo,
    "queue-down": run_queue_down_demo,
    "processing-failure": run_processing_failure_demo,
}
