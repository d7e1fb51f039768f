#!/usr/bin/env python3
"""
Command-line interface for the basket checkout service.

Usage:
    python cli.py [command] [options]

Commands:
    demo        Run demo scenarios
    checkout    Check out one basket from the JSON fixtures
    test        Run the test suite

Examples:
    python cli.py demo checkout
    python cli.py demo all
    SERVICE_BUS=memory://local QUEUE_NAME=orders \\
        ERROR_NOTIFICATION_URL=https://alerts.example.com/orders \\
        python cli.py checkout 1 --street "1 Main St" --city Kent --state OH \\
        --country US --zip 44240
"""

import argparse
import asyncio
import logging
import subprocess
import sys
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(name)-24s | %(levelname)-5s | %(message)s"


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
    )


def run_demo(scenario: str) -> None:
    """Run a demo scenario."""
    from checkout.demo import DEMOS

    if scenario == "all":
        for demo in DEMOS.values():
            demo()
    elif scenario in DEMOS:
        DEMOS[scenario]()
    else:
        print(f"Unknown scenario: {scenario}")
        sys.exit(1)


async def _checkout(basket_id: int, address, data_dir: Optional[Path]) -> int:
    from checkout.assembler import OrderAssembler
    from checkout.catalog import CatalogSnapshotResolver
    from checkout.config import load_publisher_settings
    from checkout.data_store import DataStore
    from checkout.errors import CheckoutError, ConfigurationError
    from checkout.service import OrderService
    from checkout.uris import CatalogUriComposer
    from messaging.publisher import OrderPublisher

    try:
        settings = load_publisher_settings()
        publisher = OrderPublisher.from_settings(settings)
    except ConfigurationError as e:
        print(f"Configuration error: {e}")
        return 2

    data_store = DataStore(data_dir=data_dir)
    service = OrderService(
        baskets=data_store,
        catalog_resolver=CatalogSnapshotResolver(data_store),
        orders=data_store,
        publisher=publisher,
        assembler=OrderAssembler(CatalogUriComposer(settings.CATALOG_BASE_URL)),
    )

    async with publisher:
        try:
            result = await service.create_order(basket_id, address)
        except CheckoutError as e:
            print(f"Checkout failed: {e}")
            return 1
        await asyncio.sleep(0.1)

    print(result.order.to_payload())
    print(f"Delivery: {result.delivery}")
    return 0


def run_checkout(args: argparse.Namespace) -> None:
    """Check out one basket using configuration from the environment."""
    from checkout.models import Address

    address = Address(
        street=args.street,
        city=args.city,
        state=args.state,
        country=args.country,
        zip_code=args.zip,
    )
    sys.exit(asyncio.run(_checkout(args.basket_id, address, args.data_dir)))


def run_tests(args: list[str]) -> None:
    """Run the test suite."""
    cmd = [sys.executable, "-m", "pytest"] + args
    subprocess.run(cmd)


def main() -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Basket Checkout CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s demo checkout
  %(prog)s demo queue-down
  %(prog)s demo all
  %(prog)s checkout 1 --street "1 Main St" --city Kent --state OH --country US --zip 44240
  %(prog)s test -v
        """,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Demo command
    demo_parser = subparsers.add_parser("demo", help="Run demo scenarios")
    demo_parser.add_argument(
        "scenario",
        choices=["checkout", "flaky-queue", "queue-down", "processing-failure", "all"],
        help="Which scenario to run",
    )

    # Checkout command
    checkout_parser = subparsers.add_parser("checkout", help="Check out one basket")
    checkout_parser.add_argument("basket_id", type=int, help="Basket to check out")
    checkout_parser.add_argument("--street", required=True)
    checkout_parser.add_argument("--city", required=True)
    checkout_parser.add_argument("--state", required=True)
    checkout_parser.add_argument("--country", required=True)
    checkout_parser.add_argument("--zip", required=True)
    checkout_parser.add_argument("--data-dir", type=Path, default=None, help="Fixture directory")

    # Test command
    test_parser = subparsers.add_parser("test", help="Run the test suite")
    test_parser.add_argument(
        "pytest_args",
        nargs="*",
        default=[],
        help="Arguments to pass to pytest",
    )

    args = parser.parse_args()
    configure_logging(args.verbose)

    if args.command == "demo":
        run_demo(args.scenario)
    elif args.command == "checkout":
        run_checkout(args)
    elif args.command == "test":
        run_tests(args.pytest_args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
