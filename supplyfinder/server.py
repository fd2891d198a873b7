#!/usr/bin/env python3
"""
SupplyFinder Server Entry Point

Starts a supplier server (Greet + InquireRecord over the vendor
registry) or a vendor server (Greet only).

Usage:
    python -m supplyfinder.server                        # supplier on 0.0.0.0:50051
    python -m supplyfinder.server --role vendor          # vendor on 0.0.0.0:50052
    python -m supplyfinder.server --seed vendors.json    # load records from a file
    python -m supplyfinder.server --empty                # start with no records
    python -m supplyfinder.server --debug                # enable debug logging

Environment Variables:
    SUPPLYFINDER_HOST           - Server bind address
    SUPPLYFINDER_SUPPLIER_PORT  - Supplier port
    SUPPLYFINDER_VENDOR_PORT    - Vendor port
    SUPPLYFINDER_DEBUG          - Enable debug mode (true/false)
    SUPPLYFINDER_LOG_LEVEL      - Log level when not in debug mode
"""

import argparse
import asyncio
import logging
import signal
import sys

from .config.settings import settings
from .network.tcp_server import LookupServer
from .registry.seed import DEFAULT_RECORDS, load_records
from .registry.store import VendorRegistry
from .service.lookup import GreeterService, LookupService


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="SupplyFinder: supplier/vendor lookup server",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--role",
        choices=("supplier", "vendor"),
        default="supplier",
        help="Which service to host",
    )

    parser.add_argument(
        "--host",
        type=str,
        default=settings.HOST,
        help="Host address to bind to",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port number to listen on (default depends on role)",
    )

    seed = parser.add_mutually_exclusive_group()
    seed.add_argument(
        "--seed",
        type=str,
        default=None,
        help="JSON file of records to load into the supplier registry",
    )
    seed.add_argument(
        "--empty",
        action="store_true",
        help="Start the supplier registry with no records",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        default=settings.DEBUG,
        help="Enable debug logging",
    )

    return parser.parse_args(argv)


def setup_logging(debug: bool = False) -> None:
    """Configure logging based on debug flag."""
    if debug:
        level = logging.DEBUG
    else:
        level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
        ]
    )


def build_service(args: argparse.Namespace) -> GreeterService:
    """Create the service for the requested role."""
    if args.role == "vendor":
        return GreeterService()

    registry = VendorRegistry()
    if args.seed:
        registry.insert_many(load_records(args.seed))
    elif not args.empty:
        registry.insert_many(DEFAULT_RECORDS)
    return LookupService(registry)


def main(argv=None) -> None:
    """Main entry point for the server."""
    args = parse_args(argv)

    setup_logging(debug=args.debug)
    logger = logging.getLogger(__name__)

    service = build_service(args)
    server = LookupServer(service=service, host=args.host, port=args.port)

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    async def shutdown(sig: signal.Signals) -> None:
        """Handle shutdown signal."""
        logger.info(f"Received signal {sig.name}, initiating shutdown...")
        await server.stop()

    # Register signal handlers (Unix only)
    if sys.platform != 'win32':
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(
                sig,
                lambda s=sig: asyncio.create_task(shutdown(s))
            )

    logger.info(f"Starting SupplyFinder {args.role} server")
    logger.info(f"  Host: {server.host}")
    logger.info(f"  Port: {server.port}")
    if isinstance(service, LookupService):
        logger.info(f"  Records: {service.registry.size()}")
    logger.info(f"  Debug: {args.debug}")

    try:
        loop.run_until_complete(server.start())
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
        loop.run_until_complete(server.stop())
    except Exception as e:
        logger.error(f"Server error: {e}")
        raise
    finally:
        loop.run_until_complete(loop.shutdown_asyncgens())
        loop.close()
        logger.info("Server shutdown complete")


if __name__ == "__main__":
    main()
