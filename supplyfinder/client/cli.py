#!/usr/bin/env python3
"""
SupplyFinder Command-Line Client

Greets the supplier and vendor servers and looks up one record on the
supplier.

Usage:
    supplyfinder-client                            # supplier at localhost:50051
    supplyfinder-client --target=10.0.0.5:50051    # custom supplier endpoint
    supplyfinder-client --record-id 2              # look up a different record

Environment Variables:
    SUPPLYFINDER_TARGET         - Default supplier endpoint
    SUPPLYFINDER_VENDOR_TARGET  - Vendor endpoint
    SUPPLYFINDER_CALL_TIMEOUT   - Seconds allowed per call
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from ..config.settings import settings
from ..protocol.results import Failure, Found
from .stub import SupplyFinderClient

RPC_FAILED = "RPC failed"


class UsageArgumentParser(argparse.ArgumentParser):
    """Prints usage on bad syntax and exits with status 0."""

    def error(self, message: str) -> None:
        self.print_usage(sys.stdout)
        print(f"{self.prog}: {message}")
        self.exit(0)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = UsageArgumentParser(
        prog="supplyfinder-client",
        description="SupplyFinder client: greet supplier and vendor, look up a record",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        allow_abbrev=False,
    )

    parser.add_argument(
        "--target",
        type=str,
        default=settings.SUPPLIER_TARGET,
        help="Supplier endpoint as host:port",
    )

    parser.add_argument(
        "--record-id",
        type=int,
        default=1,
        help="Record id to look up on the supplier",
    )

    return parser.parse_args(argv)


def describe_greeting(result) -> str:
    if isinstance(result, Failure):
        return RPC_FAILED
    return result.message


def describe_lookup(result) -> str:
    if isinstance(result, Found):
        record = result.record
        return f"{record.name} at {record.url} ({record.location})"
    if isinstance(result, Failure):
        return RPC_FAILED
    return f"no record with id {result.record_id}"


async def run(target: str, record_id: int, vendor_target: str = None) -> int:
    """
    Greet both servers and look up record_id on the supplier.

    Returns:
        Process exit status
    """
    vendor_target = vendor_target or settings.VENDOR_TARGET

    async with SupplyFinderClient() as client:
        calls = (
            ("Greeter", lambda: client.say_hello_to(target, "supplier"), describe_greeting),
            ("Greeter", lambda: client.say_hello_to(vendor_target, "vendor"), describe_greeting),
            ("Lookup", lambda: client.lookup_record(target, record_id), describe_lookup),
        )
        for label, call, describe in calls:
            result = await call()
            if isinstance(result, Failure):
                print(result)
            print(f"{label} received: {describe(result)}")

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the client."""
    args = parse_args(argv)
    return asyncio.run(run(args.target, args.record_id))


if __name__ == "__main__":
    sys.exit(main())
