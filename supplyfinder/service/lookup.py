"""
Lookup Service Module

The query façade hosted by the servers. GreeterService answers Greet;
LookupService adds InquireRecord over a VendorRegistry it owns.
"""

import logging
import time
from typing import Optional

from ..protocol.messages import StatusCode
from ..protocol.results import Failure, Found, LookupResult, NotFound
from ..registry.store import MAX_RECORD_ID, RecordNotFound, VendorRegistry, is_valid_record_id

logger = logging.getLogger(__name__)

GREETING_PREFIX = "Hello "


class GreeterService:
    """Answers Greet calls. Stateless."""

    def greet(self, name: str) -> str:
        """Return the greeting for name."""
        return GREETING_PREFIX + name


class LookupService(GreeterService):
    """
    Greet plus InquireRecord over a registry.

    The registry is passed in at construction so that each server (and
    each test) works against its own instance.

    Usage:
        service = LookupService(VendorRegistry(DEFAULT_RECORDS))
        result = service.inquire_record(1)
        if result.found:
            print(result.record.name)
    """

    def __init__(self, registry: VendorRegistry):
        self.registry = registry

    def inquire_record(
            self,
            record_id: int,
            deadline: Optional[float] = None,
    ) -> LookupResult:
        """
        Look up a record.

        Args:
            record_id: Unsigned 32-bit id to look up
            deadline: Absolute time.monotonic() value after which the
                      lookup is abandoned (None = no deadline)

        Returns:
            Found(record), NotFound(record_id), or Failure with
            INVALID_ARGUMENT / DEADLINE_EXCEEDED
        """
        if not is_valid_record_id(record_id):
            return Failure(
                StatusCode.INVALID_ARGUMENT,
                f"record id must be an integer in 0..{MAX_RECORD_ID}",
            )

        timeout = None
        if deadline is not None:
            timeout = deadline - time.monotonic()
            if timeout <= 0:
                return Failure(StatusCode.DEADLINE_EXCEEDED, "deadline expired before lookup")

        try:
            record = self.registry.get(record_id, timeout=timeout)
        except RecordNotFound:
            logger.debug(f"Record {record_id} not found")
            return NotFound(record_id)
        except TimeoutError:
            logger.debug(f"Lookup of record {record_id} abandoned at deadline")
            return Failure(StatusCode.DEADLINE_EXCEEDED, "deadline expired waiting for registry")

        return Found(record)
