"""Protocol module for SupplyFinder."""

from .messages import Reply, Request, RequestType, StatusCode
from .parser import ProtocolParser
from .results import (
    Failure,
    Found,
    GreetResult,
    Greeting,
    Health,
    HealthResult,
    LookupResult,
    NotFound,
)

__all__ = [
    "Failure",
    "Found",
    "GreetResult",
    "Greeting",
    "Health",
    "HealthResult",
    "LookupResult",
    "NotFound",
    "ProtocolParser",
    "Reply",
    "Request",
    "RequestType",
    "StatusCode",
]
