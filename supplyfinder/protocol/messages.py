"""
Protocol Request and Reply Definitions

This module defines the data structures for protocol requests and replies.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from ..registry.store import Record

SERVING = "SERVING"


class RequestType(Enum):
    """Enumeration of supported request types."""
    GREET = auto()
    INQUIRE = auto()
    HEALTH = auto()
    QUIT = auto()
    UNKNOWN = auto()


class StatusCode(Enum):
    """Enumeration of reply statuses."""
    OK = "OK"
    NOT_FOUND = "NOT_FOUND"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    DEADLINE_EXCEEDED = "DEADLINE_EXCEEDED"
    UNIMPLEMENTED = "UNIMPLEMENTED"
    UNAVAILABLE = "UNAVAILABLE"
    INTERNAL = "INTERNAL"


@dataclass
class Request:
    """
    Represents a parsed protocol request.

    Attributes:
        type: The type of request (GREET, INQUIRE, HEALTH, QUIT, UNKNOWN)
        name: The name to greet (GREET only)
        record_id: The id to look up (INQUIRE only, None if unparsable)
        timeout_ms: Per-call timeout in milliseconds (0 = none)
        error: Why the request is malformed, if it is
        raw: The original raw request string
    """
    type: RequestType
    name: str = ""
    record_id: Optional[int] = None
    timeout_ms: int = 0
    error: str = ""
    raw: str = ""

    @property
    def is_valid(self) -> bool:
        """Check if the request is well-formed for its type."""
        if self.error:
            return False
        if self.type == RequestType.UNKNOWN:
            return False
        if self.type == RequestType.INQUIRE:
            return self.record_id is not None
        return True


@dataclass
class Reply:
    """
    Represents a protocol reply.

    Attributes:
        status: Status code of the call
        message: Greeting text, or an error description
        record: The record returned by a successful INQUIRE
    """
    status: StatusCode
    message: str = ""
    record: Optional[Record] = None

    @property
    def ok(self) -> bool:
        return self.status == StatusCode.OK

    @classmethod
    def greeting(cls, message: str) -> "Reply":
        """Create a GREET reply."""
        return cls(status=StatusCode.OK, message=message)

    @classmethod
    def record_found(cls, record: Record) -> "Reply":
        """Create an INQUIRE reply carrying a record."""
        return cls(status=StatusCode.OK, record=record)

    @classmethod
    def serving(cls) -> "Reply":
        """Create a HEALTH reply for a server that is answering calls."""
        return cls(status=StatusCode.OK, message=SERVING)

    @classmethod
    def not_found(cls, record_id: int) -> "Reply":
        """Create a 'no such record' reply."""
        return cls(status=StatusCode.NOT_FOUND, message=str(record_id))

    @classmethod
    def error(cls, status: StatusCode, message: str) -> "Reply":
        """Create an error reply with the given status."""
        return cls(status=status, message=message)

    @classmethod
    def invalid_argument(cls, message: str) -> "Reply":
        return cls.error(StatusCode.INVALID_ARGUMENT, message)

    @classmethod
    def deadline_exceeded(cls, message: str = "deadline exceeded") -> "Reply":
        return cls.error(StatusCode.DEADLINE_EXCEEDED, message)

    @classmethod
    def unimplemented(cls, method: str) -> "Reply":
        return cls.error(StatusCode.UNIMPLEMENTED, f"unknown method {method}")

    @classmethod
    def internal(cls, message: str = "internal error") -> "Reply":
        return cls.error(StatusCode.INTERNAL, message)
