"""
Typed call results.

A lookup ends in exactly one of Found, NotFound or Failure; a greeting
in Greeting or Failure. Callers branch on the variant (or on .ok/.found)
instead of matching strings.
"""

from dataclasses import dataclass
from typing import Union

from ..registry.store import Record
from .messages import SERVING, Reply, StatusCode


@dataclass(frozen=True)
class Found:
    """The record exists."""
    record: Record

    ok = True
    found = True


@dataclass(frozen=True)
class NotFound:
    """No record has the requested id. This is a successful call."""
    record_id: int

    ok = True
    found = False

    @property
    def record(self) -> Record:
        return Record.blank(self.record_id)


@dataclass(frozen=True)
class Greeting:
    """Reply to a Greet call."""
    message: str

    ok = True


@dataclass(frozen=True)
class Health:
    """Reply to a HEALTH call."""
    status: str

    ok = True

    @property
    def serving(self) -> bool:
        return self.status == SERVING


@dataclass(frozen=True)
class Failure:
    """
    The call did not produce an answer.

    Attributes:
        kind: INVALID_ARGUMENT, DEADLINE_EXCEEDED, UNIMPLEMENTED,
              UNAVAILABLE or INTERNAL
        message: Human-readable reason
    """
    kind: StatusCode
    message: str = ""

    ok = False
    found = False
    record = None

    def __str__(self) -> str:
        if self.message:
            return f"{self.kind.value}: {self.message}"
        return self.kind.value


LookupResult = Union[Found, NotFound, Failure]
GreetResult = Union[Greeting, Failure]
HealthResult = Union[Health, Failure]


def lookup_result_from_reply(reply: Reply, record_id: int) -> LookupResult:
    """Convert an INQUIRE reply into a LookupResult."""
    if reply.status == StatusCode.OK:
        if reply.record is None:
            return Failure(StatusCode.INTERNAL, "reply is missing the record")
        return Found(reply.record)
    if reply.status == StatusCode.NOT_FOUND:
        return NotFound(record_id)
    return Failure(reply.status, reply.message)


def greet_result_from_reply(reply: Reply) -> GreetResult:
    """Convert a GREET reply into a GreetResult."""
    if reply.status == StatusCode.OK:
        return Greeting(reply.message)
    return Failure(reply.status, reply.message)


def health_result_from_reply(reply: Reply) -> HealthResult:
    """Convert a HEALTH reply into a HealthResult."""
    if reply.status == StatusCode.OK:
        return Health(reply.message)
    return Failure(reply.status, reply.message)


def reply_from_lookup_result(result: LookupResult) -> Reply:
    """Convert a LookupResult into the reply sent on the wire."""
    if isinstance(result, Found):
        return Reply.record_found(result.record)
    if isinstance(result, NotFound):
        return Reply.not_found(result.record_id)
    return Reply.error(result.kind, result.message)
