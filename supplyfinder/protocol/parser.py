"""
Protocol Parser Module

This module handles parsing and formatting of the SupplyFinder line
protocol, on both the server side (requests in, replies out) and the
client side (requests out, replies in).
"""

import json
import re

from ..config.settings import settings
from ..registry.store import Record
from .messages import Reply, Request, RequestType, StatusCode

_INTEGER = re.compile(r"-?[0-9]+")


class ProtocolParser:
    """
    Parser for the SupplyFinder text protocol.

    Protocol Format:
        Request:  <METHOD> [ARGS...]\n
        Reply:    <STATUS> [BODY]\n

    Methods:
        GREET <name...>              -> OK Hello <name>
        INQUIRE <id> [timeout_ms]    -> OK {"url": .., "name": .., "location": ..}
                                      | NOT_FOUND <id>
                                      | INVALID_ARGUMENT <message>
                                      | DEADLINE_EXCEEDED <message>
        HEALTH                       -> OK SERVING
        QUIT                         -> (connection closed)

    Constraints:
        - Names: max 256 characters, may contain spaces
        - Ids: ASCII decimal integers; range is checked by the lookup service
        - timeout_ms: non-negative ASCII integer (0 = no deadline)
    """

    def __init__(self):
        """Initialize the parser with constraints from settings."""
        self.max_name_length = settings.MAX_NAME_LENGTH

    def parse_request(self, data: str) -> Request:
        """
        Parse a raw request line into a Request object.

        Args:
            data: Raw request string (may include trailing newline)

        Returns:
            Request object. Unknown methods come back as UNKNOWN;
            malformed arguments keep their type and set .error.

        Examples:
            >>> parser = ProtocolParser()
            >>> req = parser.parse_request("INQUIRE 1 250")
            >>> req.type == RequestType.INQUIRE
            True
            >>> req.record_id, req.timeout_ms
            (1, 250)
        """
        raw = data.rstrip("\r\n")
        if not raw.strip():
            return Request(type=RequestType.UNKNOWN, raw=raw)

        method, _, rest = raw.lstrip().partition(" ")
        method = method.upper()

        if method == "GREET":
            return self._parse_greet(rest, raw)
        if method == "INQUIRE":
            return self._parse_inquire(rest.split(), raw)
        if method == "HEALTH":
            if not rest.strip():
                return Request(type=RequestType.HEALTH, raw=raw)
            return Request(type=RequestType.HEALTH, error="HEALTH takes no arguments", raw=raw)
        if method == "QUIT":
            if not rest.strip():
                return Request(type=RequestType.QUIT, raw=raw)
            return Request(type=RequestType.QUIT, error="QUIT takes no arguments", raw=raw)

        return Request(type=RequestType.UNKNOWN, name=method, raw=raw)

    def _parse_greet(self, name: str, raw: str) -> Request:
        """
        Parse a GREET request.

        Format: GREET <name...>
        """
        if len(name) > self.max_name_length:
            return Request(type=RequestType.GREET, error="name too long", raw=raw)
        return Request(type=RequestType.GREET, name=name, raw=raw)

    def _parse_inquire(self, args: list, raw: str) -> Request:
        """
        Parse an INQUIRE request.

        Format: INQUIRE <id> [timeout_ms]
        """
        if len(args) not in (1, 2):
            return Request(
                type=RequestType.INQUIRE,
                error="usage: INQUIRE <id> [timeout_ms]",
                raw=raw,
            )

        if not _INTEGER.fullmatch(args[0]):
            return Request(
                type=RequestType.INQUIRE,
                error=f"record id must be an integer: {args[0]}",
                raw=raw,
            )
        record_id = int(args[0])

        timeout_ms = 0
        if len(args) == 2:
            timeout_ms = int(args[1]) if _INTEGER.fullmatch(args[1]) else -1
            if timeout_ms < 0:
                return Request(
                    type=RequestType.INQUIRE,
                    record_id=record_id,
                    error=f"timeout must be a non-negative integer: {args[1]}",
                    raw=raw,
                )

        return Request(
            type=RequestType.INQUIRE,
            record_id=record_id,
            timeout_ms=timeout_ms,
            raw=raw,
        )

    def format_request(self, request: Request) -> str:
        """
        Format a Request for sending over the wire.

        Returns:
            Request line with trailing newline

        Raises:
            ValueError: If the request cannot be represented on one line
        """
        if request.type == RequestType.GREET:
            if "\n" in request.name or "\r" in request.name:
                raise ValueError("name must not contain line breaks")
            return f"GREET {request.name}\n"
        if request.type == RequestType.INQUIRE:
            if request.timeout_ms > 0:
                return f"INQUIRE {request.record_id} {request.timeout_ms}\n"
            return f"INQUIRE {request.record_id}\n"
        if request.type == RequestType.HEALTH:
            return "HEALTH\n"
        if request.type == RequestType.QUIT:
            return "QUIT\n"
        raise ValueError(f"cannot format request of type {request.type.name}")

    def format_reply(self, reply: Reply) -> str:
        """
        Format a Reply object into a protocol string.

        Examples:
            >>> parser = ProtocolParser()
            >>> parser.format_reply(Reply.greeting("Hello vendor"))
            'OK Hello vendor\\n'
            >>> parser.format_reply(Reply.not_found(2))
            'NOT_FOUND 2\\n'
        """
        prefix = reply.status.value

        if reply.record is not None:
            body = json.dumps(reply.record.to_dict())
        else:
            body = reply.message.replace("\r", " ").replace("\n", " ")

        if body:
            return f"{prefix} {body}\n"
        return f"{prefix}\n"

    def parse_reply(self, data: str, record_id: int = None) -> Reply:
        """
        Parse a reply line received from a server.

        Args:
            data: Raw reply string
            record_id: Id of the INQUIRE this answers; None for GREET

        Returns:
            Parsed Reply. Unreadable replies become INTERNAL.
        """
        line = data.rstrip("\r\n")
        status_token, _, body = line.partition(" ")

        try:
            status = StatusCode(status_token.upper())
        except ValueError:
            return Reply.internal(f"unknown status: {status_token}")

        if status != StatusCode.OK:
            return Reply.error(status, body)

        if record_id is None:
            return Reply.greeting(body)

        try:
            fields = json.loads(body)
            if not isinstance(fields, dict):
                raise ValueError("record body is not an object")
            record = Record.from_dict(record_id, fields)
        except ValueError as exc:
            return Reply.internal(f"malformed record: {exc}")
        return Reply.record_found(record)
