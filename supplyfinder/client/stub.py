"""
Client Stub Module

Issues Greet and InquireRecord calls against supplier and vendor
servers. Each target gets one long-lived TCP connection that is reused
across calls. Transport problems come back as Failure values; nothing
here prints or retries.
"""

import asyncio
import logging
from asyncio import StreamReader, StreamWriter
from typing import Dict, Optional, Tuple

from ..config.settings import settings
from ..protocol.messages import Request, RequestType, StatusCode
from ..protocol.parser import ProtocolParser
from ..protocol.results import (
    Failure,
    GreetResult,
    HealthResult,
    LookupResult,
    greet_result_from_reply,
    health_result_from_reply,
    lookup_result_from_reply,
)

logger = logging.getLogger(__name__)


def parse_target(target: str) -> Tuple[str, int]:
    """
    Split a 'host:port' target.

    Raises:
        ValueError: If the target has no port or the port is not a number
    """
    host, sep, port = target.rpartition(":")
    if not sep or not host:
        raise ValueError(f"target must look like host:port: {target!r}")
    try:
        port_number = int(port)
    except ValueError:
        raise ValueError(f"invalid port in target {target!r}") from None
    if not 0 < port_number < 65536:
        raise ValueError(f"port out of range in target {target!r}")
    return host.strip("[]"), port_number


class Connection:
    """
    A persistent line-protocol stream to one target.

    Calls are serialized with an asyncio.Lock so that request/reply
    pairs never interleave on the stream.
    """

    def __init__(self, target: str, connect_timeout: float):
        self.target = target
        self.host, self.port = parse_target(target)
        self.connect_timeout = connect_timeout
        self.reader: Optional[StreamReader] = None
        self.writer: Optional[StreamWriter] = None
        self.lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return self.writer is not None and not self.writer.is_closing()

    async def open(self) -> None:
        """Open the stream if it is not already open."""
        if self.is_open:
            return
        try:
            self.reader, self.writer = await asyncio.wait_for(
                asyncio.open_connection(self.host, self.port),
                timeout=self.connect_timeout,
            )
        except asyncio.TimeoutError:
            raise ConnectionError(f"timed out connecting to {self.target}") from None
        logger.debug(f"Connected to {self.target}")

    def abort(self) -> Optional[StreamWriter]:
        """Drop the stream without waiting for it to close."""
        writer = self.writer
        self.reader = None
        self.writer = None
        if writer is not None:
            writer.close()
        return writer

    async def close(self) -> None:
        """Close the stream. Safe to call more than once."""
        writer = self.abort()
        if writer is None:
            return
        try:
            await writer.wait_closed()
        except (ConnectionError, OSError):
            pass

    async def call(self, line: str) -> str:
        """
        Send one request line and read one reply line.

        Raises:
            ConnectionError: If the server closed the stream
            OSError: On socket errors
            ValueError: If the reply is not UTF-8 or overruns the stream limit
        """
        await self.open()
        self.writer.write(line.encode())
        await self.writer.drain()
        data = await self.reader.readline()
        if not data:
            raise ConnectionError(f"connection to {self.target} closed by server")
        return data.decode()


class SupplyFinderClient:
    """
    Async client stub for supplier and vendor servers.

    Usage:
        async with SupplyFinderClient() as client:
            greeting = await client.say_hello_to("localhost:50052", "vendor")
            result = await client.lookup_record("localhost:50051", 1)
            if isinstance(result, Found):
                print(result.record.name)

    Attributes:
        connect_timeout: Seconds allowed to open a connection
        call_timeout: Default seconds allowed per call
    """

    def __init__(
            self,
            connect_timeout: float = None,
            call_timeout: Optional[float] = None,
    ):
        self.connect_timeout = (
            connect_timeout if connect_timeout is not None else settings.CONNECT_TIMEOUT
        )
        self.call_timeout = call_timeout if call_timeout is not None else settings.CALL_TIMEOUT
        self.parser = ProtocolParser()
        self._connections: Dict[str, Connection] = {}

    def _connection_for(self, target: str) -> Connection:
        conn = self._connections.get(target)
        if conn is None:
            conn = Connection(target, self.connect_timeout)
            self._connections[target] = conn
        return conn

    async def _call(self, target: str, request: Request, timeout: Optional[float]):
        """
        Run one request on the target's connection.

        Returns:
            (reply line, None) on success or (None, Failure) on a
            transport problem
        """
        try:
            conn = self._connection_for(target)
            line = self.parser.format_request(request)
        except ValueError as exc:
            return None, Failure(StatusCode.INVALID_ARGUMENT, str(exc))

        async with conn.lock:
            try:
                data = await asyncio.wait_for(conn.call(line), timeout=timeout)
            except asyncio.CancelledError:
                # The reply is still owed on this stream; never hand it to the next call
                conn.abort()
                raise
            except asyncio.TimeoutError:
                # The reply may still arrive later; the stream is out of sync
                await conn.close()
                logger.debug(f"{request.type.name} to {target} timed out")
                return None, Failure(StatusCode.DEADLINE_EXCEEDED, f"no reply from {target} in time")
            except (ConnectionError, OSError, asyncio.IncompleteReadError) as exc:
                await conn.close()
                logger.debug(f"{request.type.name} to {target} failed: {exc}")
                return None, Failure(StatusCode.UNAVAILABLE, f"{target}: {exc}")
            except ValueError as exc:
                # Undecodable reply, or a reply line longer than the stream limit
                await conn.close()
                logger.debug(f"{request.type.name} to {target} got an unreadable reply: {exc}")
                return None, Failure(StatusCode.INTERNAL, f"unreadable reply from {target}: {exc}")
        return data, None

    async def say_hello_to(self, target: str, name: str) -> GreetResult:
        """
        Send a Greet call.

        Returns:
            Greeting(message), or Failure carrying the reason
        """
        request = Request(type=RequestType.GREET, name=name)
        data, failure = await self._call(target, request, self.call_timeout)
        if failure is not None:
            return failure
        return greet_result_from_reply(self.parser.parse_reply(data))

    async def check_health(self, target: str) -> HealthResult:
        """
        Ask a server whether it is answering calls.

        Returns:
            Health(status), or Failure carrying the reason
        """
        request = Request(type=RequestType.HEALTH)
        data, failure = await self._call(target, request, self.call_timeout)
        if failure is not None:
            return failure
        return health_result_from_reply(self.parser.parse_reply(data))

    async def lookup_record(
            self,
            target: str,
            record_id: int,
            timeout: Optional[float] = None,
    ) -> LookupResult:
        """
        Send an InquireRecord call.

        Args:
            target: 'host:port' of a supplier server
            record_id: Id to look up
            timeout: Seconds for this call; also sent to the server as
                     its lookup deadline (default: call_timeout, not sent)

        Returns:
            Found(record), NotFound(record_id), or Failure(kind, message)
        """
        if isinstance(record_id, bool) or not isinstance(record_id, int):
            return Failure(StatusCode.INVALID_ARGUMENT, f"record id must be an integer: {record_id!r}")

        timeout_ms = 0
        if timeout is not None:
            timeout_ms = max(1, int(timeout * 1000))
        request = Request(type=RequestType.INQUIRE, record_id=record_id, timeout_ms=timeout_ms)

        data, failure = await self._call(
            target,
            request,
            timeout if timeout is not None else self.call_timeout,
        )
        if failure is not None:
            return failure
        return lookup_result_from_reply(self.parser.parse_reply(data, record_id=record_id), record_id)

    async def close(self) -> None:
        """Close every connection held by the stub."""
        connections = list(self._connections.values())
        self._connections.clear()
        for conn in connections:
            await conn.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
