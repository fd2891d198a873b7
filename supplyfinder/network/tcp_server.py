"""
Async TCP Server Module

This module implements the asynchronous TCP server that hosts a
GreeterService (vendor role) or LookupService (supplier role).

Key asyncio concepts used:
- asyncio.start_server(): Create a TCP server
- StreamReader.readuntil(): Read a line from client
- StreamWriter.write() / drain(): Send data to client
- Connection cleanup with writer.close() / wait_closed()
"""

import asyncio
import logging
import time
from asyncio import StreamReader, StreamWriter
from typing import Optional, Set

from ..config.settings import settings
from ..protocol.messages import Reply, Request, RequestType
from ..protocol.parser import ProtocolParser
from ..protocol.results import reply_from_lookup_result
from ..service.lookup import GreeterService, LookupService

logger = logging.getLogger(__name__)


class LookupServer:
    """
    Asynchronous TCP server for the SupplyFinder services.

    Each client connection is handled in its own coroutine. Calls are
    independent: a slow client never holds anything another call needs,
    and registry reads only wait while a writer is mid-mutation.

    Usage:
        server = LookupServer(service=LookupService(registry), port=50051)
        await server.start()  # Runs forever

    Attributes:
        host: Server bind address (e.g., '0.0.0.0')
        port: Server port number (e.g., 50051)
        service: The service answering calls
        parser: The ProtocolParser for requests and replies
    """

    def __init__(
            self,
            service: GreeterService,
            host: str = None,
            port: int = None,
    ):
        """
        Initialize the server.

        Args:
            service: GreeterService or LookupService to host
            host: Bind address (default from settings)
            port: Port number (default: supplier port for a LookupService,
                  vendor port otherwise)
        """
        self.service = service
        self.host = host if host is not None else settings.HOST
        if port is None:
            port = settings.SUPPLIER_PORT if self.serves_lookup else settings.VENDOR_PORT
        self.port = port
        self.parser = ProtocolParser()

        # Server state
        self._server: Optional[asyncio.Server] = None
        self._running = False
        self._connection_count = 0
        self._total_requests = 0
        self._writers: Set[StreamWriter] = set()

    @property
    def serves_lookup(self) -> bool:
        return isinstance(self.service, LookupService)

    async def _read_request_line(self, reader: StreamReader) -> Optional[bytes]:
        """
        Read one request line.

        Returns:
            The line, b"" at EOF, or None if the line was longer than the
            read buffer and has been discarded
        """
        try:
            return await reader.readuntil(b"\n")
        except asyncio.IncompleteReadError as exc:
            return exc.partial
        except asyncio.LimitOverrunError as exc:
            consumed = exc.consumed

        # Drop the rest of the oversized line
        try:
            while True:
                await reader.readexactly(consumed)
                try:
                    await reader.readuntil(b"\n")
                    return None
                except asyncio.LimitOverrunError as exc:
                    consumed = exc.consumed
        except asyncio.IncompleteReadError:
            return b""

    async def handle_client(
            self,
            reader: StreamReader,
            writer: StreamWriter
    ) -> None:
        """
        Handle a single client connection.

        Reads request lines, dispatches them to the service, and writes
        one reply line per request until the client disconnects or sends
        QUIT. Malformed requests get an error reply and the connection
        stays open.
        """
        addr = writer.get_extra_info('peername')
        self._connection_count += 1
        self._writers.add(writer)
        logger.debug(f"Client connected: {addr}")

        try:
            while True:
                data = await self._read_request_line(reader)
                if data is None:
                    reply = Reply.invalid_argument("request line too long")
                    writer.write(self.parser.format_reply(reply).encode())
                    await writer.drain()
                    continue
                if not data:
                    logger.debug(f"Client disconnected: {addr}")
                    break

                try:
                    raw = data.decode().rstrip('\r\n')
                except UnicodeDecodeError:
                    reply = Reply.invalid_argument("invalid encoding")
                    writer.write(self.parser.format_reply(reply).encode())
                    await writer.drain()
                    continue

                request = self.parser.parse_request(raw)

                if request.type == RequestType.QUIT and request.is_valid:
                    logger.debug(f"Client requested quit: {addr}")
                    break

                self._total_requests += 1
                try:
                    reply = await self.dispatch(request)
                except Exception:
                    logger.exception(f"Error serving {request.type.name} for {addr}")
                    reply = Reply.internal()

                writer.write(self.parser.format_reply(reply).encode())
                await writer.drain()

        except ConnectionResetError:
            logger.debug(f"Connection reset by client: {addr}")
        except asyncio.CancelledError:
            logger.debug(f"Connection handler cancelled: {addr}")
            raise
        except Exception as exc:  # Log unexpected errors but keep server alive
            logger.exception(f"Error handling client {addr}: {exc}")
        finally:
            self._writers.discard(writer)
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionError, OSError):
                pass

    async def dispatch(self, request: Request) -> Reply:
        """
        Execute a parsed request against the hosted service.

        Registry lookups run in a worker thread so that a lookup waiting
        on a writer never stalls the event loop.

        Args:
            request: The Request object to execute

        Returns:
            Reply object with the result
        """
        if request.type == RequestType.UNKNOWN:
            return Reply.unimplemented(request.name or "<empty>")

        if not request.is_valid:
            return Reply.invalid_argument(request.error or "invalid request")

        if request.type == RequestType.GREET:
            return Reply.greeting(self.service.greet(request.name))

        if request.type == RequestType.HEALTH:
            return Reply.serving()

        if request.type == RequestType.INQUIRE:
            if not self.serves_lookup:
                return Reply.unimplemented("INQUIRE")
            deadline = None
            if request.timeout_ms > 0:
                deadline = time.monotonic() + request.timeout_ms / 1000.0
            result = await asyncio.to_thread(
                self.service.inquire_record, request.record_id, deadline=deadline
            )
            return reply_from_lookup_result(result)

        return Reply.invalid_argument("invalid request")

    async def start(self) -> None:
        """
        Start the server and begin accepting connections.

        Runs until cancelled or stop() is called.

        Example:
            server = LookupServer(GreeterService(), port=50052)
            asyncio.run(server.start())
        """
        if self._running:
            return

        self._server = await asyncio.start_server(
            self.handle_client,
            self.host,
            self.port,
            limit=settings.READ_BUFFER_SIZE,
        )
        self._running = True

        addrs = ', '.join(str(sock.getsockname()) for sock in self._server.sockets or [])
        role = "supplier" if self.serves_lookup else "vendor"
        logger.info(f"Serving {role} on {addrs}")

        try:
            async with self._server:
                await self._server.serve_forever()
        except asyncio.CancelledError:
            # Expected during shutdown/fixture cleanup
            logger.debug("Server start cancelled")
        finally:
            self._running = False

    async def stop(self) -> None:
        """Stop the server gracefully."""
        if self._server is None:
            return

        self._server.close()
        # Drop live connections so wait_closed() does not block on them
        for writer in list(self._writers):
            writer.close()
        try:
            await self._server.wait_closed()
        finally:
            self._server = None
            self._running = False

    def is_running(self) -> bool:
        """Check if the server is currently running."""
        return self._running

    def get_stats(self) -> dict:
        """
        Get server statistics.

        Returns:
            Dictionary with connection and request counts, plus registry
            stats when a registry is hosted.
        """
        stats = {
            "running": self._running,
            "host": self.host,
            "port": self.port,
            "total_connections": self._connection_count,
            "total_requests": self._total_requests,
        }
        if self.serves_lookup:
            stats["registry_stats"] = self.service.registry.get_stats()
        return stats
