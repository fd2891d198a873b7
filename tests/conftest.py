"""
Pytest Configuration and Fixtures

This module provides shared fixtures and configuration for all tests.
"""

import asyncio
import socket
import pytest
import pytest_asyncio
from contextlib import closing
from typing import AsyncGenerator

from supplyfinder.client.stub import SupplyFinderClient
from supplyfinder.network.tcp_server import LookupServer
from supplyfinder.protocol.parser import ProtocolParser
from supplyfinder.registry.seed import DEFAULT_RECORDS
from supplyfinder.registry.store import Record, VendorRegistry
from supplyfinder.service.lookup import GreeterService, LookupService


def find_free_port() -> int:
    """Find an available port for testing."""
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind(('', 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


# ============================================================================
# Registry / Service Fixtures
# ============================================================================

@pytest.fixture
def kroger() -> Record:
    """The record every seeded registry holds under id 1."""
    return Record(id=1, url="localhost:10933", name="Kroger", location="Ann Arbor, MI")


@pytest.fixture
def registry() -> VendorRegistry:
    """Create a fresh, empty VendorRegistry."""
    return VendorRegistry()


@pytest.fixture
def seeded_registry() -> VendorRegistry:
    """Create a VendorRegistry holding the default Kroger record."""
    return VendorRegistry(DEFAULT_RECORDS)


@pytest.fixture
def lookup_service(seeded_registry: VendorRegistry) -> LookupService:
    """Create a LookupService over the seeded registry."""
    return LookupService(seeded_registry)


# ============================================================================
# Protocol Fixtures
# ============================================================================

@pytest.fixture
def parser() -> ProtocolParser:
    """Create a ProtocolParser instance."""
    return ProtocolParser()


# ============================================================================
# Server Fixtures
# ============================================================================

async def _start(srv: LookupServer) -> asyncio.Task:
    task = asyncio.create_task(srv.start())
    # Wait for server to be ready
    for _ in range(50):
        if srv.is_running():
            break
        await asyncio.sleep(0.01)
    return task


async def _shutdown(srv: LookupServer, task: asyncio.Task) -> None:
    await srv.stop()
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


@pytest.fixture
def supplier_port() -> int:
    """Get a free port for the supplier server."""
    return find_free_port()


@pytest.fixture
def vendor_port() -> int:
    """Get a free port for the vendor server."""
    return find_free_port()


@pytest.fixture
def supplier_target(supplier_port: int) -> str:
    return f"127.0.0.1:{supplier_port}"


@pytest.fixture
def vendor_target(vendor_port: int) -> str:
    return f"127.0.0.1:{vendor_port}"


@pytest.fixture
def closed_target() -> str:
    """A target with nothing listening on it."""
    return f"127.0.0.1:{find_free_port()}"


@pytest_asyncio.fixture
async def supplier_server(
    lookup_service: LookupService,
    supplier_port: int,
) -> AsyncGenerator[LookupServer, None]:
    """
    Create and start a supplier server for testing.

    The server hosts a LookupService over a registry seeded with the
    Kroger record, on a random free port.
    """
    srv = LookupServer(lookup_service, host='127.0.0.1', port=supplier_port)
    task = await _start(srv)

    yield srv

    await _shutdown(srv, task)


@pytest_asyncio.fixture
async def vendor_server(vendor_port: int) -> AsyncGenerator[LookupServer, None]:
    """Create and start a greeter-only vendor server for testing."""
    srv = LookupServer(GreeterService(), host='127.0.0.1', port=vendor_port)
    task = await _start(srv)

    yield srv

    await _shutdown(srv, task)


# ============================================================================
# Client Fixtures
# ============================================================================

class LineClient:
    """
    Raw line-protocol client for server tests.

    Usage:
        async with LineClient('127.0.0.1', port) as client:
            response = await client.send_command("GREET bob")
            assert response == "OK Hello bob"
    """

    def __init__(self, host: str, port: int):
        self.host = host
        self.port = port
        self.reader = None
        self.writer = None

    async def connect(self) -> None:
        """Establish connection to server."""
        self.reader, self.writer = await asyncio.open_connection(
            self.host, self.port
        )

    async def disconnect(self) -> None:
        """Close connection to server."""
        if self.writer:
            self.writer.close()
            try:
                await self.writer.wait_closed()
            except (ConnectionError, OSError):
                pass

    async def send_command(self, command: str) -> str:
        """
        Send a command and receive the response.

        Returns:
            Response string (stripped of trailing newline)
        """
        if not command.endswith('\n'):
            command += '\n'

        self.writer.write(command.encode())
        await self.writer.drain()

        response = await self.reader.readline()
        return response.decode().rstrip('\r\n')

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.disconnect()


@pytest.fixture
def line_client_factory(supplier_port: int):
    """
    Factory fixture for raw clients against the supplier server.

    Usage:
        async def test_something(supplier_server, line_client_factory):
            async with line_client_factory() as client:
                response = await client.send_command("INQUIRE 1")
    """
    def factory(port: int = None) -> LineClient:
        return LineClient('127.0.0.1', port if port is not None else supplier_port)
    return factory


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[SupplyFinderClient, None]:
    """A SupplyFinderClient with short timeouts, closed after the test."""
    stub = SupplyFinderClient(connect_timeout=1.0, call_timeout=2.0)

    yield stub

    await stub.close()


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
