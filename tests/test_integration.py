"""
Integration Tests

End-to-end and concurrency tests that exercise the registry, service,
server and client together.

Run with: python -m pytest tests/test_integration.py -v
"""

import asyncio
import threading

import pytest

from supplyfinder.client.stub import SupplyFinderClient
from supplyfinder.protocol.messages import StatusCode
from supplyfinder.protocol.results import Found, NotFound
from supplyfinder.registry.store import Record, RecordNotFound, VendorRegistry
from supplyfinder.service.lookup import LookupService


def versioned_records(version: int, count: int = 50):
    return [
        Record(id=i, url=f"localhost:{10000 + i}", name=f"v{version}", location=f"loc{i}")
        for i in range(count)
    ]


@pytest.mark.asyncio
@pytest.mark.integration
class TestEndToEnd:
    """End-to-end integration tests."""

    async def test_supplier_and_vendor_workflow(
        self, supplier_server, vendor_server, supplier_target, vendor_target, client, kroger
    ):
        assert (await client.say_hello_to(supplier_target, "supplier")).message == "Hello supplier"
        assert (await client.say_hello_to(vendor_target, "vendor")).message == "Hello vendor"

        assert await client.lookup_record(supplier_target, 1) == Found(kroger)
        assert await client.lookup_record(supplier_target, 2) == NotFound(2)

    async def test_registry_updates_visible_to_clients(
        self, supplier_server, supplier_target, client
    ):
        assert await client.lookup_record(supplier_target, 3) == NotFound(3)

        meijer = Record(id=3, url="localhost:3", name="Meijer", location="Ypsilanti, MI")
        supplier_server.service.registry.insert(meijer)

        assert await client.lookup_record(supplier_target, 3) == Found(meijer)

    async def test_multiple_clients(self, supplier_server, supplier_target):
        async def one_client(n: int):
            async with SupplyFinderClient(connect_timeout=1.0, call_timeout=2.0) as stub:
                found = await stub.lookup_record(supplier_target, 1)
                missing = await stub.lookup_record(supplier_target, 100 + n)
                return found, missing

        results = await asyncio.gather(*(one_client(n) for n in range(20)))

        for n, (found, missing) in enumerate(results):
            assert found.found
            assert missing == NotFound(100 + n)
        assert supplier_server.get_stats()["total_connections"] == 20

    async def test_server_down_does_not_raise(self, closed_target, client):
        greeting = await client.say_hello_to(closed_target, "supplier")
        lookup = await client.lookup_record(closed_target, 1)

        assert greeting.kind == StatusCode.UNAVAILABLE
        assert lookup.kind == StatusCode.UNAVAILABLE


@pytest.mark.slow
@pytest.mark.integration
class TestConcurrentRegistry:
    """Stress tests: many reader threads against one writer thread."""

    def test_readers_never_see_partial_refresh(self):
        registry = VendorRegistry(versioned_records(0))
        stop = threading.Event()
        errors = []

        def writer():
            version = 0
            while not stop.is_set():
                version += 1
                registry.replace_all(versioned_records(version))

        def reader():
            try:
                for _ in range(300):
                    snap = registry.snapshot()
                    names = {record.name for record in snap.values()}
                    if len(snap) != 50 or len(names) != 1:
                        errors.append(f"torn snapshot: {len(snap)} records, names {names}")
                    record = registry.get(7)
                    if record.id != 7 or record.location != "loc7":
                        errors.append(f"wrong record for id 7: {record}")
            except Exception as exc:  # Surface thread failures in the test
                errors.append(repr(exc))

        writer_thread = threading.Thread(target=writer)
        readers = [threading.Thread(target=reader) for _ in range(8)]

        writer_thread.start()
        for thread in readers:
            thread.start()
        for thread in readers:
            thread.join(timeout=30)
        stop.set()
        writer_thread.join(timeout=30)

        assert errors == []

    def test_concurrent_lookups_with_inserting_writer(self):
        registry = VendorRegistry(versioned_records(0, count=10))
        service = LookupService(registry)
        stop = threading.Event()
        errors = []

        def writer():
            next_id = 1000
            while not stop.is_set() and next_id < 6000:
                registry.insert(Record(next_id, "u", "late", "l"))
                next_id += 1

        def reader(offset: int):
            try:
                for i in range(500):
                    record_id = (i + offset) % 10
                    result = service.inquire_record(record_id)
                    if not isinstance(result, Found) or result.record.id != record_id:
                        errors.append(f"bad result for {record_id}: {result}")
                    miss = service.inquire_record(500 + offset)
                    if miss != NotFound(500 + offset):
                        errors.append(f"expected miss, got {miss}")
            except Exception as exc:  # Surface thread failures in the test
                errors.append(repr(exc))

        writer_thread = threading.Thread(target=writer)
        readers = [threading.Thread(target=reader, args=(n,)) for n in range(8)]

        writer_thread.start()
        for thread in readers:
            thread.start()
        for thread in readers:
            thread.join(timeout=30)
        stop.set()
        writer_thread.join(timeout=30)

        assert errors == []

    def test_never_inserted_ids_only_raise_not_found(self):
        registry = VendorRegistry(versioned_records(0, count=20))

        for record_id in range(20, 200):
            with pytest.raises(RecordNotFound):
                registry.get(record_id)
