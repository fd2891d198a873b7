"""
Vendor Registry Module

This module implements the in-memory record store behind the lookup
service. Records are keyed by an unsigned 32-bit id and never mutated
after insertion; overwriting an id swaps in a new Record object.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

from .rwlock import ReadWriteLock

MAX_RECORD_ID = 2**32 - 1


def is_valid_record_id(record_id: Any) -> bool:
    """Check that a value is an int in the unsigned 32-bit range."""
    if isinstance(record_id, bool) or not isinstance(record_id, int):
        return False
    return 0 <= record_id <= MAX_RECORD_ID


@dataclass(frozen=True)
class Record:
    """
    A vendor record.

    Attributes:
        id: Unique key (unsigned 32-bit integer)
        url: Endpoint of the vendor
        name: Vendor name
        location: Human-readable location
    """
    id: int
    url: str
    name: str
    location: str

    @classmethod
    def blank(cls, record_id: int) -> "Record":
        """Create the empty record that accompanies a not-found reply."""
        return cls(id=record_id, url="", name="", location="")

    def to_dict(self) -> Dict[str, str]:
        """Fields carried on the wire (the id travels with the query)."""
        return {"url": self.url, "name": self.name, "location": self.location}

    @classmethod
    def from_dict(cls, record_id: int, data: Dict[str, Any]) -> "Record":
        """
        Build a Record from a mapping of url/name/location.

        Raises:
            ValueError: If a field is missing or not a string
        """
        fields = {}
        for field_name in ("url", "name", "location"):
            value = data.get(field_name)
            if not isinstance(value, str):
                raise ValueError(f"record field {field_name!r} must be a string")
            fields[field_name] = value
        return cls(id=record_id, **fields)


class RecordNotFound(KeyError):
    """Raised by VendorRegistry.get() when no record has the requested id."""

    def __init__(self, record_id: int):
        super().__init__(record_id)
        self.record_id = record_id


class VendorRegistry:
    """
    In-memory id -> Record store guarded by a reader-writer lock.

    Lookups run concurrently with each other. Mutations hold the write
    lock only while the map is being changed, so a reader always sees
    either the whole map before a write or the whole map after it.

    Usage:
        registry = VendorRegistry()
        registry.insert(Record(1, "localhost:10933", "Kroger", "Ann Arbor, MI"))
        record = registry.get(1)

    Attributes:
        name: Label used in stats output
    """

    def __init__(self, records: Iterable[Record] = (), name: str = "vendors"):
        """
        Initialize the registry.

        Args:
            records: Optional initial records
            name: Label used in stats output
        """
        self.name = name
        self._lock = ReadWriteLock()
        self._records: Dict[int, Record] = self._build_map(records)

    @staticmethod
    def _check(record: Record) -> None:
        if not isinstance(record, Record):
            raise TypeError(f"expected Record, got {type(record).__name__}")
        if not is_valid_record_id(record.id):
            raise ValueError(f"record id out of range: {record.id!r}")

    def _build_map(self, records: Iterable[Record]) -> Dict[int, Record]:
        new_map: Dict[int, Record] = {}
        for record in records:
            self._check(record)
            new_map[record.id] = record
        return new_map

    def insert(self, record: Record) -> None:
        """
        Add a record, or replace the one already stored under its id.

        Raises:
            ValueError: If the record id is outside the unsigned 32-bit range
        """
        self._check(record)
        with self._lock.write_locked():
            self._records[record.id] = record

    def insert_many(self, records: Iterable[Record]) -> int:
        """
        Insert several records under a single write lock.

        Returns:
            Number of records inserted
        """
        batch = self._build_map(records)
        with self._lock.write_locked():
            self._records.update(batch)
        return len(batch)

    def replace_all(self, records: Iterable[Record]) -> int:
        """
        Atomically replace the whole registry contents.

        The new map is built before the write lock is taken.

        Returns:
            Number of records now stored
        """
        new_map = self._build_map(records)
        with self._lock.write_locked():
            self._records = new_map
        return len(new_map)

    def get(self, record_id: int, timeout: Optional[float] = None) -> Record:
        """
        Look up a record by id.

        Args:
            record_id: The id to look up
            timeout: Max seconds to wait for a writer to finish (None = wait)

        Returns:
            The stored Record

        Raises:
            RecordNotFound: If no record has this id
            TimeoutError: If the read lock was not acquired in time

        Time Complexity: O(1) average
        """
        with self._lock.read_locked(timeout):
            record = self._records.get(record_id)
        if record is None:
            raise RecordNotFound(record_id)
        return record

    def contains(self, record_id: int) -> bool:
        """Check whether a record with this id is stored."""
        with self._lock.read_locked():
            return record_id in self._records

    def size(self) -> int:
        """Get the number of stored records."""
        with self._lock.read_locked():
            return len(self._records)

    def clear(self) -> None:
        """Remove all records."""
        with self._lock.write_locked():
            self._records = {}

    def snapshot(self) -> Dict[int, Record]:
        """Return a consistent copy of the id -> Record map."""
        with self._lock.read_locked():
            return dict(self._records)

    def get_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the registry.

        Returns:
            Dictionary containing:
            - name: Registry label
            - total_records: Number of stored records
            - active_readers: Readers holding the lock right now
        """
        return {
            "name": self.name,
            "total_records": self.size(),
            "active_readers": self._lock.readers,
        }
