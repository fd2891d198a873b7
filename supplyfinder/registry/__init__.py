"""Registry module for SupplyFinder."""

from .rwlock import ReadWriteLock
from .seed import DEFAULT_RECORDS, load_records
from .store import MAX_RECORD_ID, Record, RecordNotFound, VendorRegistry, is_valid_record_id

__all__ = [
    "DEFAULT_RECORDS",
    "MAX_RECORD_ID",
    "ReadWriteLock",
    "Record",
    "RecordNotFound",
    "VendorRegistry",
    "is_valid_record_id",
    "load_records",
]
