"""
Registry seed data.

DEFAULT_RECORDS is what a supplier server loads at startup unless it is
told to start empty or given a seed file.
"""

import json
import re
from pathlib import Path
from typing import List, Union

from .store import Record

DEFAULT_RECORDS = (
    Record(id=1, url="localhost:10933", name="Kroger", location="Ann Arbor, MI"),
)


def load_records(path: Union[str, Path]) -> List[Record]:
    """
    Read records from a JSON seed file.

    Two layouts are accepted:

        [{"id": 1, "url": "...", "name": "...", "location": "..."}, ...]
        {"1": {"url": "...", "name": "...", "location": "..."}, ...}

    Raises:
        ValueError: If the file layout or a record is malformed
        OSError: If the file cannot be read
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    records: List[Record] = []
    if isinstance(data, list):
        for entry in data:
            if not isinstance(entry, dict) or "id" not in entry:
                raise ValueError("each seed entry must be an object with an 'id'")
            records.append(Record.from_dict(_parse_id(entry["id"]), entry))
    elif isinstance(data, dict):
        for key, entry in data.items():
            if not isinstance(entry, dict):
                raise ValueError(f"seed entry {key!r} must be an object")
            records.append(Record.from_dict(_parse_id(key), entry))
    else:
        raise ValueError("seed file must hold a JSON list or object")
    return records


def _parse_id(value) -> int:
    # JSON ids are ints; object keys are strings of ASCII digits
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and re.fullmatch(r"[0-9]+", value):
        return int(value)
    raise ValueError(f"invalid record id: {value!r}")
