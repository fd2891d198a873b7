"""
Reader-Writer Lock Module

Many readers may hold the lock at once; a writer holds it alone.
Waiting writers block new readers so a steady stream of lookups
cannot starve a registry refresh.
"""

import threading
from contextlib import contextmanager
from typing import Iterator, Optional


class ReadWriteLock:
    """
    Writer-preferring reader-writer lock built on threading.Condition.

    Usage:
        lock = ReadWriteLock()
        with lock.read_locked():
            ...  # shared access
        with lock.write_locked():
            ...  # exclusive access

    Both acquire methods accept an optional timeout in seconds. A timeout
    of None waits forever; zero or a negative value only tries once.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self, timeout: Optional[float] = None) -> bool:
        """
        Acquire shared access.

        Returns:
            True if acquired, False if the timeout expired first
        """
        with self._cond:
            acquired = self._cond.wait_for(
                lambda: not self._writer and self._writers_waiting == 0,
                timeout,
            )
            if not acquired:
                return False
            self._readers += 1
            return True

    def release_read(self) -> None:
        """Release shared access."""
        with self._cond:
            if self._readers <= 0:
                raise RuntimeError("release_read called without a matching acquire")
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self, timeout: Optional[float] = None) -> bool:
        """
        Acquire exclusive access.

        Returns:
            True if acquired, False if the timeout expired first
        """
        with self._cond:
            self._writers_waiting += 1
            try:
                acquired = self._cond.wait_for(
                    lambda: not self._writer and self._readers == 0,
                    timeout,
                )
                if acquired:
                    self._writer = True
                return acquired
            finally:
                self._writers_waiting -= 1
                if not self._writer:
                    # Readers parked behind this writer may proceed now
                    self._cond.notify_all()

    def release_write(self) -> None:
        """Release exclusive access."""
        with self._cond:
            if not self._writer:
                raise RuntimeError("release_write called without a matching acquire")
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read_locked(self, timeout: Optional[float] = None) -> Iterator[None]:
        """Hold shared access for the body of a with-block."""
        if not self.acquire_read(timeout):
            raise TimeoutError("timed out waiting for read lock")
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self, timeout: Optional[float] = None) -> Iterator[None]:
        """Hold exclusive access for the body of a with-block."""
        if not self.acquire_write(timeout):
            raise TimeoutError("timed out waiting for write lock")
        try:
            yield
        finally:
            self.release_write()

    @property
    def readers(self) -> int:
        """Number of readers currently holding the lock."""
        with self._cond:
            return self._readers

    @property
    def write_held(self) -> bool:
        """True while a writer holds the lock."""
        with self._cond:
            return self._writer
