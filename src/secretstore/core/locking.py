"""Reader/writer lock guarding a single store."""

import threading
from contextlib import contextmanager


class ReadWriteLock:
    """
    Shared/exclusive lock for one open store.

    - Multiple readers can hold the lock simultaneously
    - Writers get exclusive access (no readers or other writers)
    - Waiting writers block new readers so they cannot starve
    """

    __slots__ = ("_cond", "_readers", "_writers_waiting", "_writer_active")

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writers_waiting = 0
        self._writer_active = False

    @contextmanager
    def read_lock(self):
        """Acquire shared access for the duration of the block."""
        with self._cond:
            while self._writer_active or self._writers_waiting > 0:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write_lock(self):
        """Acquire exclusive access for the duration of the block."""
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._readers > 0 or self._writer_active:
                    self._cond.wait()
            except BaseException:
                # readers parked behind this writer must re-check
                self._writers_waiting -= 1
                self._cond.notify_all()
                raise
            self._writers_waiting -= 1
            self._writer_active = True
        try:
            yield
        finally:
            with self._cond:
                self._writer_active = False
                self._cond.notify_all()

    @property
    def readers(self) -> int:
        return self._readers

    @property
    def writer_active(self) -> bool:
        return self._writer_active
