"""Process-unique, monotonically increasing image ids."""

import logging
import threading

log = logging.getLogger(__name__)


class IdAllocator:
    """Hands out strictly increasing integer ids, never reusing one."""

    def __init__(self, start: int = 0):
        self._next = start
        self._lock = threading.Lock()

    def next_id(self) -> int:
        with self._lock:
            value = self._next
            self._next += 1
            return value

    def observe(self, value: int):
        """Moves the counter past an id that was restored from elsewhere."""
        with self._lock:
            if value >= self._next:
                self._next = value + 1
                log.debug("Id allocator advanced to %d", self._next)

    def peek(self) -> int:
        """Returns the id the next call to next_id() will hand out."""
        with self._lock:
            return self._next


# Initialized once at import and never reset for the life of the process.
default_allocator = IdAllocator()
