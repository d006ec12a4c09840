import threading
from contextlib import contextmanager
from typing import Dict, Hashable, Iterator, List, Optional


class LockTimeout(Exception):
    """Raised when a keyed lock could not be acquired in time."""


class _Entry:
    __slots__ = ("lock", "refs")

    def __init__(self):
        self.lock = threading.Lock()
        self.refs = 0


class KeyedLock:
    """
    In-process mutual exclusion per hashable key.

    Holders of different keys never block each other. An entry lives only while
    some thread holds or waits for its key, so the map stays as small as the
    set of keys currently in flight.
    """

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout
        self._guard = threading.Lock()
        self._entries: Dict[Hashable, _Entry] = {}

    def _checkout(self, key: Hashable) -> _Entry:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.refs += 1
            return entry

    def _checkin(self, key: Hashable) -> None:
        with self._guard:
            entry = self._entries[key]
            entry.refs -= 1
            if entry.refs == 0:
                del self._entries[key]

    @contextmanager
    def hold(self, *keys: Hashable) -> Iterator[None]:
        """
        Hold the locks of every given key for the duration of the block.

        Keys are acquired in sorted order so that callers holding several keys
        cannot deadlock against each other.
        """
        ordered = sorted(set(keys))
        timeout = -1 if self.timeout is None else self.timeout
        acquired: List[_Entry] = []
        checked_out: List[Hashable] = []
        try:
            for key in ordered:
                entry = self._checkout(key)
                checked_out.append(key)
                if not entry.lock.acquire(timeout=timeout):
                    raise LockTimeout(f"Timed out waiting for lock on {key!r}")
                acquired.append(entry)
            yield
        finally:
            for entry in reversed(acquired):
                entry.lock.release()
            for key in reversed(checked_out):
                self._checkin(key)

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)
