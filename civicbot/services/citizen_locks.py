import threading
from contextlib import contextmanager
from typing import Iterator


class CitizenLocks:
    """One in-process lock per citizen address.

    Events from the same citizen run one at a time, so "latest draft" and
    "latest active ticket" lookups cannot interleave with another write
    from that citizen. Separate worker processes are not covered.
    An entry lives only while some thread holds or waits on it.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}
        self._holders: dict[str, int] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def _acquire_entry(self, citizen: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(citizen)
            if lock is None:
                lock = threading.Lock()
                self._locks[citizen] = lock
            self._holders[citizen] = self._holders.get(citizen, 0) + 1
            return lock

    def _release_entry(self, citizen: str) -> None:
        with self._guard:
            remaining = self._holders[citizen] - 1
            if remaining:
                self._holders[citizen] = remaining
            else:
                del self._holders[citizen]
                del self._locks[citizen]

    @contextmanager
    def hold(self, citizen: str) -> Iterator[None]:
        lock = self._acquire_entry(citizen)
        try:
            with lock:
                yield
        finally:
            self._release_entry(citizen)
