"""Per-key mutual exclusion.

Each key gets its own lock for as long as somebody holds or waits on it,
so unrelated keys never contend.
"""

from __future__ import annotations

import threading
from collections.abc import Hashable, Iterator
from contextlib import contextmanager


class KeyedLock:
    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[Hashable, tuple[threading.Lock, int]] = {}

    def _checkout(self, key: Hashable) -> threading.Lock:
        with self._guard:
            lock, users = self._locks.get(key, (None, 0))
            if lock is None:
                lock = threading.Lock()
            self._locks[key] = (lock, users + 1)
            return lock

    def _checkin(self, key: Hashable) -> None:
        with self._guard:
            lock, users = self._locks[key]
            if users <= 1:
                del self._locks[key]
            else:
                self._locks[key] = (lock, users - 1)

    @contextmanager
    def hold(self, key: Hashable, *, blocking: bool = True) -> Iterator[bool]:
        """Acquire the lock for *key*; yields whether it was acquired.

        With ``blocking=False`` the body runs immediately and sees False if
        another holder has the key.
        """
        lock = self._checkout(key)
        acquired = lock.acquire(blocking)
        try:
            yield acquired
        finally:
            if acquired:
                lock.release()
            self._checkin(key)

    def is_held(self, key: Hashable) -> bool:
        with self._guard:
            entry = self._locks.get(key)
        return entry is not None and entry[0].locked()
