"""
Per-key mutex registry. Serializes ensure-store + upload for one institution
so concurrent ingestions of the same key do not interleave.

A key's lock exists only while someone holds or waits on it.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Iterator

logger = logging.getLogger(__name__)


class KeyedLocks:
    def __init__(self) -> None:
        # key -> [lock, holders + waiters]
        self._locks: dict[str, list] = {}
        self._guard = threading.Lock()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def _acquire_entry(self, key: str) -> threading.Lock:
        with self._guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
            return entry[0]

    def _release_entry(self, key: str) -> None:
        with self._guard:
            entry = self._locks[key]
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        lock = self._acquire_entry(key)
        try:
            if lock.locked():
                logger.info("[locks:hold] waiting for key=%s", key)
            with lock:
                yield
        finally:
            self._release_entry(key)
