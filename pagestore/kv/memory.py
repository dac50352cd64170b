"""In-memory object database."""

import threading
from typing import Mapping

from .base import ObjectDB, check_bytes


class Memory(ObjectDB):
    """A memory-backed object database.

    All operations share one lock, so concurrent readers and a writer
    never observe a half-applied ``set_many`` batch.
    """

    def __init__(self) -> None:
        self.memory: dict[str, bytes] = {}
        self._lock = threading.Lock()
        self._named_locks: dict[str, threading.RLock] = {}

    def get(self, key: str) -> bytes | None:
        with self._lock:
            return self.memory.get(key)

    def set_many(self, items: Mapping[str, bytes]) -> None:
        for key, value in items.items():
            check_bytes(key, value)
        with self._lock:
            self.memory.update(items)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self.memory

    def cas(self, key: str, value: bytes, expected: bytes | None) -> bool:
        check_bytes(key, value)
        with self._lock:
            if self.memory.get(key) == expected:
                self.memory[key] = value
                return True
            return False

    def lock(self, name: str, expire: float | None = None) -> threading.RLock:
        # Dies with the process, so expire has nothing to bound.
        with self._lock:
            return self._named_locks.setdefault(name, threading.RLock())
