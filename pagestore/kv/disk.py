"""Disk-backed object database using diskcache."""

import os
from typing import Mapping, cast

from .base import ObjectDB, check_bytes


class Disk(ObjectDB):
    """Object database backed by diskcache (SQLite + files).

    Eviction is disabled: history objects must never be culled.
    """

    def __init__(self, directory: str) -> None:
        from diskcache import Cache as DiskCache

        self.directory = directory
        self.store = DiskCache(directory, eviction_policy="none")

    @staticmethod
    def exists(directory: str) -> bool:
        """True if ``directory`` already holds a diskcache database."""
        from diskcache.core import DBNAME

        return os.path.isfile(os.path.join(directory, DBNAME))

    def get(self, key: str) -> bytes | None:
        return cast(bytes | None, self.store.get(key))

    def set_many(self, items: Mapping[str, bytes]) -> None:
        for key, value in items.items():
            check_bytes(key, value)
        with self.store.transact():
            for key, value in items.items():
                self.store.set(key, value)

    def __contains__(self, key: str) -> bool:
        return key in self.store

    def cas(self, key: str, value: bytes, expected: bytes | None) -> bool:
        check_bytes(key, value)
        with self.store.transact():
            current = cast(bytes | None, self.store.get(key))
            if current == expected:
                self.store.set(key, value)
                return True
            return False

    def lock(self, name: str, expire: float | None = None):
        """A ``diskcache.RLock`` stored in the database itself.

        Held per process and thread, so it serializes every handle on
        the same directory, including handles in other processes.
        """
        from diskcache import RLock

        return RLock(self.store, name, expire=expire)

    def close(self) -> None:
        self.store.close()
