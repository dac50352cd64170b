"""Abstract object database interface."""

from abc import ABC, abstractmethod
from typing import ContextManager, Mapping


class ObjectDB(ABC):
    """Byte store holding revision history objects.

    Keys are strings such as ``__blob__<id>``; values are always bytes.
    Encoding of revisions and trees happens at higher layers
    (see ``pagestore.objects``).
    """

    @abstractmethod
    def get(self, key: str) -> bytes | None:
        """Get bytes value for key, or None if not found."""

    @abstractmethod
    def set_many(self, items: Mapping[str, bytes]) -> None:
        """Write several objects as one batch."""

    @abstractmethod
    def __contains__(self, key: str) -> bool:
        """Check if key exists in store."""

    @abstractmethod
    def cas(self, key: str, value: bytes, expected: bytes | None) -> bool:
        """Atomic compare-and-swap.

        Set value only if current value equals expected.
        None means "key must not exist".

        Returns True if swap succeeded, False otherwise.
        """

    @abstractmethod
    def lock(self, name: str, expire: float | None = None) -> ContextManager:
        """Reentrant lock shared by every handle on this database.

        ``expire`` bounds how long a holder that died keeps the lock,
        for backends that outlive the process.
        """

    def close(self) -> None:
        """Release any handles held by the backend."""


def check_bytes(key: str, value: object) -> None:
    if not isinstance(value, bytes):
        raise TypeError(f"Expected bytes for {key}, got {type(value).__name__}")
