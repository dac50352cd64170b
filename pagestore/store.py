"""PageStore facade and factory function."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterator, Literal

from .config import StoreConfig
from .errors import AlreadyInitialized
from .objects import Revision, Signature
from .resolver import VersionResolver
from .revisions import RevisionStore
from .writer import WriteCoordinator

logger = logging.getLogger(__name__)


class PageStore:
    """A versioned page store: one history, one writer, one resolver.

    Attributes:
        revisions: The underlying ``RevisionStore``.
        writer: ``WriteCoordinator`` for saves.
        resolver: ``VersionResolver`` for current and historical reads.
    """

    def __init__(self, revisions: RevisionStore) -> None:
        self.revisions = revisions
        self.writer = WriteCoordinator(revisions)
        self.resolver = VersionResolver(revisions)

    def __repr__(self) -> str:
        return f"PageStore({self.revisions!r})"

    def __enter__(self) -> PageStore:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def root(self) -> Path:
        return self.revisions.root

    def head(self) -> str | None:
        return self.revisions.head()

    def save(
        self,
        path: str,
        content: bytes | str,
        message: str | None = None,
        author: Signature | str | None = None,
    ) -> Revision:
        """Write a page and record it as a new revision."""
        return self.writer.save(path, content, message, author)

    def read(self, path: str, version: str | None = None) -> bytes | None:
        """Read a page at HEAD, or at ``version`` when given.

        Historical reads raise the resolver's errors; current reads
        return None for a missing page.
        """
        if version:
            return self.resolver.resolve(path, version)
        return self.resolver.read_current(path)

    def resolve(self, path: str, version_prefix: str) -> bytes:
        return self.resolver.resolve(path, version_prefix)

    def history(self) -> Iterator[Revision]:
        return self.revisions.history()

    def pages(self, version: str | None = None) -> list[str]:
        """Sorted page paths recorded at HEAD (or at ``version``)."""
        if version:
            revision = self.resolver.find_revision(version)
        else:
            head = self.revisions.head()
            if head is None:
                return []
            revision = self.revisions.lookup_revision(head)
        return sorted(self.revisions.read_tree(revision))

    def close(self) -> None:
        self.revisions.close()


def store(
    root: str | os.PathLike[str],
    *,
    kind: Literal["disk", "memory"] = "disk",
    init: bool = False,
    config: StoreConfig | None = None,
) -> PageStore:
    """Create a PageStore rooted at ``root``.

    Args:
        root: Directory holding the page files.
        kind: ``"disk"`` (default) keeps history in the reserved
            history directory under ``root``; ``"memory"`` keeps it in
            process memory and needs no initialization.
        init: Initialize the disk history if missing. An existing
            history is opened as-is.
        config: Store settings (default ``StoreConfig()``).

    Raises:
        NotInitialized: For ``kind="disk"`` without ``init`` when no
            history exists.
    """
    config = config or StoreConfig()
    if kind == "memory":
        from .kv.memory import Memory

        Path(root).mkdir(parents=True, exist_ok=True)
        return PageStore(RevisionStore(Memory(), root, config=config))
    if kind != "disk":
        raise ValueError(f"Unknown kind: {kind!r}")

    if init:
        try:
            return PageStore(RevisionStore.initialize(root, config=config))
        except AlreadyInitialized:
            logger.info("Page history already found at %s, skip init", root)
    return PageStore(RevisionStore.open(root, config=config))
