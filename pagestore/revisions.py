"""RevisionStore: content-addressed history of a page tree."""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import Iterator, Mapping

from .config import StoreConfig
from .errors import AlreadyInitialized, CommitFailure, NotFound, NotInitialized
from .kv.base import ObjectDB
from .objects import (
    BLOB_KEY,
    COMMIT_KEY,
    FORMAT_KEY,
    FORMAT_VERSION,
    HEAD_KEY,
    TREE_KEY,
    WRITE_LOCK_KEY,
    Revision,
    Signature,
    _from_bytes,
    _to_bytes,
    blob_id,
    revision_id,
    tree_from_bytes,
    tree_id,
    tree_to_bytes,
)

logger = logging.getLogger(__name__)


class RevisionStore:
    """Durable storage of revisions, snapshot trees, and blobs.

    Exposes primitives only: reading HEAD, looking up revisions,
    reading a page out of a revision's tree, and appending a commit.
    History is a single line; every revision has at most one parent.

    Args:
        db: Object database holding the history.
        root: Store root directory (the working tree of pages).
        config: Shared store settings.
    """

    def __init__(
        self,
        db: ObjectDB,
        root: str | os.PathLike[str],
        *,
        config: StoreConfig | None = None,
    ) -> None:
        self.db = db
        self.root = Path(root)
        self.config = config or StoreConfig()
        # Serializes disk write + commit for every handle on this history.
        self.write_lock = db.lock(WRITE_LOCK_KEY, expire=self.config.write_lock_expire)
        if FORMAT_KEY not in db:
            db.cas(FORMAT_KEY, _to_bytes(FORMAT_VERSION), expected=None)

    def __repr__(self) -> str:
        head = self.head()
        short = self.lookup_revision(head).short_id if head else "empty"
        return f"RevisionStore(root={str(self.root)!r}, head={short})"

    @property
    def history_path(self) -> Path:
        return self.root / self.config.history_dir

    # -- Bootstrap --

    @classmethod
    def open(
        cls, root: str | os.PathLike[str], *, config: StoreConfig | None = None
    ) -> RevisionStore:
        """Open the history stored under ``root``.

        Raises:
            NotInitialized: If ``root`` holds no initialized history.
        """
        from .kv.disk import Disk

        config = config or StoreConfig()
        history = Path(root) / config.history_dir
        if not Disk.exists(str(history)):
            raise NotInitialized(str(root))
        db = Disk(str(history))
        if FORMAT_KEY not in db:
            db.close()
            raise NotInitialized(str(root))
        return cls(db, root, config=config)

    @classmethod
    def initialize(
        cls, root: str | os.PathLike[str], *, config: StoreConfig | None = None
    ) -> RevisionStore:
        """Create an empty history under ``root``.

        Raises:
            AlreadyInitialized: If a history already exists there.
        """
        from .kv.disk import Disk

        config = config or StoreConfig()
        history = Path(root) / config.history_dir
        history.mkdir(parents=True, exist_ok=True)
        db = Disk(str(history))
        if not db.cas(FORMAT_KEY, _to_bytes(FORMAT_VERSION), expected=None):
            db.close()
            raise AlreadyInitialized(str(root))
        logger.info("Initialized page history at %s", history)
        return cls(db, root, config=config)

    def close(self) -> None:
        self.db.close()

    # -- Read primitives --

    def head(self) -> str | None:
        """Current HEAD revision id, or None before the first commit."""
        raw = self.db.get(HEAD_KEY)
        if raw is None:
            return None
        return _from_bytes(raw)

    def lookup_revision(self, revision_id: str) -> Revision:
        """Load the revision with the full id ``revision_id``.

        Raises:
            NotFound: If no such revision is stored.
        """
        raw = self.db.get(COMMIT_KEY % revision_id)
        if raw is None:
            raise NotFound(revision_id)
        return Revision.from_bytes(revision_id, raw)

    def parent_of(self, revision: Revision) -> Revision | None:
        """The single parent of ``revision``, or None at the root."""
        if revision.parent is None:
            return None
        return self.lookup_revision(revision.parent)

    def read_tree(self, revision: Revision) -> dict[str, str]:
        """Page path -> blob id mapping captured by ``revision``."""
        raw = self.db.get(TREE_KEY % revision.tree)
        if raw is None:
            raise NotFound(revision.tree)
        return tree_from_bytes(raw)

    def read_path(self, revision: Revision, path: str) -> bytes | None:
        """Content of ``path`` as of ``revision``, or None if absent there."""
        blob = self.read_tree(revision).get(path)
        if blob is None:
            return None
        data = self.db.get(BLOB_KEY % blob)
        if data is None:
            raise NotFound(blob)
        return data

    def history(self, start: str | None = None) -> Iterator[Revision]:
        """Yield revisions from ``start`` (default HEAD) back to the root.

        Follows the single parent pointer of each revision, newest first.
        """
        current = start if start is not None else self.head()
        while current is not None:
            revision = self.lookup_revision(current)
            yield revision
            current = revision.parent

    # -- Write primitives --

    def snapshot_worktree(self) -> dict[str, bytes]:
        """Read every page file under the root, skipping the history dir.

        Symlinked files are read only when their target is a page under
        the root; links leading outside it or into the history dir are
        skipped. Raises ``OSError`` if a file cannot be read.
        """
        contents: dict[str, bytes] = {}
        root = str(self.root)
        real_root = self.root.resolve()
        for dirpath, dirnames, filenames in os.walk(root):
            if dirpath == root:
                dirnames[:] = [d for d in dirnames if d != self.config.history_dir]
            dirnames.sort()
            rel_dir = os.path.relpath(dirpath, root)
            for name in sorted(filenames):
                full = os.path.join(dirpath, name)
                if not os.path.isfile(full):
                    continue
                if os.path.islink(full) and not self._link_in_root(full, real_root):
                    logger.debug("Skipping symlink %s leading outside the pages", full)
                    continue
                rel = name if rel_dir == "." else f"{rel_dir}/{name}"
                with open(full, "rb") as f:
                    contents[rel.replace(os.sep, "/")] = f.read()
        return contents

    def _link_in_root(self, full: str, real_root: Path) -> bool:
        target = Path(full).resolve()
        if not target.is_relative_to(real_root):
            return False
        return target.relative_to(real_root).parts[:1] != (self.config.history_dir,)

    def commit(
        self,
        tree_contents: Mapping[str, bytes],
        parent: str | None,
        author: Signature,
        message: str,
    ) -> Revision:
        """Record ``tree_contents`` as a new revision on top of ``parent``.

        Blobs, the tree, and the revision are written in one batch before
        HEAD moves; HEAD then advances by compare-and-swap from ``parent``.
        Objects left behind by a failed swap are unreachable and harmless.

        Raises:
            CommitFailure: If the objects cannot be written, ``parent`` is
                unknown, or HEAD no longer equals ``parent``.
        """
        if parent is not None and (COMMIT_KEY % parent) not in self.db:
            raise CommitFailure(f"Parent revision {parent} does not exist", parent)

        batch: dict[str, bytes] = {}
        entries: dict[str, str] = {}
        for path, data in tree_contents.items():
            blob = blob_id(data)
            entries[path] = blob
            key = BLOB_KEY % blob
            if key not in batch and key not in self.db:
                batch[key] = data

        tree = tree_id(entries)
        if (TREE_KEY % tree) not in self.db:
            batch[TREE_KEY % tree] = tree_to_bytes(entries)

        timestamp = time.time()
        new_id = revision_id(parent, tree, author, timestamp, message)
        revision = Revision(
            id=new_id,
            parent=parent,
            tree=tree,
            author=author,
            timestamp=timestamp,
            message=message,
        )
        batch[COMMIT_KEY % new_id] = revision.to_bytes()

        expected = _to_bytes(parent) if parent is not None else None
        try:
            self.db.set_many(batch)
            logger.debug("Wrote %d history objects for %s", len(batch), new_id)
            swapped = self.db.cas(HEAD_KEY, _to_bytes(new_id), expected=expected)
        except Exception as exc:
            raise CommitFailure(f"Cannot record revision: {exc}", parent) from exc
        if not swapped:
            raise CommitFailure(
                f"HEAD changed from {parent}; revision {new_id} was not recorded",
                parent,
            )
        logger.info("Committed %s (parent %s): %s", new_id, parent, message)
        return revision
