"""WriteCoordinator: persist a page and record it as one revision."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from .errors import CommitFailure, IOFailure
from .objects import Revision, Signature
from .paths import resolve_page_file
from .revisions import RevisionStore

logger = logging.getLogger(__name__)


class WriteCoordinator:
    """Write path of the page store.

    Every successful ``save`` writes the page file, snapshots the whole
    working tree, and advances HEAD by exactly one revision. Saves on
    the same ``RevisionStore`` are serialized by its ``write_lock``.
    """

    def __init__(self, store: RevisionStore) -> None:
        self.store = store

    def save(
        self,
        path: str,
        content: bytes | str,
        message: str | None = None,
        author: Signature | str | None = None,
    ) -> Revision:
        """Write ``content`` to ``path`` and commit the working tree.

        Args:
            path: Page path relative to the store root.
            content: New page content; ``str`` is encoded as UTF-8.
            message: Revision message (default ``"update <path>"``).
            author: A ``Signature`` or a ``"Name <email>"`` string.
                Defaults to the configured anonymous author.

        Returns:
            The new HEAD revision.

        Raises:
            InvalidPath: Before any I/O, for unsafe paths.
            IOFailure: If the file cannot be written. Nothing is committed.
            CommitFailure: If the revision cannot be recorded. The file
                stays written while HEAD is unchanged.
        """
        config = self.store.config
        page_path, target = resolve_page_file(self.store.root, path, config.history_dir)
        data = content.encode("utf-8") if isinstance(content, str) else content
        signature = self._signature(author)
        if message is None:
            message = f"update {page_path}"

        with self.store.write_lock:
            self._write_file(page_path, target, data)
            parent = self.store.head()
            try:
                tree_contents = self.store.snapshot_worktree()
            except OSError as exc:
                logger.warning("Cannot stage working tree for %s: %s", page_path, exc)
                raise CommitFailure(f"Cannot stage working tree: {exc}", parent) from exc
            try:
                revision = self.store.commit(tree_contents, parent, signature, message)
            except CommitFailure as exc:
                logger.warning("Commit of %s failed: %s", page_path, exc)
                raise
        logger.debug("Saved %s as %s", page_path, revision.id)
        return revision

    def _signature(self, author: Signature | str | None) -> Signature:
        config = self.store.config
        if author is None:
            return Signature(config.default_author, config.default_email)
        if isinstance(author, Signature):
            return author
        return Signature.parse(author, config.default_email)

    def _write_file(self, page_path: str, target: Path, data: bytes) -> None:
        """Replace ``target`` with ``data`` via a temporary sibling file."""
        config = self.store.config
        tmp_name = None
        try:
            os.makedirs(target.parent, mode=config.dir_mode, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=target.parent, prefix=f".{target.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.chmod(tmp_name, config.file_mode)
            os.replace(tmp_name, target)
        except OSError as exc:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            logger.warning("Cannot write %s: %s", page_path, exc)
            raise IOFailure(page_path, str(exc)) from exc
