"""VersionResolver: read pages as of a historical revision."""

from __future__ import annotations

import logging

from .errors import InvalidVersionLength, PathNotFoundAtRevision, VersionNotFound
from .objects import ID_LENGTH, Revision
from .paths import normalize_page_path
from .revisions import RevisionStore

logger = logging.getLogger(__name__)

MIN_PREFIX = 4
MAX_PREFIX = ID_LENGTH


def _check_length(version_prefix: str) -> int:
    n = len(version_prefix)
    if n < MIN_PREFIX or n > MAX_PREFIX:
        raise InvalidVersionLength(version_prefix, MIN_PREFIX, MAX_PREFIX)
    return n


class VersionResolver:
    """Read path of the page store.

    Versions are named by a leading slice of a revision id. The search
    walks the history line from HEAD toward the root, so recent versions
    are found first; with unique ids at most one revision can match.
    """

    def __init__(self, store: RevisionStore) -> None:
        self.store = store

    def find_revision(self, version_prefix: str) -> Revision:
        """Return the newest revision whose id starts with ``version_prefix``.

        Raises:
            InvalidVersionLength: If the prefix is not 4 to 40 characters.
            VersionNotFound: If no revision on the line matches.
        """
        n = _check_length(version_prefix)
        walked = 0
        for revision in self.store.history():
            walked += 1
            if revision.id[:n] == version_prefix:
                logger.debug(
                    "Version %s resolved to %s after %d revisions",
                    version_prefix, revision.id, walked,
                )
                return revision
        raise VersionNotFound(version_prefix)

    def resolve(self, path: str, version_prefix: str) -> bytes:
        """Content of ``path`` in the revision matching ``version_prefix``.

        Raises:
            InvalidVersionLength: Before touching the history.
            InvalidPath: For unsafe page paths.
            VersionNotFound: If no revision matches the prefix.
            PathNotFoundAtRevision: If the revision matched but the page
                did not exist in it.
        """
        _check_length(version_prefix)
        page_path = normalize_page_path(path, self.store.config.history_dir)
        revision = self.find_revision(version_prefix)
        content = self.store.read_path(revision, page_path)
        if content is None:
            raise PathNotFoundAtRevision(page_path, revision.id)
        return content

    def read_current(self, path: str) -> bytes | None:
        """Content of ``path`` at HEAD, or None if there is none."""
        page_path = normalize_page_path(path, self.store.config.history_dir)
        head = self.store.head()
        if head is None:
            return None
        return self.store.read_path(self.store.lookup_revision(head), page_path)
