"""pagestore error types."""


class PageStoreError(Exception):
    """Base class for every error raised by pagestore."""


class InvalidPath(PageStoreError, ValueError):
    """Raised when a page path escapes the store root or names the
    reserved history directory. Rejected before any I/O.
    """

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid page path {path!r}: {reason}")


class IOFailure(PageStoreError):
    """Raised when writing a page to disk fails.

    No commit is attempted after an IOFailure; the original
    ``OSError`` is chained as ``__cause__``.
    """

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(f"Cannot write {path!r}: {message}")


class CommitFailure(PageStoreError):
    """Raised when the revision could not be recorded.

    The page bytes may already be on disk while HEAD is unchanged.
    Callers that want to retry should do so themselves.

    Attributes:
        parent: The HEAD the commit was built on.
    """

    def __init__(self, message: str, parent: str | None = None) -> None:
        self.parent = parent
        super().__init__(message)


class NotFound(PageStoreError, LookupError):
    """Raised when a full revision id is not present in the history."""

    def __init__(self, revision_id: str) -> None:
        self.revision_id = revision_id
        super().__init__(f"Revision {revision_id} not found")


class VersionNotFound(PageStoreError, LookupError):
    """Raised when no revision on the history line matches a prefix."""

    def __init__(self, prefix: str) -> None:
        self.prefix = prefix
        super().__init__(f"No revision matches version {prefix!r}")


class PathNotFoundAtRevision(PageStoreError, LookupError):
    """Raised when the revision exists but the page did not."""

    def __init__(self, path: str, revision: str) -> None:
        self.path = path
        self.revision = revision
        super().__init__(f"Can not find {path} of version {revision}")


class InvalidVersionLength(PageStoreError, ValueError):
    """Raised when a version prefix is shorter than 4 or longer than 40."""

    def __init__(self, prefix: str, minimum: int, maximum: int) -> None:
        self.prefix = prefix
        super().__init__(
            f"version length should be in range [{minimum}, {maximum}], "
            f"provided {len(prefix)}"
        )


class NotInitialized(PageStoreError):
    """Raised when opening a directory that holds no history."""

    def __init__(self, root: str) -> None:
        self.root = root
        super().__init__(
            f"No page history found at {root}; initialize it first"
        )


class AlreadyInitialized(PageStoreError):
    """Raised when initializing a directory that already holds history."""

    def __init__(self, root: str) -> None:
        self.root = root
        super().__init__(f"Page history already exists at {root}")
