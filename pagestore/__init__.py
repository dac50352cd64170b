"""pagestore: Versioned markdown page store."""

from .config import StoreConfig
from .errors import (
    AlreadyInitialized,
    CommitFailure,
    InvalidPath,
    InvalidVersionLength,
    IOFailure,
    NotFound,
    NotInitialized,
    PageStoreError,
    PathNotFoundAtRevision,
    VersionNotFound,
)
from .objects import Revision, Signature
from .resolver import VersionResolver
from .revisions import RevisionStore
from .store import PageStore, store
from .writer import WriteCoordinator

__all__ = [
    "AlreadyInitialized",
    "CommitFailure",
    "IOFailure",
    "InvalidPath",
    "InvalidVersionLength",
    "NotFound",
    "NotInitialized",
    "PageStore",
    "PageStoreError",
    "PathNotFoundAtRevision",
    "Revision",
    "RevisionStore",
    "Signature",
    "StoreConfig",
    "VersionNotFound",
    "VersionResolver",
    "WriteCoordinator",
    "store",
]
