"""History objects: signatures, revisions, and content addressing."""

from __future__ import annotations

import hashlib
import json
import re
from dataclasses import dataclass

BLOB_KEY = "__blob__%s"
TREE_KEY = "__tree__%s"
COMMIT_KEY = "__commit__%s"
HEAD_KEY = "__head__"
FORMAT_KEY = "__format__"
WRITE_LOCK_KEY = "__write_lock__"

FORMAT_VERSION = 1
ID_LENGTH = 40

_SIGNATURE_PATTERN = re.compile(r"^\s*(?P<name>[^<>]*?)\s*<(?P<email>[^<>]*)>\s*$")


def _to_bytes(obj) -> bytes:
    """Encode a JSON-safe Python object to canonical bytes."""
    return json.dumps(obj, sort_keys=True, separators=(",", ":")).encode()


def _from_bytes(raw: bytes):
    """Decode bytes to a Python object."""
    return json.loads(raw)


@dataclass(frozen=True)
class Signature:
    """Author identity recorded on a revision."""

    name: str
    email: str

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"

    @classmethod
    def parse(cls, value: str, default_email: str) -> Signature:
        """Parse ``"Name <email>"``; a bare name gets ``default_email``."""
        match = _SIGNATURE_PATTERN.match(value)
        if match:
            return cls(match.group("name"), match.group("email"))
        return cls(value.strip(), default_email)

    @classmethod
    def anonymous(
        cls,
        remote_addr: str,
        default_email: str,
        forwarded_for: str | None = None,
    ) -> Signature:
        """Identity for an unauthenticated web client.

        The port is dropped from ``remote_addr``. When a proxy on the
        loopback address forwarded the request, the forwarded address
        replaces it; otherwise both are kept, comma separated.
        """
        host = _strip_port(remote_addr)
        if forwarded_for:
            if host.startswith("127.0.0.1"):
                host = forwarded_for
            else:
                host = f"{host},{forwarded_for}"
        return cls(f"anonymous@{host}", default_email)


def _strip_port(addr: str) -> str:
    if addr.startswith("["):
        return addr[1:].split("]", 1)[0]
    if addr.count(":") == 1:
        return addr.split(":", 1)[0]
    return addr


@dataclass(frozen=True)
class Revision:
    """Immutable snapshot node on the history line."""

    id: str
    parent: str | None
    tree: str
    author: Signature
    timestamp: float
    message: str

    @property
    def short_id(self) -> str:
        return self.id[:7]

    def to_bytes(self) -> bytes:
        return _to_bytes(_revision_fields(
            self.parent, self.tree, self.author, self.timestamp, self.message
        ))

    @classmethod
    def from_bytes(cls, revision_id: str, raw: bytes) -> Revision:
        data = _from_bytes(raw)
        name, email = data["author"]
        return cls(
            id=revision_id,
            parent=data["parent"],
            tree=data["tree"],
            author=Signature(name, email),
            timestamp=data["timestamp"],
            message=data["message"],
        )


def _revision_fields(
    parent: str | None,
    tree: str,
    author: Signature,
    timestamp: float,
    message: str,
) -> dict:
    return {
        "parent": parent,
        "tree": tree,
        "author": [author.name, author.email],
        "timestamp": timestamp,
        "message": message,
    }


def blob_id(data: bytes) -> str:
    """Git-style content address of a blob (40 hex chars)."""
    h = hashlib.sha1()
    h.update(b"blob %d\x00" % len(data))
    h.update(data)
    return h.hexdigest()


def tree_to_bytes(entries: dict[str, str]) -> bytes:
    return _to_bytes(sorted(entries.items()))


def tree_from_bytes(raw: bytes) -> dict[str, str]:
    return {path: blob for path, blob in _from_bytes(raw)}


def tree_id(entries: dict[str, str]) -> str:
    """Content address of a snapshot tree."""
    return hashlib.sha1(b"tree\x00" + tree_to_bytes(entries)).hexdigest()


def revision_id(
    parent: str | None,
    tree: str,
    author: Signature,
    timestamp: float,
    message: str,
) -> str:
    """Content address of a revision.

    Covers the parent pointer, so identical trees written on different
    parents (or at different times) never share an id.
    """
    payload = _to_bytes(_revision_fields(parent, tree, author, timestamp, message))
    return hashlib.sha1(b"commit\x00" + payload).hexdigest()
