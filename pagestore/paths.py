"""Page path validation for store-root scoped access."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Final

from .config import DEFAULT_HISTORY_DIR
from .errors import InvalidPath

WINDOWS_ABSOLUTE_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[a-zA-Z]:[\\/]")


def normalize_page_path(candidate: str, history_dir: str = DEFAULT_HISTORY_DIR) -> str:
    """Return the canonical ``a/b/c.md`` form of a page path.

    A leading ``/`` is read as the store root, the way request paths
    arrive from the web layer. Raises ``InvalidPath`` for empty paths,
    NUL bytes, drive letters, ``..`` segments, and anything inside the
    reserved history directory.
    """
    if not isinstance(candidate, str):
        raise InvalidPath(repr(candidate), "page path must be a string")
    if "\x00" in candidate:
        raise InvalidPath(candidate, "invalid character in file path")
    normalized = candidate.replace("\\", "/")
    if WINDOWS_ABSOLUTE_PATTERN.match(normalized):
        raise InvalidPath(candidate, "drive-qualified paths are not allowed")

    parts = [part for part in normalized.split("/") if part not in ("", ".")]
    if not parts:
        raise InvalidPath(candidate, "path is empty")
    if any(part == ".." for part in parts):
        raise InvalidPath(candidate, "path traversal is blocked")
    if parts[0] == history_dir:
        raise InvalidPath(candidate, f"access of {history_dir} directory not allowed")
    return "/".join(parts)


def resolve_page_file(
    root: Path, candidate: str, history_dir: str = DEFAULT_HISTORY_DIR
) -> tuple[str, Path]:
    """Validate a page path and map it onto the filesystem under ``root``.

    Returns the normalized page path and the absolute file path. Symlinks
    that lead outside the root are rejected.
    """
    page_path = normalize_page_path(candidate, history_dir)
    base = root.resolve()
    resolved = (base / Path(*page_path.split("/"))).resolve(strict=False)
    if not resolved.is_relative_to(base):
        raise InvalidPath(candidate, "resolved path escapes the store root")
    if resolved.relative_to(base).parts[:1] == (history_dir,):
        raise InvalidPath(candidate, f"access of {history_dir} directory not allowed")
    return page_path, resolved
