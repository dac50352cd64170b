"""Store configuration and environment overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Mapping

DEFAULT_HISTORY_DIR = ".history"

ENV_HISTORY_DIR = "PAGESTORE_HISTORY_DIR"
ENV_AUTHOR = "PAGESTORE_AUTHOR"
ENV_EMAIL = "PAGESTORE_EMAIL"


@dataclass(slots=True, frozen=True)
class StoreConfig:
    """Settings shared by every component of one page store.

    Attributes:
        history_dir: Name of the reserved directory under the store
            root that holds the revision history. Never a valid page
            path.
        default_author: Author name used when a write supplies none.
        default_email: Email attached to authors given only by name.
        file_mode: Permission bits for written page files.
        dir_mode: Permission bits for directories created on write.
        write_lock_expire: Seconds after which a write lock left by a
            crashed writer is released.
    """

    history_dir: str = DEFAULT_HISTORY_DIR
    default_author: str = "anonymous"
    default_email: str = "pagestore@localhost"
    file_mode: int = 0o644
    dir_mode: int = 0o755
    write_lock_expire: float = 60.0

    def __post_init__(self) -> None:
        name = self.history_dir
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            raise ValueError(f"history_dir must be a plain directory name, got {name!r}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> StoreConfig:
        """Build a config from defaults overridden by ``PAGESTORE_*`` variables."""
        env = os.environ if environ is None else environ
        config = cls()
        overrides: dict[str, str] = {}
        if env.get(ENV_HISTORY_DIR):
            overrides["history_dir"] = env[ENV_HISTORY_DIR]
        if env.get(ENV_AUTHOR):
            overrides["default_author"] = env[ENV_AUTHOR]
        if env.get(ENV_EMAIL):
            overrides["default_email"] = env[ENV_EMAIL]
        return replace(config, **overrides) if overrides else config
