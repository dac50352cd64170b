"""Object database backends."""

from .base import ObjectDB
from .disk import Disk
from .memory import Memory

__all__ = ["Disk", "Memory", "ObjectDB"]
