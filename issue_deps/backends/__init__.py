"""Backend implementations."""

from issue_deps.backends.memory import MemoryBackend
from issue_deps.backends.sqlite import SQLiteBackend

__all__ = ["MemoryBackend", "SQLiteBackend"]
