"""Library store implementations."""

from tagresolver.providers.library.memory_store import MemoryLibraryStore
from tagresolver.providers.library.sqlite_store import SQLiteLibraryStore

__all__ = ["MemoryLibraryStore", "SQLiteLibraryStore"]
