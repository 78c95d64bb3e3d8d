"""Storage adapters: the local byte source and the table stores."""

from .directory_table_store import DirectoryTableStore
from .local_source import LocalDirectorySource
from .memory_table_store import InMemoryTableStore

__all__ = ["DirectoryTableStore", "InMemoryTableStore", "LocalDirectorySource"]
