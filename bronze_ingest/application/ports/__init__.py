"""Port interfaces for external dependencies.

This module defines the protocols that the byte source, table store,
tabular reader and logger adapters implement. This enables dependency
injection and testing.
"""

from .services import ByteSourcePort, LoggerPort, TableStorePort, TabularReaderPort

__all__ = ["ByteSourcePort", "LoggerPort", "TableStorePort", "TabularReaderPort"]
