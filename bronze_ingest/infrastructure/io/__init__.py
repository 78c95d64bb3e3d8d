"""Infrastructure I/O layer.

Streaming tabular reader for delimited text and spreadsheets, plus the
infrastructure exception hierarchy.

Architecture note:
- Avoid re-exporting symbols from here; import from the defining modules.
- Application DTOs live in bronze_ingest.application.models.
"""

from .exceptions import (
    DataParseError,
    DataSourceError,
    DataSourceIOError,
    DataSourceNotFoundError,
    IngestInfrastructureError,
    TableStoreError,
)
from .tabular_reader import TabularReader

__all__ = [
    "DataParseError",
    "DataSourceError",
    "DataSourceIOError",
    "DataSourceNotFoundError",
    "IngestInfrastructureError",
    "TableStoreError",
    "TabularReader",
]
