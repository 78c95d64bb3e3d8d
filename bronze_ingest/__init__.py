"""Bronze ingest package.

Turns heterogeneous tabular files (delimited text and spreadsheets) into
validated, schema-reconciled rows for a managed table store.

Features:
- Delimiter and header sniffing for undeclared inputs
- Bounded and streaming, cancellable tabular reads
- Fuzzy column mapping with typed value conversion
- Multi-file schema merging with explicit conflict reporting
- Bulk export with partial-failure tolerance
"""

from importlib.metadata import PackageNotFoundError, version

try:  # pragma: no cover
    __version__ = version("bronze-ingest")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"

from bronze_ingest.config import ConfigLoader, IngestConfig
from bronze_ingest.domain.entities.tabular import ParseOptions, TabularSource

__all__ = [
    "ConfigLoader",
    "IngestConfig",
    "ParseOptions",
    "TabularSource",
    "__version__",
]
