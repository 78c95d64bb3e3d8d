from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console

from ..application.browse_use_case import BrowseUseCase
from ..application.export_use_case import (
    ExportDependencies,
    ExportSettings,
    ExportUseCase,
)
from ..config import IngestConfig
from .io.tabular_reader import TabularReader
from .logging.console_logger import ConsoleLogger
from .logging.null_logger import NullLogger
from .storage.directory_table_store import DirectoryTableStore
from .storage.local_source import LocalDirectorySource
from .storage.memory_table_store import InMemoryTableStore

if TYPE_CHECKING:
    from ..application.ports.services import (
        ByteSourcePort,
        LoggerPort,
        TableStorePort,
        TabularReaderPort,
    )


class DependencyContainer:
    """Lazily builds and caches the adapters behind the use cases.

    ``warehouse_root`` selects the directory-backed table store; without
    it tables live in memory for the lifetime of the container.
    """

    def __init__(
        self,
        config: IngestConfig | None = None,
        *,
        verbose: int = 0,
        console: Console | None = None,
        use_null_logger: bool = False,
        warehouse_root: Path | None = None,
    ) -> None:
        super().__init__()
        self.config = config or IngestConfig()
        self.verbose = verbose
        self.console = console or Console()
        self.use_null_logger = use_null_logger
        self.warehouse_root = Path(warehouse_root) if warehouse_root else None
        self._logger_instance: LoggerPort | None = None
        self._byte_source_instance: ByteSourcePort | None = None
        self._reader_instance: TabularReaderPort | None = None
        self._table_store_instance: TableStorePort | None = None

    def create_logger(self) -> LoggerPort:
        if self._logger_instance is None:
            if self.use_null_logger:
                self._logger_instance = NullLogger()
            else:
                self._logger_instance = ConsoleLogger(
                    console=self.console, verbosity=self.verbose
                )
        return self._logger_instance

    def create_byte_source(self) -> ByteSourcePort:
        if self._byte_source_instance is None:
            self._byte_source_instance = LocalDirectorySource(self.config.source_root)
        return self._byte_source_instance

    def create_reader(self) -> TabularReaderPort:
        if self._reader_instance is None:
            self._reader_instance = TabularReader(
                self.create_byte_source(),
                encoding=self.config.encoding,
                sniff_bytes=self.config.sniff_bytes,
                sniff_lines=self.config.sniff_lines,
            )
        return self._reader_instance

    def create_table_store(self) -> TableStorePort:
        if self._table_store_instance is None:
            if self.warehouse_root is not None:
                self._table_store_instance = DirectoryTableStore(self.warehouse_root)
            else:
                self._table_store_instance = InMemoryTableStore()
        return self._table_store_instance

    def create_browse_use_case(self) -> BrowseUseCase:
        return BrowseUseCase(
            self.create_reader(),
            self.create_logger(),
            stream_timeout=self.config.stream_timeout_seconds,
        )

    def create_export_use_case(self) -> ExportUseCase:
        dependencies = ExportDependencies(
            reader=self.create_reader(),
            table_store=self.create_table_store(),
            logger=self.create_logger(),
        )
        settings = ExportSettings(
            default_database=self.config.default_database,
            max_row_errors=self.config.max_row_errors,
            max_concurrent_files=self.config.max_concurrent_files,
            batch_size=self.config.batch_size,
            schema_sample_rows=self.config.schema_sample_rows,
        )
        return ExportUseCase(dependencies, settings)

    def reset_singletons(self) -> None:
        self._logger_instance = None
        self._byte_source_instance = None
        self._reader_instance = None
        self._table_store_instance = None

    def override_logger(self, logger: LoggerPort) -> None:
        self._logger_instance = logger

    def override_byte_source(self, byte_source: ByteSourcePort) -> None:
        self._byte_source_instance = byte_source
        self._reader_instance = None

    def override_table_store(self, table_store: TableStorePort) -> None:
        self._table_store_instance = table_store


def create_default_container(
    verbose: int = 0, config: IngestConfig | None = None
) -> DependencyContainer:
    return DependencyContainer(config, verbose=verbose)
