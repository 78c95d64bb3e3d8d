"""Table store persisting each table as a CSV file plus a schema document.

Layout below the root directory::

    <database>/<table>.csv
    <database>/<table>.schema.json
"""

from __future__ import annotations

import json
from pathlib import Path
import threading
from typing import TYPE_CHECKING, override

import pandas as pd

from ...application.models import InsertResult
from ...application.ports.services import TableStorePort
from ...constants import TableDefaults
from ...domain.entities.schema import ColumnDescriptor, ColumnType
from ..io.exceptions import TableStoreError
from .memory_table_store import check_row, validate_columns

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from ...domain.services.mapping.conversion import CellValue

SCHEMA_NAME = "bronze-ingest.table-schema"
SCHEMA_VERSION = 1


class DirectoryTableStore(TableStorePort):
    pass

    def __init__(self, root: Path) -> None:
        super().__init__()
        self.root = Path(root)
        self._lock = threading.Lock()

    @override
    def exists(self, database: str, table: str) -> bool:
        return self._schema_path(database, table).is_file()

    @override
    def schema(self, database: str, table: str) -> list[ColumnDescriptor]:
        columns, _properties = self._load(database, table)
        return columns

    @override
    def create(
        self,
        database: str,
        table: str,
        columns: Sequence[ColumnDescriptor],
        *,
        properties: Mapping[str, str] | None = None,
    ) -> None:
        validate_columns(table, columns)
        schema_path = self._schema_path(database, table)
        payload = {
            "schema": SCHEMA_NAME,
            "schema_version": SCHEMA_VERSION,
            "database": database,
            "table": table,
            "columns": [
                {
                    "name": column.name,
                    "type": column.type.value,
                    "nullable": column.nullable,
                    "comment": TableDefaults.COLUMN_COMMENT,
                }
                for column in columns
            ],
            "properties": dict(properties or {}),
        }
        with self._lock:
            if schema_path.exists():
                raise TableStoreError(f"Table {database}.{table} already exists")
            try:
                schema_path.parent.mkdir(parents=True, exist_ok=True)
                schema_path.write_text(
                    json.dumps(payload, indent=2, ensure_ascii=False) + "\n",
                    encoding="utf-8",
                )
                pd.DataFrame(columns=[c.name for c in columns]).to_csv(
                    self._data_path(database, table), index=False
                )
            except OSError as e:
                raise TableStoreError(
                    f"Failed to create {database}.{table}: {e}"
                ) from e

    @override
    def insert(
        self,
        database: str,
        table: str,
        rows: Sequence[Mapping[str, CellValue]],
    ) -> InsertResult:
        columns, _properties = self._load(database, table)
        result = InsertResult()
        accepted: list[Mapping[str, CellValue]] = []
        for position, row in enumerate(rows):
            problem = check_row(columns, row)
            if problem is not None:
                result.errors.append((position, problem))
                continue
            accepted.append(row)
        if accepted:
            batch = pd.DataFrame(list(accepted), columns=[c.name for c in columns])
            with self._lock:
                try:
                    batch.to_csv(
                        self._data_path(database, table),
                        mode="a",
                        header=False,
                        index=False,
                    )
                except OSError as e:
                    raise TableStoreError(
                        f"Failed to append to {database}.{table}: {e}"
                    ) from e
        result.written = len(accepted)
        return result

    def read_frame(self, database: str, table: str) -> pd.DataFrame:
        columns, _properties = self._load(database, table)
        return pd.read_csv(
            self._data_path(database, table),
            dtype=str,
            keep_default_na=False,
            usecols=[c.name for c in columns],
        )

    def _load(
        self, database: str, table: str
    ) -> tuple[list[ColumnDescriptor], dict[str, str]]:
        schema_path = self._schema_path(database, table)
        if not schema_path.is_file():
            raise TableStoreError(f"Table {database}.{table} does not exist")
        try:
            payload = json.loads(schema_path.read_text(encoding="utf-8"))
            columns = [
                ColumnDescriptor(
                    name=str(entry["name"]),
                    type=ColumnType(entry.get("type", ColumnType.TEXT.value)),
                    nullable=bool(entry.get("nullable", True)),
                )
                for entry in payload["columns"]
            ]
        except (OSError, json.JSONDecodeError, KeyError, ValueError) as e:
            raise TableStoreError(
                f"Invalid schema for {database}.{table}: {e}"
            ) from e
        properties = {str(k): str(v) for k, v in payload.get("properties", {}).items()}
        return columns, properties

    def _schema_path(self, database: str, table: str) -> Path:
        return self.root / database / f"{table}.schema.json"

    def _data_path(self, database: str, table: str) -> Path:
        return self.root / database / f"{table}.csv"
