from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
import threading
from typing import TYPE_CHECKING, override

import pandas as pd

from ...application.models import InsertResult
from ...application.ports.services import TableStorePort
from ...domain.entities.schema import ColumnDescriptor, ColumnType
from ..io.exceptions import TableStoreError

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from ...domain.services.mapping.conversion import CellValue


def _empty_properties() -> dict[str, str]:
    return {}


@dataclass(slots=True)
class StoredTable:
    columns: list[ColumnDescriptor]
    frame: pd.DataFrame
    properties: dict[str, str] = field(default_factory=_empty_properties)

    @property
    def column_names(self) -> list[str]:
        return [column.name for column in self.columns]


def _accepts(column_type: ColumnType, value: CellValue) -> bool:
    if value is None:
        return True
    if column_type is ColumnType.BOOLEAN:
        return isinstance(value, bool)
    if column_type is ColumnType.NUMERIC:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if column_type is ColumnType.TEMPORAL:
        return isinstance(value, datetime)
    return isinstance(value, str)


def check_row(
    columns: Sequence[ColumnDescriptor], row: Mapping[str, CellValue]
) -> str | None:
    """Return why ``row`` cannot be stored under ``columns``, or None."""
    by_name = {column.name: column for column in columns}
    for name, value in row.items():
        column = by_name.get(name)
        if column is None:
            return f"Unknown column '{name}'"
        if value is None and not column.nullable:
            return f"Column '{name}' is not nullable"
        if not _accepts(column.type, value):
            return (
                f"Column '{name}' expects {column.type.value}, "
                f"got {type(value).__name__}"
            )
    return None


def validate_columns(table: str, columns: Sequence[ColumnDescriptor]) -> None:
    if not columns:
        raise TableStoreError(f"Cannot create {table} without columns")
    seen: set[str] = set()
    for column in columns:
        key = column.name.casefold()
        if key in seen:
            raise TableStoreError(f"Duplicate column '{column.name}' in {table}")
        seen.add(key)


def empty_frame(columns: Sequence[ColumnDescriptor]) -> pd.DataFrame:
    return pd.DataFrame({column.name: pd.Series(dtype="object") for column in columns})


class InMemoryTableStore(TableStorePort):
    """Table store holding each table as a pandas DataFrame."""

    def __init__(self) -> None:
        super().__init__()
        self._tables: dict[tuple[str, str], StoredTable] = {}
        self._lock = threading.Lock()

    @override
    def exists(self, database: str, table: str) -> bool:
        return (database, table) in self._tables

    @override
    def schema(self, database: str, table: str) -> list[ColumnDescriptor]:
        return list(self._get(database, table).columns)

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
        with self._lock:
            if (database, table) in self._tables:
                raise TableStoreError(f"Table {database}.{table} already exists")
            self._tables[(database, table)] = StoredTable(
                columns=list(columns),
                frame=empty_frame(columns),
                properties=dict(properties or {}),
            )

    @override
    def insert(
        self,
        database: str,
        table: str,
        rows: Sequence[Mapping[str, CellValue]],
    ) -> InsertResult:
        stored = self._get(database, table)
        result = InsertResult()
        accepted: list[Mapping[str, CellValue]] = []
        for position, row in enumerate(rows):
            problem = check_row(stored.columns, row)
            if problem is not None:
                result.errors.append((position, problem))
                continue
            accepted.append(row)
        if accepted:
            batch = pd.DataFrame(list(accepted), columns=stored.column_names, dtype="object")
            with self._lock:
                if stored.frame.empty:
                    stored.frame = batch
                else:
                    stored.frame = pd.concat([stored.frame, batch], ignore_index=True)
        result.written = len(accepted)
        return result

    def frame(self, database: str, table: str) -> pd.DataFrame:
        return self._get(database, table).frame.copy()

    def properties(self, database: str, table: str) -> dict[str, str]:
        return dict(self._get(database, table).properties)

    def _get(self, database: str, table: str) -> StoredTable:
        stored = self._tables.get((database, table))
        if stored is None:
            raise TableStoreError(f"Table {database}.{table} does not exist")
        return stored
