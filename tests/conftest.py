from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
import csv
from pathlib import Path

import pandas as pd
import pytest

from bronze_ingest.infrastructure.io.tabular_reader import TabularReader
from bronze_ingest.infrastructure.logging import NullLogger
from bronze_ingest.infrastructure.storage import (
    InMemoryTableStore,
    LocalDirectorySource,
)

WriteText = Callable[[str, str], Path]
WriteRows = Callable[..., Path]


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep BRONZE_* variables of the developer's shell out of the tests."""
    for name in (
        "BRONZE_SOURCE_ROOT",
        "BRONZE_DEFAULT_DB",
        "BRONZE_CHUNK_SIZE",
        "BRONZE_MAX_ROW_ERRORS",
        "BRONZE_MAX_CONCURRENT_FILES",
        "BRONZE_BATCH_SIZE",
        "BRONZE_ENCODING",
        "BRONZE_STREAM_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "sources"
    directory.mkdir()
    return directory


@pytest.fixture
def byte_source(source_dir: Path) -> LocalDirectorySource:
    return LocalDirectorySource(source_dir)


@pytest.fixture
def reader(byte_source: LocalDirectorySource) -> TabularReader:
    return TabularReader(byte_source)


@pytest.fixture
def table_store() -> InMemoryTableStore:
    return InMemoryTableStore()


@pytest.fixture
def null_logger() -> NullLogger:
    return NullLogger()


@pytest.fixture
def write_text(source_dir: Path) -> WriteText:
    """Write raw text into the source directory and return its path."""

    def _write(name: str, content: str) -> Path:
        path = source_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def write_csv(write_text: WriteText) -> WriteRows:
    """Write a header and rows as delimited text."""

    def _write(
        name: str,
        header: Sequence[str],
        rows: Sequence[Sequence[object]],
        *,
        delimiter: str = ",",
    ) -> Path:
        lines = [delimiter.join(header)]
        lines.extend(delimiter.join(str(value) for value in row) for row in rows)
        return write_text(name, "\n".join(lines) + "\n")

    return _write


@pytest.fixture
def write_workbook(source_dir: Path) -> Callable[[str, dict[str, pd.DataFrame]], Path]:
    """Write one sheet per frame with openpyxl."""

    def _write(name: str, sheets: dict[str, pd.DataFrame]) -> Path:
        path = source_dir / name
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            for sheet_name, frame in sheets.items():
                frame.to_excel(writer, sheet_name=sheet_name, index=False)
        return path

    return _write


@pytest.fixture
def field_limit() -> Iterator[int]:
    """Lower the csv field size limit so oversized fields fail to parse."""
    limit = 32
    previous = csv.field_size_limit(limit)
    yield limit
    csv.field_size_limit(previous)
