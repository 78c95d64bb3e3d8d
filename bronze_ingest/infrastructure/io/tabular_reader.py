"""Bounded and streaming reads of tabular sources.

Both modes are driven by one scan over the source's records: the scan
resolves the header, applies the offset/limit window and pads or truncates
every row to the column count. Bounded reads collect the scan into a page;
streaming reads group it into chunks.
"""

from __future__ import annotations

import io
from contextlib import ExitStack
from dataclasses import dataclass
from itertools import chain
from typing import TYPE_CHECKING, override

from ...application.ports.services import TabularReaderPort
from ...cancellation import check_cancelled
from ...constants import Defaults
from ...domain.entities.tabular import (
    ChunkProgress,
    ParsedPage,
    ParseFailure,
    RowChunk,
    SourceFormat,
    StreamFinished,
    StreamHeader,
    StreamOpened,
    TabularSource,
)
from ...domain.services.sniffing import detect_headers
from .delimited import (
    RawRecord,
    buffered_stream,
    delimited_records,
    sniff_delimiter,
    text_encoding,
)
from .exceptions import DataParseError
from .spreadsheet import open_workbook, resolve_sheet, sheet_names, sheet_records

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

    from ...application.ports.services import ByteSourcePort
    from ...cancellation import CancellationToken
    from ...domain.entities.tabular import ParseOptions, StreamEvent


@dataclass(frozen=True, slots=True)
class _Row:
    index: int
    values: list[str]


_ScanItem = StreamOpened | StreamHeader | _Row | ParseFailure | StreamFinished


class _RecordCounter:
    pass

    def __init__(self) -> None:
        super().__init__()
        self.records = 0

    def wrap(
        self, items: Iterable[RawRecord | ParseFailure]
    ) -> Iterator[RawRecord | ParseFailure]:
        for item in items:
            if isinstance(item, RawRecord):
                self.records += 1
            yield item


def positional_columns(width: int) -> list[str]:
    return [f"column_{position}" for position in range(1, width + 1)]


def fit_row(values: Sequence[str], width: int) -> list[str]:
    """Pad with empty strings or truncate ``values`` to exactly ``width``."""
    row = list(values[:width])
    if len(row) < width:
        row.extend([""] * (width - len(row)))
    return row


class TabularReader(TabularReaderPort):
    """Read delimited and spreadsheet sources fetched from a byte source.

    Example:
        >>> reader = TabularReader(LocalDirectorySource(Path("data")))
        >>> source = reader.describe("orders.csv")
        >>> page = reader.read_page(source, ParseOptions(max_rows=5, assume_headers=True))
        >>> page.columns
        ['id', 'amount', 'active']
    """

    def __init__(
        self,
        byte_source: ByteSourcePort,
        *,
        encoding: str = Defaults.ENCODING,
        sniff_bytes: int = Defaults.SNIFF_BYTES,
        sniff_lines: int = Defaults.SNIFF_LINES,
    ) -> None:
        super().__init__()
        self.byte_source = byte_source
        self.encoding = encoding
        self.sniff_bytes = sniff_bytes
        self.sniff_lines = sniff_lines

    @override
    def describe(
        self,
        source_id: str,
        *,
        sheet_name: str | None = None,
        force_delimited: bool = False,
    ) -> TabularSource:
        """Describe ``source_id`` without opening it.

        Raises:
            DataParseError: If the format is not recognised and
                ``force_delimited`` is not set.
            DataSourceNotFoundError: If the byte source has no such object.
        """
        try:
            return TabularSource.describe(
                source_id,
                byte_length=self.byte_source.size(source_id),
                sheet_name=sheet_name,
                force_delimited=force_delimited,
            )
        except ValueError as e:
            raise DataParseError(f"{source_id}: {e}") from e

    @override
    def list_sheets(self, source: TabularSource) -> list[str]:
        if source.format is not SourceFormat.SPREADSHEET:
            return []
        with self.byte_source.fetch(source.identifier) as handle:
            return sheet_names(open_workbook(handle, identifier=source.identifier))

    @override
    def read_page(
        self,
        source: TabularSource,
        options: ParseOptions,
        token: CancellationToken | None = None,
    ) -> ParsedPage:
        """Read one window of rows plus the total record count."""
        page = ParsedPage(columns=[], offset=options.offset, format=source.format)
        for item in self._scan(source, options, token, drain=True):
            if isinstance(item, _Row):
                page.rows.append(item.values)
            elif isinstance(item, ParseFailure):
                page.parse_errors.append(item)
            elif isinstance(item, StreamOpened):
                page.delimiter = item.delimiter
                page.sheet_name = item.sheet_name
                page.sheets = list(item.sheets)
            elif isinstance(item, StreamHeader):
                page.columns = item.columns
                page.has_headers = item.has_headers
            else:
                page.total_rows = item.total_records
        return page

    @override
    def stream(
        self,
        source: TabularSource,
        options: ParseOptions,
        token: CancellationToken | None = None,
    ) -> Iterator[StreamEvent]:
        """Yield metadata, the header, row chunks and a completion event.

        The sequence is finite and cannot be restarted. Closing the
        generator releases the byte stream immediately; a cancelled token
        raises OperationCancelledError at the next chunk boundary.
        """
        chunk = RowChunk()
        processed = 0
        current_row = 0
        scan = self._scan(source, options, token, drain=False)
        try:
            for item in scan:
                if isinstance(item, _Row):
                    chunk.rows.append(item.values)
                    chunk.row_indices.append(item.index)
                    processed += 1
                    current_row = item.index
                    if len(chunk.rows) >= options.chunk_size:
                        chunk.progress = ChunkProgress(processed, current_row)
                        check_cancelled(token)
                        yield chunk
                        chunk = RowChunk()
                elif isinstance(item, ParseFailure):
                    chunk.parse_errors.append(item)
                    current_row = item.row_index
                elif isinstance(item, StreamFinished):
                    if chunk.rows or chunk.parse_errors:
                        chunk.progress = ChunkProgress(processed, current_row)
                        check_cancelled(token)
                        yield chunk
                    yield item
                else:
                    yield item
        finally:
            scan.close()

    def _scan(
        self,
        source: TabularSource,
        options: ParseOptions,
        token: CancellationToken | None,
        *,
        drain: bool,
    ) -> Iterator[_ScanItem]:
        with ExitStack() as stack:
            handle = stack.enter_context(self.byte_source.fetch(source.identifier))
            counter = _RecordCounter()
            if source.format is SourceFormat.SPREADSHEET:
                workbook = stack.enter_context(
                    open_workbook(handle, identifier=source.identifier)
                )
                sheet = resolve_sheet(
                    workbook, source.sheet_name, identifier=source.identifier
                )
                yield StreamOpened(
                    format=source.format,
                    sheet_name=sheet,
                    sheets=sheet_names(workbook),
                )
                records = counter.wrap(
                    sheet_records(workbook, sheet, identifier=source.identifier)
                )
            else:
                buffered = stack.enter_context(
                    buffered_stream(handle, sniff_bytes=self.sniff_bytes)
                )
                delimiter = sniff_delimiter(
                    buffered,
                    sniff_bytes=self.sniff_bytes,
                    sniff_lines=self.sniff_lines,
                    encoding=self.encoding,
                )
                yield StreamOpened(format=source.format, delimiter=delimiter)
                text = stack.enter_context(
                    io.TextIOWrapper(
                        buffered,
                        encoding=text_encoding(self.encoding),
                        errors="replace",
                        newline="",
                    )
                )
                records = counter.wrap(delimited_records(text, delimiter))
            yield from self._window(records, counter, options, token, drain=drain)

    def _window(
        self,
        records: Iterator[RawRecord | ParseFailure],
        counter: _RecordCounter,
        options: ParseOptions,
        token: CancellationToken | None,
        *,
        drain: bool,
    ) -> Iterator[_ScanItem]:
        detect = options.auto_detect_headers and not options.assume_headers
        lookahead: list[RawRecord] = []
        early_failures: list[ParseFailure] = []
        for item in records:
            if isinstance(item, ParseFailure):
                early_failures.append(item)
                continue
            lookahead.append(item)
            if len(lookahead) >= (2 if detect else 1):
                break

        has_headers = options.assume_headers
        if detect and lookahead:
            second = lookahead[1].values if len(lookahead) > 1 else None
            has_headers = detect_headers(lookahead[0].values, second)
        if not lookahead:
            columns: list[str] = []
        elif has_headers:
            columns = list(lookahead.pop(0).values)
        else:
            columns = positional_columns(len(lookahead[0].values))
        yield StreamHeader(columns=columns, has_headers=has_headers)
        yield from early_failures

        width = len(columns)
        skipped = 0
        emitted = 0
        scanned = 0
        for item in chain(lookahead, records):
            scanned += 1
            if scanned % options.chunk_size == 0:
                check_cancelled(token)
            if options.max_rows is not None and emitted >= options.max_rows:
                if not drain:
                    break
                continue
            if isinstance(item, ParseFailure):
                yield item
                continue
            if skipped < options.offset:
                skipped += 1
                continue
            yield _Row(index=item.index, values=fit_row(item.values, width))
            emitted += 1
        yield StreamFinished(total_records=counter.records, rows_processed=emitted)
