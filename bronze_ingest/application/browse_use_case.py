"""Browse use case.

Serves bounded pages and streamed frames for a single tabular source. A
stream always ends with exactly one terminal frame: ``complete``,
``error`` or ``cancelled``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..cancellation import CancellationToken, OperationCancelledError
from ..constants import Defaults
from ..domain.entities.tabular import (
    RowChunk,
    SourceFormat,
    StreamFinished,
    StreamHeader,
    StreamOpened,
)
from ..domain.services.sniffing import delimiter_name
from ..infrastructure.io.exceptions import IngestInfrastructureError
from .models import BrowseResponse, Frame, FrameKind, ParseErrorInfo

if TYPE_CHECKING:
    from collections.abc import Iterator

    from ..domain.entities.tabular import ParsedPage
    from .models import BrowseRequest
    from .ports.services import LoggerPort, TabularReaderPort


def page_message(
    page: ParsedPage, *, force_delimited: bool = False, auto_detected: bool = False
) -> str:
    if page.format is SourceFormat.SPREADSHEET:
        message = f"Excel file processed successfully (sheet: {page.sheet_name})"
    elif force_delimited:
        message = (
            f"File processed as CSV (detected delimiter: {delimiter_name(page.delimiter)})"
        )
    else:
        message = (
            f"CSV file processed successfully (delimiter: {delimiter_name(page.delimiter)})"
        )
    if auto_detected and page.has_headers:
        message += " (headers auto-detected)"
    return message


class BrowseUseCase:
    pass

    def __init__(
        self,
        reader: TabularReaderPort,
        logger: LoggerPort,
        *,
        stream_timeout: float = Defaults.STREAM_TIMEOUT_SECONDS,
    ) -> None:
        super().__init__()
        self._reader = reader
        self.logger = logger
        self.stream_timeout = stream_timeout

    def execute(
        self, request: BrowseRequest, token: CancellationToken | None = None
    ) -> BrowseResponse:
        """Read one window of ``request.source_id``.

        Raises:
            ValueError: If the request asks for streaming.
            IngestInfrastructureError: If the source cannot be fetched or decoded.
        """
        if request.stream:
            raise ValueError("Streaming requests must go through stream()")
        source = self._reader.describe(
            request.source_id,
            sheet_name=request.sheet_name,
            force_delimited=request.force_delimited,
        )
        self.logger.verbose(f"Browsing {source.identifier} ({source.format.value})")
        page = self._reader.read_page(source, request.to_options(), token)
        if page.parse_errors:
            self.logger.warning(
                f"{request.source_id}: {len(page.parse_errors)} unparseable row(s)"
            )
        return BrowseResponse.from_page(
            request.source_id,
            page,
            message=page_message(
                page,
                force_delimited=request.force_delimited,
                auto_detected=request.auto_detect_headers,
            ),
        )

    def list_sheets(self, source_id: str, *, force_delimited: bool = False) -> list[str]:
        source = self._reader.describe(source_id, force_delimited=force_delimited)
        return self._reader.list_sheets(source)

    def stream(
        self, request: BrowseRequest, token: CancellationToken | None = None
    ) -> Iterator[Frame]:
        """Yield metadata, header, data and one terminal frame.

        Without a token, the stream gets one that expires after
        ``stream_timeout`` seconds. Closing the generator closes the
        underlying read.
        """
        if not request.stream:
            raise ValueError("Bounded requests must go through execute()")
        if token is None:
            token = CancellationToken(timeout=self.stream_timeout)
        options = request.to_options()
        events = None
        try:
            source = self._reader.describe(
                request.source_id,
                sheet_name=request.sheet_name,
                force_delimited=request.force_delimited,
            )
            events = self._reader.stream(source, options, token)
            for event in events:
                if isinstance(event, StreamOpened):
                    yield Frame(
                        kind=FrameKind.METADATA,
                        payload={
                            "format": event.format.tag,
                            "source_id": request.source_id,
                            "sheet_name": event.sheet_name,
                            "sheets": list(event.sheets),
                            "delimiter": event.delimiter,
                            "delimiter_name": (
                                delimiter_name(event.delimiter)
                                if event.delimiter is not None
                                else None
                            ),
                            "offset": options.offset,
                            "max_rows": options.max_rows,
                            "chunk_size": options.chunk_size,
                        },
                    )
                elif isinstance(event, StreamHeader):
                    yield Frame(
                        kind=FrameKind.HEADER,
                        payload={
                            "columns": event.columns,
                            "has_headers": event.has_headers,
                        },
                    )
                elif isinstance(event, RowChunk):
                    yield Frame(
                        kind=FrameKind.DATA,
                        payload={
                            "rows": event.rows,
                            "row_indices": event.row_indices,
                            "processed": event.progress.processed,
                            "current_row": event.progress.current_row,
                            "parse_errors": [
                                ParseErrorInfo.from_failure(f).model_dump()
                                for f in event.parse_errors
                            ],
                        },
                    )
                elif isinstance(event, StreamFinished):
                    yield Frame(
                        kind=FrameKind.COMPLETE,
                        payload={
                            "total_rows": event.total_records,
                            "rows_processed": event.rows_processed,
                            "message": (
                                f"Streamed {event.rows_processed} of "
                                f"{event.total_records} rows"
                            ),
                        },
                    )
        except OperationCancelledError as e:
            self.logger.warning(f"Stream of {request.source_id} stopped: {e.reason}")
            yield Frame(kind=FrameKind.CANCELLED, payload={"message": e.reason})
        except IngestInfrastructureError as e:
            self.logger.error(f"Stream of {request.source_id} failed: {e}")
            yield Frame(kind=FrameKind.ERROR, payload={"message": str(e)})
        finally:
            close = getattr(events, "close", None)
            if close is not None:
                close()
