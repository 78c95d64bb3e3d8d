"""Tests for the browse use case (bounded pages and streamed frames)."""

from unittest.mock import Mock

import pandas as pd
import pytest

from bronze_ingest.application.browse_use_case import BrowseUseCase
from bronze_ingest.application.models import BrowseRequest, FrameKind
from bronze_ingest.cancellation import CancellationToken
from bronze_ingest.infrastructure.io.exceptions import DataSourceNotFoundError


@pytest.fixture
def use_case(reader, null_logger):
    return BrowseUseCase(reader, null_logger)


@pytest.fixture
def orders_csv(write_csv):
    return write_csv(
        "orders.csv",
        ["id", "amount", "active"],
        [[i, i * 10, "yes"] for i in range(1, 12)],
    )


def _kinds(frames):
    return [frame.kind for frame in frames]


class TestBoundedBrowse:
    """Tests for BrowseUseCase.execute."""

    def test_window_response(self, use_case, orders_csv):
        """The response carries the window, the total and a summary message."""
        # Arrange
        request = BrowseRequest(
            source_id="orders.csv", max_rows=5, offset=5, assume_headers=True
        )

        # Act
        response = use_case.execute(request)

        # Assert
        assert response.success is True
        assert response.format == "csv"
        assert response.columns == ["id", "amount", "active"]
        assert response.row_count == 5
        assert response.total_rows == 12
        assert response.rows[0] == ["6", "60", "yes"]
        assert response.message == "CSV file processed successfully (delimiter: comma)"

    def test_forced_delimited_message(self, use_case, write_text):
        """Unknown extensions read as CSV say so."""
        write_text("export.dat", "a;b\n1;2\n")

        response = use_case.execute(
            BrowseRequest(source_id="export.dat", force_delimited=True)
        )

        assert response.message == "File processed as CSV (detected delimiter: semicolon)"

    def test_auto_detected_headers_message(self, use_case, write_text):
        """Detected headers are mentioned in the message."""
        write_text("typed.csv", "id,amount\n1,2\n")

        response = use_case.execute(
            BrowseRequest(source_id="typed.csv", auto_detect_headers=True)
        )

        assert response.has_headers is True
        assert response.message.endswith("(headers auto-detected)")

    def test_spreadsheet_message(self, use_case, write_workbook):
        """Workbooks report the sheet that was read."""
        write_workbook(
            "book.xlsx",
            {"Q1": pd.DataFrame({"id": [1]}), "Q2": pd.DataFrame({"id": [2]})},
        )

        response = use_case.execute(
            BrowseRequest(source_id="book.xlsx", sheet_name="Q2", assume_headers=True)
        )

        assert response.format == "excel"
        assert response.sheets == ["Q1", "Q2"]
        assert response.message == "Excel file processed successfully (sheet: Q2)"

    def test_parse_errors_are_returned_and_logged(
        self, reader, write_text, field_limit
    ):
        """Unparseable rows are listed in the response and warned about."""
        oversized = "a" * (field_limit + 1)
        write_text("broken.csv", f"id,name\n1,{oversized}\n2,b\n")
        logger = Mock()

        response = BrowseUseCase(reader, logger).execute(
            BrowseRequest(source_id="broken.csv", assume_headers=True)
        )

        assert [e.row_index for e in response.parse_errors] == [1]
        logger.warning.assert_called_once()

    def test_missing_source_raises(self, use_case):
        """Bounded reads propagate infrastructure errors."""
        with pytest.raises(DataSourceNotFoundError):
            use_case.execute(BrowseRequest(source_id="missing.csv"))

    def test_stream_request_rejected(self, use_case, orders_csv):
        """Streaming requests must use stream()."""
        with pytest.raises(ValueError, match="stream"):
            use_case.execute(BrowseRequest(source_id="orders.csv", stream=True))

    def test_list_sheets(self, use_case, write_workbook, write_text):
        """Sheets are listed for workbooks and empty for delimited text."""
        write_workbook("book.xlsx", {"A": pd.DataFrame({"x": [1]})})
        write_text("a.csv", "x\n")

        assert use_case.list_sheets("book.xlsx") == ["A"]
        assert use_case.list_sheets("a.csv") == []


class TestStreamingBrowse:
    """Tests for BrowseUseCase.stream."""

    def test_frame_sequence(self, use_case, orders_csv):
        """Metadata and header precede data; exactly one terminal frame ends it."""
        # Arrange
        request = BrowseRequest(
            source_id="orders.csv", assume_headers=True, stream=True, chunk_size=4
        )

        # Act
        frames = list(use_case.stream(request))

        # Assert
        assert _kinds(frames) == [
            FrameKind.METADATA,
            FrameKind.HEADER,
            FrameKind.DATA,
            FrameKind.DATA,
            FrameKind.DATA,
            FrameKind.COMPLETE,
        ]
        assert frames[0].payload["delimiter_name"] == "comma"
        assert frames[0].payload["format"] == "csv"
        assert frames[1].payload["columns"] == ["id", "amount", "active"]
        assert frames[2].payload["row_indices"] == [1, 2, 3, 4]
        assert frames[-1].payload["message"] == "Streamed 11 of 12 rows"
        assert sum(f.is_terminal for f in frames) == 1

    def test_frames_serialise_to_json_lines(self, use_case, orders_csv):
        """Each frame is one JSON document."""
        request = BrowseRequest(source_id="orders.csv", stream=True, max_rows=1)

        lines = [frame.to_json() for frame in use_case.stream(request)]

        assert all("\n" not in line for line in lines)
        assert '"kind":"complete"' in lines[-1]

    def test_missing_source_ends_with_error_frame(self, use_case):
        """Failures become a terminal error frame instead of raising."""
        frames = list(
            use_case.stream(BrowseRequest(source_id="missing.csv", stream=True))
        )

        assert _kinds(frames) == [FrameKind.ERROR]
        assert "missing.csv" in frames[0].payload["message"]

    def test_cancelled_token_ends_with_cancelled_frame(self, use_case, orders_csv):
        """A cancelled token stops the stream with a cancelled frame."""
        token = CancellationToken()
        token.cancel("client went away")
        request = BrowseRequest(
            source_id="orders.csv", assume_headers=True, stream=True, chunk_size=2
        )

        frames = list(use_case.stream(request, token))

        assert frames[-1].kind is FrameKind.CANCELLED
        assert frames[-1].payload == {"message": "client went away"}
        assert FrameKind.COMPLETE not in _kinds(frames)

    def test_default_deadline(self, reader, null_logger, orders_csv):
        """Without a token the stream expires after the configured timeout."""
        use_case = BrowseUseCase(reader, null_logger, stream_timeout=1e-9)
        request = BrowseRequest(
            source_id="orders.csv", assume_headers=True, stream=True, chunk_size=2
        )

        frames = list(use_case.stream(request))

        assert frames[-1].kind is FrameKind.CANCELLED
        assert frames[-1].payload["message"] == "operation timed out"

    def test_bounded_request_rejected(self, use_case, orders_csv):
        """stream() refuses requests without the stream flag."""
        with pytest.raises(ValueError, match="execute"):
            list(use_case.stream(BrowseRequest(source_id="orders.csv")))
