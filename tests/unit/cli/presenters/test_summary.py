"""Unit tests for the page and export summary presenters."""

from io import StringIO

import pytest
from rich.console import Console

from bronze_ingest.application.models import (
    BrowseResponse,
    ConflictInfo,
    ExportResponse,
    FileOutcomeInfo,
    MismatchInfo,
    ParseErrorInfo,
    RowErrorInfo,
)
from bronze_ingest.cli.presenters import ExportSummaryPresenter, PagePresenter
from bronze_ingest.cli.presenters.summary import MAX_ERROR_ROWS


@pytest.fixture
def console():
    """Create a console with StringIO for capturing output."""
    return Console(file=StringIO(), force_terminal=False, width=160)


def _output(console):
    return console.file.getvalue()


def _row_error(index):
    return RowErrorInfo(
        row_index=index,
        column="amount",
        error_code="CONVERSION_ERROR",
        raw_value="n/a",
        remediation="Check data format or set to NULL",
        message=f"Cannot convert 'n/a' (row {index})",
        source_id="orders.csv",
    )


class TestPagePresenter:
    """Test suite for PagePresenter."""

    @pytest.fixture
    def response(self):
        return BrowseResponse(
            message="CSV file processed successfully (delimiter: comma)",
            source_id="orders.csv",
            format="csv",
            delimiter=",",
            columns=["id", "amount"],
            rows=[["6", "60"], ["7", "70"]],
            total_rows=12,
            row_count=2,
            offset=5,
            has_headers=True,
            parse_errors=[ParseErrorInfo(row_index=9, message="line 10: bad quote")],
        )

    def test_renders_rows_with_positions(self, console, response):
        """Rows are numbered from the offset."""
        PagePresenter(console).present(response)

        output = _output(console)
        assert "amount" in output
        assert "60" in output
        assert " 6 " in output
        assert "2 of 12 rows (offset 5, headers: yes)" in output

    def test_reports_parse_errors_and_message(self, console, response):
        """Parse failures and the summary message are printed."""
        PagePresenter(console).present(response)

        output = _output(console)
        assert "Row 9: line 10: bad quote" in output
        assert "delimiter: comma" in output

    def test_lists_sheets_of_workbooks(self, console):
        """Workbooks with several sheets list them."""
        response = BrowseResponse(
            source_id="book.xlsx",
            format="excel",
            sheet_name="Q1",
            sheets=["Q1", "Q2"],
            columns=["id"],
        )

        PagePresenter(console).present(response)

        output = _output(console)
        assert "book.xlsx [Q1]" in output
        assert "Sheets: Q1, Q2" in output

    def test_markup_in_values_is_not_interpreted(self, console):
        """Cell text that looks like markup is printed literally."""
        response = BrowseResponse(
            source_id="a.csv", format="csv", columns=["note"], rows=[["[red]x"]]
        )

        PagePresenter(console).present(response)

        assert "[red]x" in _output(console)


class TestExportSummaryPresenter:
    """Test suite for ExportSummaryPresenter."""

    @pytest.fixture
    def response(self):
        return ExportResponse(
            success=True,
            state="completed",
            message="Export completed. 90 rows exported, 10 rows failed",
            database="bronze_warehouse",
            table_name="orders",
            files_processed=2,
            rows_exported=90,
            rows_failed=10,
            files=[
                FileOutcomeInfo(
                    source_id="orders.csv",
                    status="written",
                    rows_written=90,
                    rows_failed=10,
                ),
                FileOutcomeInfo(
                    source_id="missing.csv", status="failed", error="Source not found"
                ),
            ],
            row_errors=[_row_error(10)],
            error_summary={"CONVERSION_ERROR": 10},
        )

    def test_files_table_and_totals(self, console, response):
        """Each file is listed with its counts and a total row."""
        ExportSummaryPresenter(console).present(response)

        output = _output(console)
        assert "Export to bronze_warehouse.orders" in output
        assert "orders.csv" in output
        assert "Source not found" in output
        assert "Total" in output
        assert "Export completed. 90 rows exported, 10 rows failed" in output

    def test_error_summary(self, console, response):
        """Errors are grouped by code with row details."""
        ExportSummaryPresenter(console).present(response)

        output = _output(console)
        assert "Errors by code:" in output
        assert "CONVERSION_ERROR: 10" in output
        assert "orders.csv row 10, column amount" in output

    def test_error_rows_are_capped(self, console, response):
        """Only the first errors are listed in detail."""
        response.row_errors = [_row_error(i) for i in range(MAX_ERROR_ROWS + 5)]

        ExportSummaryPresenter(console).present(response)

        assert "... and 5 more" in _output(console)

    def test_conflicts_and_mismatches(self, console, response):
        """Schema conflicts and table mismatches get their own sections."""
        response.conflicts = [
            ConflictInfo(
                column="Email",
                kind="case_difference",
                resolution="use_first_occurrence",
                files=["a.csv", "b.csv"],
                spellings=["Email", "EMAIL"],
            )
        ]
        response.mismatches = [
            MismatchInfo(
                column="amount",
                kind="type_difference",
                severity="warning",
                source_type="numeric",
                target_type="text",
            )
        ]

        ExportSummaryPresenter(console).present(response)

        output = _output(console)
        assert "Schema conflicts" in output
        assert "Email, EMAIL" in output
        assert "Table mismatches:" in output
        assert "amount: type_difference (numeric -> text)" in output

    def test_aborted_status(self, console):
        """Aborted exports print their message as a failure."""
        response = ExportResponse(
            success=False,
            state="aborted",
            message="Schema mismatch detected in strict mode",
            database="db",
            table_name="t",
        )

        ExportSummaryPresenter(console).present(response)

        output = _output(console)
        assert "✗ Schema mismatch detected in strict mode" in output
        assert "Errors by code:" not in output
