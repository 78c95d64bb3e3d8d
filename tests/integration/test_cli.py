"""Integration tests for CLI commands.

This module contains end-to-end integration tests for all CLI commands,
testing the complete workflow from command invocation to the table files
written below the warehouse directory.
"""

import json

import pandas as pd
import pytest
from click.testing import CliRunner

from bronze_ingest.cli import app
from bronze_ingest.constants import Defaults
from bronze_ingest.infrastructure.storage import DirectoryTableStore


@pytest.fixture
def runner():
    """Create a CLI runner."""
    return CliRunner()


@pytest.fixture
def orders_csv(write_csv):
    return write_csv(
        "orders.csv",
        ["id", "amount", "active"],
        [[i, i * 10, "yes"] for i in range(1, 12)],
    )


@pytest.fixture
def warehouse(tmp_path):
    return tmp_path / "warehouse"


def _export(runner, source_dir, warehouse, *args):
    return runner.invoke(
        app,
        [
            "export",
            *args,
            "--source-root",
            str(source_dir),
            "--warehouse",
            str(warehouse),
        ],
    )


@pytest.mark.integration
class TestBrowseCommand:
    """Integration tests for the browse command."""

    def test_browse_help(self, runner):
        """Test that browse help displays correctly."""
        result = runner.invoke(app, ["browse", "--help"])

        assert result.exit_code == 0
        assert "SOURCE_ID" in result.output
        assert "--max-rows" in result.output
        assert "--stream" in result.output

    def test_browse_window(self, runner, source_dir, orders_csv):
        """A window of rows is rendered as a table."""
        result = runner.invoke(
            app,
            [
                "browse",
                "orders.csv",
                "--source-root",
                str(source_dir),
                "--headers",
                "--max-rows",
                "5",
                "--offset",
                "5",
            ],
        )

        assert result.exit_code == 0, result.output
        assert "5 of 12 rows (offset 5, headers: yes)" in result.output
        assert "delimiter: comma" in result.output

    def test_browse_json(self, runner, source_dir, orders_csv):
        """--json prints the full response."""
        result = runner.invoke(
            app,
            [
                "browse",
                "orders.csv",
                "--source-root",
                str(source_dir),
                "--headers",
                "--max-rows",
                "5",
                "--offset",
                "5",
                "--json",
            ],
        )

        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        assert payload["columns"] == ["id", "amount", "active"]
        assert [row[0] for row in payload["rows"]] == ["6", "7", "8", "9", "10"]
        assert payload["total_rows"] == 12

    def test_browse_stream(self, runner, source_dir, orders_csv):
        """--stream prints one JSON frame per line."""
        result = runner.invoke(
            app,
            [
                "browse",
                "orders.csv",
                "--source-root",
                str(source_dir),
                "--headers",
                "--stream",
                "--chunk-size",
                "5",
            ],
        )

        assert result.exit_code == 0, result.output
        frames = [json.loads(line) for line in result.output.splitlines() if line]
        assert frames[0]["kind"] == "metadata"
        assert frames[1]["kind"] == "header"
        assert [f["kind"] for f in frames[2:-1]] == ["data", "data", "data"]
        assert frames[-1]["payload"]["rows_processed"] == 11

    def test_browse_workbook_sheet(self, runner, source_dir, write_workbook):
        """--sheet selects a worksheet."""
        write_workbook(
            "book.xlsx",
            {"Q1": pd.DataFrame({"id": [1]}), "Q2": pd.DataFrame({"id": [42]})},
        )

        result = runner.invoke(
            app,
            [
                "browse",
                "book.xlsx",
                "--source-root",
                str(source_dir),
                "--sheet",
                "Q2",
                "--headers",
                "--json",
            ],
        )

        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        assert payload["rows"] == [["42"]]
        assert payload["message"] == "Excel file processed successfully (sheet: Q2)"

    def test_browse_missing_source(self, runner, source_dir):
        """Unknown sources fail with a readable error."""
        result = runner.invoke(
            app, ["browse", "missing.csv", "--source-root", str(source_dir)]
        )

        assert result.exit_code == 1
        assert "Source not found" in result.output

    def test_browse_rejects_page_over_cap(self, runner, source_dir, orders_csv):
        """Page sizes above the cap are usage errors."""
        result = runner.invoke(
            app,
            [
                "browse",
                "orders.csv",
                "--source-root",
                str(source_dir),
                "--max-rows",
                str(Defaults.MAX_ROWS_CAP + 1),
            ],
        )

        assert result.exit_code == 2


@pytest.mark.integration
class TestSheetsCommand:
    """Integration tests for the sheets command."""

    def test_lists_sheets(self, runner, source_dir, write_workbook):
        write_workbook(
            "book.xlsx",
            {"Q1": pd.DataFrame({"id": [1]}), "Q2": pd.DataFrame({"id": [2]})},
        )

        result = runner.invoke(
            app, ["sheets", "book.xlsx", "--source-root", str(source_dir)]
        )

        assert result.exit_code == 0, result.output
        assert result.output.splitlines() == ["Q1", "Q2"]

    def test_delimited_source_has_no_sheets(self, runner, source_dir, orders_csv):
        result = runner.invoke(
            app, ["sheets", "orders.csv", "--source-root", str(source_dir)]
        )

        assert result.exit_code == 0
        assert "has no sheets" in result.output


@pytest.mark.integration
class TestExportCommand:
    """Integration tests for the export command."""

    def test_export_help(self, runner):
        """Test that export help displays correctly."""
        result = runner.invoke(app, ["export", "--help"])

        assert result.exit_code == 0
        assert "--table" in result.output
        assert "--resolution" in result.output
        assert "SOURCE::SHEET" in result.output

    def test_create_then_append(self, runner, source_dir, warehouse, orders_csv):
        """Rows land in the warehouse; appends add to the same table."""
        # Act
        created = _export(
            runner, source_dir, warehouse,
            "orders.csv", "--table", "orders", "--operation", "create", "--json",
        )
        appended = _export(
            runner, source_dir, warehouse, "orders.csv", "--table", "orders", "--json"
        )

        # Assert
        assert created.exit_code == 0, created.output
        assert json.loads(created.output)["rows_exported"] == 11
        assert appended.exit_code == 0, appended.output
        frame = DirectoryTableStore(warehouse).read_frame(Defaults.DATABASE, "orders")
        assert len(frame) == 22
        assert list(frame.columns) == ["active", "amount", "id"]

    def test_summary_output(self, runner, source_dir, warehouse, orders_csv):
        """Without --json the export prints a summary table."""
        result = _export(
            runner, source_dir, warehouse,
            "orders.csv", "--table", "orders", "--database", "lake",
        )

        assert result.exit_code == 0, result.output
        assert "Export to lake.orders" in result.output
        assert "Export completed. 11 rows exported, 0 rows failed" in result.output
        assert (warehouse / "lake" / "orders.schema.json").is_file()

    def test_export_sheet_selector(self, runner, source_dir, warehouse, write_workbook):
        """SOURCE::SHEET exports one worksheet."""
        write_workbook(
            "book.xlsx",
            {
                "Q1": pd.DataFrame({"name": ["a"]}),
                "Q2": pd.DataFrame({"name": ["b", "c"]}),
            },
        )

        result = _export(
            runner, source_dir, warehouse,
            "book.xlsx::Q2", "--table", "names", "--operation", "create", "--json",
        )

        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        assert payload["rows_exported"] == 2
        assert payload["files"][0]["sheet_name"] == "Q2"

    def test_create_existing_table_fails(
        self, runner, source_dir, warehouse, orders_csv
    ):
        """Create refuses to overwrite a table."""
        _export(
            runner, source_dir, warehouse,
            "orders.csv", "--table", "orders", "--operation", "create",
        )

        result = _export(
            runner, source_dir, warehouse,
            "orders.csv", "--table", "orders", "--operation", "create",
        )

        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_strict_mismatch_fails(self, runner, source_dir, warehouse, write_csv):
        """Strict resolution aborts on schema differences."""
        write_csv("a.csv", ["id"], [[1]])
        write_csv("b.csv", ["id", "extra"], [[2, "x"]])
        _export(
            runner, source_dir, warehouse,
            "a.csv", "--table", "t", "--operation", "create",
        )

        result = _export(
            runner, source_dir, warehouse, "b.csv", "--table", "t", "--resolution", "strict"
        )

        assert result.exit_code == 1
        assert "Schema mismatch detected in strict mode" in result.output

    def test_error_budget(self, runner, source_dir, warehouse, write_csv):
        """--max-errors bounds the tolerated row errors."""
        write_csv("bad.csv", ["amount"], [["n/a"], ["n/a"], ["1"]])

        tolerant = _export(
            runner, source_dir, warehouse,
            "bad.csv", "--table", "a", "--operation", "create", "--max-errors", "2",
        )
        strict = _export(
            runner, source_dir, warehouse,
            "bad.csv", "--table", "b", "--operation", "create", "--max-errors", "1",
        )

        assert tolerant.exit_code == 0, tolerant.output
        assert strict.exit_code == 1
        assert "Error budget exceeded" in strict.output

    def test_invalid_table_name(self, runner, source_dir, warehouse, orders_csv):
        """Blank table names are usage errors."""
        result = _export(runner, source_dir, warehouse, "orders.csv", "--table", " ")

        assert result.exit_code == 2
