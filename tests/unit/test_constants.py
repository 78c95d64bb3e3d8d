"""Unit tests for constants."""

from bronze_ingest.constants import (
    BooleanLiterals,
    ColumnKeywords,
    DateLayouts,
    Defaults,
    Delimiters,
    ErrorCodes,
    FileExtensions,
    NumericFormatting,
)


class TestDefaults:
    """Test suite for Defaults class."""

    def test_page_limits(self):
        """The default page fits under the cap."""
        assert Defaults.MAX_ROWS == 100
        assert Defaults.MAX_ROWS <= Defaults.MAX_ROWS_CAP

    def test_export_limits_positive(self):
        """Export limits are positive."""
        assert Defaults.MAX_ROW_ERRORS > 0
        assert Defaults.MAX_CONCURRENT_FILES > 0
        assert Defaults.BATCH_SIZE > 0

    def test_fuzzy_distance(self):
        assert Defaults.MAX_EDIT_DISTANCE == 2


class TestDelimiters:
    """Test suite for Delimiters class."""

    def test_candidate_order(self):
        """Candidates are listed in tie-break order."""
        assert Delimiters.CANDIDATES == (",", ";", "\t", "|")

    def test_every_candidate_has_a_name(self):
        assert set(Delimiters.NAMES) == set(Delimiters.CANDIDATES)


class TestKeywords:
    """Test suite for keyword tables."""

    def test_boolean_literals_disjoint(self):
        assert not BooleanLiterals.TRUE & BooleanLiterals.FALSE

    def test_keyword_tables_lowercase(self):
        """Keywords are matched against lowercased names."""
        for keywords in (
            ColumnKeywords.TEMPORAL,
            ColumnKeywords.NUMERIC,
            ColumnKeywords.BOOLEAN,
        ):
            assert all(keyword == keyword.lower() for keyword in keywords)

    def test_iso_layouts_come_first(self):
        """ISO layouts are tried before regional ones."""
        assert DateLayouts.ORDERED.index("%Y-%m-%d") < DateLayouts.ORDERED.index(
            "%m/%d/%Y"
        )


class TestFormats:
    """Test suite for file formats and codes."""

    def test_extensions_do_not_overlap(self):
        assert not FileExtensions.DELIMITED & FileExtensions.SPREADSHEET

    def test_numeric_keep_chars(self):
        assert NumericFormatting.KEEP_CHARS == frozenset("0123456789.-")

    def test_error_codes(self):
        assert ErrorCodes.CONVERSION_ERROR == "CONVERSION_ERROR"
        assert ErrorCodes.FILE_PROCESSING_ERROR == "FILE_PROCESSING_ERROR"
