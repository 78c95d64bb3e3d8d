from typing import ClassVar


class Defaults:
    DATABASE = "bronze_warehouse"
    MAX_ROWS = 100
    MAX_ROWS_CAP = 10000
    CHUNK_SIZE = 1000
    MAX_ROW_ERRORS = 1000
    MAX_CONCURRENT_FILES = 3
    BATCH_SIZE = 1000
    SNIFF_LINES = 5
    SNIFF_BYTES = 65536
    ENCODING = "utf-8"
    SCHEMA_SAMPLE_ROWS = 100
    STREAM_TIMEOUT_SECONDS = 300.0
    MAX_EDIT_DISTANCE = 2
    CONFIG_FILE = "bronze_ingest.toml"


class Delimiters:
    COMMA = ","
    SEMICOLON = ";"
    TAB = "\t"
    PIPE = "|"
    # Candidate order doubles as the tie-break order.
    CANDIDATES: ClassVar[tuple[str, ...]] = (",", ";", "\t", "|")
    NAMES: ClassVar[dict[str, str]] = {
        ",": "comma",
        ";": "semicolon",
        "\t": "tab",
        "|": "pipe",
    }


class FileExtensions:
    DELIMITED: ClassVar[frozenset[str]] = frozenset(
        {".csv", ".tsv", ".txt", ".tab", ".psv"}
    )
    SPREADSHEET: ClassVar[frozenset[str]] = frozenset({".xlsx", ".xlsm", ".xls"})


class NumericFormatting:
    # Tokens removed before a header-sniffing numeric check.
    STRIP_TOKENS: ClassVar[tuple[str, ...]] = (",", "$", "%", "€", "£", "¥")
    ALLOWED_CHARS: ClassVar[frozenset[str]] = frozenset("0123456789.-+,$%€£¥")
    MAX_FOREIGN_CHARS = 2
    # Characters kept when coercing a cell to a number.
    KEEP_CHARS: ClassVar[frozenset[str]] = frozenset("0123456789.-")


class ColumnKeywords:
    TEMPORAL: ClassVar[tuple[str, ...]] = (
        "date",
        "time",
        "created",
        "updated",
        "timestamp",
        "modified",
        "birth",
        "expires",
    )
    NUMERIC: ClassVar[tuple[str, ...]] = (
        "amount",
        "price",
        "cost",
        "total",
        "count",
        "quantity",
        "number",
        "id",
        "age",
        "score",
        "rating",
    )
    BOOLEAN: ClassVar[tuple[str, ...]] = (
        "active",
        "enabled",
        "disabled",
        "flag",
        "bool",
        "is_",
        "has_",
        "verified",
    )
    TEXT: ClassVar[tuple[str, ...]] = (
        "name",
        "description",
        "comment",
        "notes",
        "email",
        "phone",
        "address",
    )


class BooleanLiterals:
    TRUE: ClassVar[frozenset[str]] = frozenset({"true", "1", "yes", "y"})
    FALSE: ClassVar[frozenset[str]] = frozenset({"false", "0", "no", "n"})


class DateLayouts:
    # Tried in order; the first layout that parses wins.
    ORDERED: ClassVar[tuple[str, ...]] = (
        "%Y-%m-%dT%H:%M:%S%z",
        "%Y-%m-%dT%H:%M:%S",
        "%Y-%m-%d %H:%M:%S",
        "%Y-%m-%d",
        "%m/%d/%Y",
        "%d/%m/%Y",
        "%b %d, %Y",
    )


class ColumnNameAffixes:
    PREFIXES: ClassVar[tuple[str, ...]] = ("col_", "column_", "field_", "f_")
    SUFFIXES: ClassVar[tuple[str, ...]] = ("_col", "_column", "_field", "_f")


class ErrorCodes:
    CONVERSION_ERROR = "CONVERSION_ERROR"
    FILE_PROCESSING_ERROR = "FILE_PROCESSING_ERROR"
    INSERT_ERROR = "INSERT_ERROR"
    PARSE_ERROR = "PARSE_ERROR"


class Remediation:
    CONVERSION = "Check data format or set to NULL"
    FILE_PROCESSING = "Check file format and accessibility"
    INSERT = "Check the target table constraints for this row"
    PARSE = "Check quoting and delimiters on this line"


class TableDefaults:
    COLUMN_COMMENT = "Column from file export"
